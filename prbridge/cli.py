import asyncio
import sys
from collections.abc import Callable
from functools import wraps
from logging import getLogger
from typing import Any

import typer
from pydantic import SecretStr
from rich.console import Console

from .conf.params import parse_out_request
from .exceptions import ResourceError
from .services.dependencies import DependencyGate
from .services.github.auth import GitHubClient
from .services.github.pullrequests import fetch_pull_request
from .services.out import OutCommand
from .services.workspace import Workspace
from .settings import settings

app = typer.Typer()
logger = getLogger(__name__)
# stdout is reserved for the JSON the CI platform reads back
console = Console(stderr=True)


def syncify(f: Callable[..., Any]) -> Callable[..., Any]:
    """This simple decorator converts an async function into a sync function,
    allowing it to work with Typer.
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@app.command(help=f"Display the current installed version of {settings.project_name}.")
def version() -> None:
    from . import __version__

    typer.echo(f"{settings.project_name} - {__version__}")


@app.command(help="Publish a build result to its commit and pull request. Reads the request JSON from stdin.")
@syncify
async def out(
    destination: str = typer.Argument(
        ...,
        help="Directory holding the step's inputs",
    ),
) -> None:
    """Run the output step and print the resulting version and metadata."""
    try:
        request = parse_out_request(sys.stdin.read())

        github_client = GitHubClient(
            settings,
            token_override=request.source.access_token,
            api_url_override=request.source.api_endpoint,
        ).get_authenticated_client()

        async with github_client:
            command = OutCommand(
                github_client,
                Workspace(destination),
                request,
                variables=settings.as_variables(),
                merge_settings=settings,
            )
            envelope = await command.run()

        typer.echo(envelope.to_json())

    except (ValueError, ResourceError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error during output step")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command(help="Check whether the pull requests a pull request depends on are merged.")
@syncify
async def gate(
    repo: str = typer.Argument(..., help="Repository in owner/name form"),
    number: int = typer.Argument(..., help="Pull request number"),
    token: str | None = typer.Option(
        None,
        "--token",
        help="GitHub Personal Access Token (overrides env var)",
    ),
) -> None:
    """Exit 0 when every declared dependency is merged, 1 otherwise."""
    try:
        github_client = GitHubClient(
            settings,
            token_override=SecretStr(token) if token else None,
        ).get_authenticated_client()

        async with github_client:
            pr = await fetch_pull_request(github_client, repo, number)
            satisfied = await DependencyGate(github_client).dependencies_merged(pr)

    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error while checking dependencies")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if satisfied:
        console.print(f"[green]{repo}#{number}: dependencies merged[/green]")
        return
    console.print(f"[yellow]{repo}#{number}: dependencies not merged[/yellow]")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
