"""Exceptions raised by the output stage."""


class ResourceError(Exception):
    """Base exception for resource failures."""


class ConfigurationError(ResourceError, ValueError):
    """Invalid or incomplete configuration, raised before any side effect."""


class WorkspaceError(ResourceError):
    """Reading git metadata from the working tree failed."""


class MissingPullRequestError(ResourceError):
    """A pull-request-only action was requested for a build with no pull request."""
