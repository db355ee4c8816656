from pydantic import Field
from pydantic_settings import BaseSettings

# Variables that may be referenced as $NAME inside status contexts and target URLs
BUILD_VARIABLES = (
    "BUILD_ID",
    "BUILD_NAME",
    "BUILD_JOB_NAME",
    "BUILD_PIPELINE_NAME",
    "BUILD_TEAM_NAME",
    "ATC_EXTERNAL_URL",
)


class BuildSettings(BaseSettings):
    """Build metadata exported by the CI platform into the step's environment."""

    build_id: str | None = Field(default=None, description="Internal identifier of the running build")
    build_name: str | None = Field(default=None, description="Build number within its job")
    build_job_name: str | None = Field(default=None, description="Name of the job running the build")
    build_pipeline_name: str | None = Field(default=None, description="Name of the pipeline")
    build_team_name: str | None = Field(default=None, description="Team owning the pipeline")
    atc_external_url: str | None = Field(default=None, description="Public URL of the CI web interface")

    def as_variables(self) -> dict[str, str | None]:
        """Return the substitution whitelist keyed by environment variable name."""
        return {name: getattr(self, name.lower()) for name in BUILD_VARIABLES}
