from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class MergeSettings(BaseSettings):
    """Retry policy for merging pull requests."""

    merge_retry_delay: float = Field(
        default=10.0,
        description="Seconds to wait between merge attempts",
    )
    merge_client_error_attempts: int = Field(
        default=3,
        description="Total merge attempts allowed when GitHub answers with a 4xx error",
    )
    merge_server_error_attempts: int = Field(
        default=5,
        description="Total merge attempts allowed when GitHub answers with a 5xx error",
    )

    @field_validator("merge_client_error_attempts", "merge_server_error_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        """Every tier gets at least one attempt."""
        if v < 1:
            raise ValueError("merge attempts must be at least 1")
        return v

    @field_validator("merge_retry_delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("merge_retry_delay must not be negative")
        return v
