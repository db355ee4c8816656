from pydantic_settings import SettingsConfigDict

from .build import BuildSettings
from .github import GitHubSettings
from .merge import MergeSettings


class Settings(BuildSettings, GitHubSettings, MergeSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "prbridge"
    debug: bool = False
