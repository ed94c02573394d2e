from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Application configuration settings backed by environment variables."""

    log_level: str = Field(default="INFO", validation_alias="SQLMIGRATE_LOG_LEVEL")
    log_json: bool = Field(
        default=False,
        validation_alias="SQLMIGRATE_LOG_JSON",
        description="Emit log records as JSON lines instead of plain text."
    )

    extraction_failure_policy: Literal["raise", "empty"] = Field(
        default="raise",
        validation_alias="SQLMIGRATE_EXTRACTION_FAILURE_POLICY",
        description="'raise' propagates read failures; 'empty' logs them and returns no rows."
    )

    sqlite_timeout_sec: float = Field(
        default=30.0,
        validation_alias="SQLMIGRATE_SQLITE_TIMEOUT_SEC",
        description="Seconds a SQLite connection waits on a locked database file."
    )

    worker_threads: int = Field(
        default=1,
        ge=1,
        validation_alias="SQLMIGRATE_WORKER_THREADS",
        description="Max worker threads used to run migrations in the background."
    )

    target_suffix: str = Field(
        default="_migrated",
        validation_alias="SQLMIGRATE_TARGET_SUFFIX",
        description="Suffix appended to the source table name when no target name is given."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def default_target_table(self, source_table: str) -> str:
        return f"{source_table}{self.target_suffix}"


settings = Settings()
