from __future__ import annotations

import json
import pathlib
from typing import Optional, Union

from pydantic import ValidationError

from sqlmigrate.errors import ConfigurationError
from sqlmigrate.logger import get_logger
from sqlmigrate.models import FileBackedConfig, MigrationConfig

logger = get_logger(__name__)

PathLike = Union[str, pathlib.Path]

DEFAULT_PROJECT_NAME = "New Migration Project"
DEFAULT_DESCRIPTION = "Default configuration. Please update source/target."
DEFAULT_SOURCE_PATH = "path/to/source.db"
DEFAULT_TARGET_PATH = "path/to/target.db"


def load_config(path: PathLike) -> MigrationConfig:
    """
    Load a migration configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file.

    Returns:
        The parsed MigrationConfig.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigurationError: If the document is not valid JSON or fails validation.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Migration config not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file '{path}' is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file '{path}' must contain a JSON object.")

    try:
        config = MigrationConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Config file '{path}' is invalid: {e.error_count()} validation error(s).",
            details={"errors": e.errors(include_url=False)},
        ) from e

    logger.info(f"Loaded migration config from {path}")
    return config


def save_config(config: MigrationConfig, path: PathLike) -> pathlib.Path:
    """Writes ``config`` as pretty-printed JSON, creating parent directories."""
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=4) + "\n", encoding="utf-8")
    logger.info(f"Saved migration config to {path}")
    return path


def default_config(source_path: Optional[str] = None, target_path: Optional[str] = None) -> MigrationConfig:
    """Starter configuration written when no config exists yet."""
    return MigrationConfig(
        project_name=DEFAULT_PROJECT_NAME,
        description=DEFAULT_DESCRIPTION,
        source_config=FileBackedConfig(path=source_path or DEFAULT_SOURCE_PATH),
        target_config=FileBackedConfig(path=target_path or DEFAULT_TARGET_PATH),
    )
