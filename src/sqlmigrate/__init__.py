"""sqlmigrate: copy a table's schema and rows between relational databases."""
from sqlmigrate.config_store import default_config, load_config, save_config
from sqlmigrate.connectors import DatabaseConnector, create_connector, discover_connectors
from sqlmigrate.errors import ErrorCode, MigrationError, MigrationStageError, StageError
from sqlmigrate.models import (
    ColumnSchema,
    FileBackedConfig,
    MigrationConfig,
    MigrationResult,
    NetworkBackedConfig,
    TableSchema,
)
from sqlmigrate.pipeline import CancelToken, MigrationOutcome, MigrationPipeline, MigrationRunner

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "ColumnSchema",
    "DatabaseConnector",
    "ErrorCode",
    "FileBackedConfig",
    "MigrationConfig",
    "MigrationError",
    "MigrationOutcome",
    "MigrationPipeline",
    "MigrationResult",
    "MigrationRunner",
    "MigrationStageError",
    "NetworkBackedConfig",
    "StageError",
    "TableSchema",
    "create_connector",
    "default_config",
    "discover_connectors",
    "load_config",
    "save_config",
]
