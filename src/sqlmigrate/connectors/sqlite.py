from typing import Any, Dict

from sqlalchemy.engine import URL, Connection

from sqlmigrate.connectors.sqlalchemy_base import SQLAlchemyConnector
from sqlmigrate.models import FileBackedConfig
from sqlmigrate.settings import settings


class SqliteConnector(SQLAlchemyConnector):
    """Connector for file-backed SQLite databases."""

    config_type = FileBackedConfig
    default_dialect = "sqlite"

    def build_url(self, config: FileBackedConfig) -> URL:
        return URL.create("sqlite", database=config.path)

    def engine_options(self, config: FileBackedConfig) -> Dict[str, Any]:
        # The runner may tear the connection down from another thread to cancel a run.
        return {
            "connect_args": {
                "timeout": settings.sqlite_timeout_sec,
                "check_same_thread": False,
            }
        }

    def declared_column_types(self, conn: Connection, table_name: str) -> Dict[str, str]:
        # table_xinfo also lists generated columns, matching get_columns()
        result = conn.exec_driver_sql(f"PRAGMA table_xinfo({self._quote(table_name)})")
        return {row["name"]: row["type"] for row in result.mappings()}
