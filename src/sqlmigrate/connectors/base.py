from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from sqlmigrate.models import ConnectionConfig, Row, TableSchema


class DatabaseConnector(ABC):
    """Canonical interface every connector must implement.

    A connector owns at most one live physical connection and is not safe
    for concurrent use: callers serialize all calls to one instance.
    Every operation other than ``connect``/``disconnect`` requires the
    connected state and raises ``NotConnectedError`` otherwise.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True while a physical connection is held."""
        pass

    @property
    @abstractmethod
    def dialect(self) -> str:
        """Normalized dialect of the connected backend (e.g. 'sqlite', 'postgresql')."""
        pass

    @abstractmethod
    def connect(self, config: ConnectionConfig) -> None:
        """Opens the physical connection described by ``config``.

        Raises:
            UnsupportedConfigKindError: If the config variant belongs to another backend.
            ConnectionFailureError: If the backend rejects the attempt.
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Releases the connection. Idempotent and safe to call if connect never succeeded."""
        pass

    @abstractmethod
    def list_tables(self) -> List[str]:
        """Returns user table names, excluding backend-internal tables. Order is backend-defined."""
        pass

    @abstractmethod
    def get_schema(self, table_name: str) -> Optional[TableSchema]:
        """Returns the introspected schema, or None if the table does not exist."""
        pass

    @abstractmethod
    def create_table(self, table_name: str, schema: TableSchema) -> bool:
        """Creates ``table_name`` from ``schema`` unless it already exists.

        Returns:
            bool: True if the table was created, False if it already existed.
        """
        pass

    @abstractmethod
    def extract_data(self, table_name: str) -> List[Row]:
        """Reads every row of ``table_name``, keyed by column label."""
        pass

    @abstractmethod
    def load_data(self, table_name: str, rows: Sequence[Row]) -> int:
        """Inserts ``rows`` in one all-or-nothing transaction and returns the inserted count."""
        pass
