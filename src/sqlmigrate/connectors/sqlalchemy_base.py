"""
Shared connector implementation on top of SQLAlchemy Core.

Each instance holds exactly one ``Connection`` opened from a ``NullPool``
engine, so closing the connection closes the physical DBAPI connection.
Reads end their implicit transaction before returning; DDL and loads run in
explicit transactions.
"""
from __future__ import annotations

import time
from abc import abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, ClassVar, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Type

from sqlalchemy import column, create_engine, insert, inspect, select, table, text
from sqlalchemy.engine import URL, Connection, Engine, RootTransaction
from sqlalchemy.exc import CompileError, SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy.types import NullType, TypeEngine

from sqlmigrate.connectors.base import DatabaseConnector
from sqlmigrate.dialects import GENERIC, DialectProfile, get_dialect_profile, normalize_dialect
from sqlmigrate.errors import (
    ConnectionFailureError,
    DdlError,
    ExtractionError,
    LoadError,
    NotConnectedError,
    UnsupportedConfigKindError,
)
from sqlmigrate.logger import get_logger
from sqlmigrate.models import ColumnSchema, ConnectionConfig, Row, TableSchema, decimal_fits_float, to_scalar
from sqlmigrate.settings import settings
from sqlmigrate.type_mapping import map_type

logger = get_logger(__name__)


class SQLAlchemyConnector(DatabaseConnector):
    """
    Base class for all SQLAlchemy-based connectors.
    Implements connection lifecycle, introspection, DDL and data transfer;
    subclasses only describe how a config variant becomes an engine URL.
    """

    config_type: ClassVar[Type[Any]]
    default_dialect: ClassVar[str] = "generic"

    def __init__(self):
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None
        self._profile: DialectProfile = GENERIC
        self._description = "disconnected"

    def __str__(self):
        return f"{type(self).__name__} ({self._description})"

    @abstractmethod
    def build_url(self, config: ConnectionConfig) -> URL:
        """Translates the config variant into a SQLAlchemy URL."""
        pass

    def engine_options(self, config: ConnectionConfig) -> Dict[str, Any]:
        """Extra keyword arguments for ``create_engine``."""
        return {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        conn = self._connection
        return conn is not None and not conn.closed and not conn.invalidated

    @property
    def dialect(self) -> str:
        if self._connection is not None:
            return normalize_dialect(self._connection.dialect.name)
        return self.default_dialect

    def connect(self, config: ConnectionConfig) -> None:
        if not isinstance(config, self.config_type):
            kind = getattr(config, "type", type(config).__name__)
            error_msg = (
                f"Invalid configuration type for {type(self).__name__}: "
                f"expected '{self.config_type.model_fields['type'].default}', got '{kind}'."
            )
            logger.error(error_msg)
            raise UnsupportedConfigKindError(error_msg, details={"received": kind})

        if self._connection is not None:
            logger.info(f"{self} is already connected; reconnecting.")
            self.disconnect()

        url: Optional[URL] = None
        engine: Optional[Engine] = None
        try:
            url = self.build_url(config)
            self._description = url.render_as_string(hide_password=True)
            logger.info(f"Attempting to connect to {self._description}")
            engine = create_engine(url, poolclass=NullPool, **self.engine_options(config))
            connection = engine.connect()
        except (SQLAlchemyError, ImportError, ValueError) as e:
            if engine is not None:
                engine.dispose()
            target = self._description if url is not None else "database"
            logger.error(f"Failed to connect to {target}: {e}")
            self._description = "disconnected"
            raise ConnectionFailureError(
                f"Failed to connect to {target}: {e}",
                details={"connector": type(self).__name__},
            ) from e

        self._engine = engine
        self._connection = connection
        self._profile = get_dialect_profile(connection.dialect.name)
        logger.info(f"Successfully connected to {self._description}")

    def disconnect(self) -> None:
        connection, engine = self._connection, self._engine
        self._connection = None
        self._engine = None

        if connection is not None:
            try:
                if not connection.closed:
                    connection.close()
                    logger.info(f"Disconnected from {self._description}.")
            except SQLAlchemyError as e:
                logger.error(f"Error while disconnecting from {self._description}: {e}")
        if engine is not None:
            engine.dispose()
        self._description = "disconnected"

    def _require_connection(self) -> Connection:
        if not self.is_connected:
            raise NotConnectedError(f"{type(self).__name__} is not connected to a database. Call connect() first.")
        return self._connection

    @contextmanager
    def _read_scope(self) -> Iterator[Connection]:
        """Yields the connection and ends the transaction the driver opened implicitly."""
        conn = self._require_connection()
        try:
            yield conn
        finally:
            if conn.in_transaction():
                conn.rollback()

    def _begin(self, conn: Connection) -> RootTransaction:
        if conn.in_transaction():
            conn.rollback()
        return conn.begin()

    def _quote(self, identifier: str) -> str:
        return self._require_connection().dialect.identifier_preparer.quote_identifier(identifier)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list_tables(self) -> List[str]:
        with self._read_scope() as conn:
            try:
                names = inspect(conn).get_table_names()
            except SQLAlchemyError as e:
                logger.error(f"Error retrieving tables from {self}: {e}")
                raise

        tables = [name for name in names if not self._profile.is_system_table(name)]
        logger.info(f"Retrieved tables: {tables}")
        return tables

    def table_exists(self, table_name: str) -> bool:
        with self._read_scope() as conn:
            return inspect(conn).has_table(table_name)

    def get_schema(self, table_name: str) -> Optional[TableSchema]:
        with self._read_scope() as conn:
            try:
                inspector = inspect(conn)
                if not inspector.has_table(table_name):
                    logger.warning(f"Table '{table_name}' not found.")
                    return None

                pk_info = inspector.get_pk_constraint(table_name) or {}
                declared = self.declared_column_types(conn, table_name)
                primary_key = set(pk_info.get("constrained_columns") or [])

                columns = [
                    ColumnSchema(
                        name=info["name"],
                        data_type=declared.get(info["name"]) or self._render_type(info["type"], conn),
                        is_nullable=bool(info.get("nullable", True)),
                        is_primary_key=info["name"] in primary_key,
                        ordinal_position=position,
                    )
                    for position, info in enumerate(inspector.get_columns(table_name), start=1)
                ]
            except SQLAlchemyError as e:
                logger.error(f"Error retrieving schema for table '{table_name}' from {self}: {e}")
                raise

        logger.info(f"Retrieved schema for table '{table_name}': {len(columns)} columns found.")
        return TableSchema(name=table_name, columns=columns)

    def declared_column_types(self, conn: Connection, table_name: str) -> Dict[str, str]:
        """Column name -> type string exactly as declared in the backend catalog.

        Reflection normalizes types (SQLite resolves unknown declarations to
        NUMERIC), so backends that expose the declared text override this.
        Columns missing from the mapping fall back to the reflected type.
        """
        return {}

    @staticmethod
    def _render_type(type_: TypeEngine, conn: Connection) -> str:
        # SQLite columns declared without a type reflect as NullType
        if isinstance(type_, NullType):
            return ""
        try:
            return type_.compile(dialect=conn.dialect)
        except CompileError:
            return str(type_)

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def build_create_table_sql(self, table_name: str, schema: TableSchema) -> str:
        """Renders CREATE TABLE DDL for ``schema`` in the connected dialect.

        A single key column gets an inline ``PRIMARY KEY``; a composite key is
        emitted as one table-level constraint in ordinal order.
        """
        primary_key = schema.primary_key
        definitions = []
        for col in schema.columns:
            parts = [self._quote(col.name)]
            col_type = map_type(col.data_type, self.dialect) if col.data_type else ""
            if col_type:
                parts.append(col_type)
            if not col.is_nullable:
                parts.append("NOT NULL")
            if col.is_primary_key and len(primary_key) == 1:
                parts.append("PRIMARY KEY")
            definitions.append(" ".join(parts))

        if len(primary_key) > 1:
            key_columns = ", ".join(self._quote(name) for name in primary_key)
            definitions.append(f"PRIMARY KEY ({key_columns})")

        body = ",\n  ".join(definitions)
        return f"CREATE TABLE {self._quote(table_name)} (\n  {body}\n)"

    def create_table(self, table_name: str, schema: TableSchema) -> bool:
        conn = self._require_connection()
        if self.table_exists(table_name):
            logger.info(f"Table '{table_name}' already exists; leaving it unchanged.")
            return False

        if not schema.columns:
            raise DdlError(f"Cannot create table '{table_name}': schema '{schema.name}' has no columns.")

        ddl = self.build_create_table_sql(table_name, schema)
        trans = self._begin(conn)
        try:
            conn.exec_driver_sql(ddl)
            trans.commit()
        except SQLAlchemyError as e:
            trans.rollback()
            logger.error(f"Error creating table '{table_name}'. SQL: {ddl}", exc_info=True)
            raise DdlError(
                f"Failed to create table '{table_name}': {e}",
                details={"table": table_name, "sql": ddl},
            ) from e

        logger.info(f"Table '{table_name}' created successfully.")
        return True

    # ------------------------------------------------------------------
    # Data transfer
    # ------------------------------------------------------------------

    def extract_data(self, table_name: str) -> List[Row]:
        stmt = select(text("*")).select_from(table(table_name))
        start = time.perf_counter()

        with self._read_scope() as conn:
            try:
                result = conn.execute(stmt)
                rows = self._to_rows(table_name, list(result.keys()), result)
            except (SQLAlchemyError, TypeError) as e:
                logger.error(f"Error extracting data from table '{table_name}' in {self}: {e}", exc_info=True)
                if settings.extraction_failure_policy == "empty":
                    logger.warning(f"Returning no rows for '{table_name}' (extraction_failure_policy=empty).")
                    return []
                raise ExtractionError(
                    f"Failed to extract data from table '{table_name}': {e}",
                    details={"table": table_name},
                ) from e

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Successfully extracted {len(rows)} rows from table '{table_name}' in {duration_ms:.1f} ms.")
        return rows

    @staticmethod
    def _to_rows(table_name: str, labels: List[str], records: Iterable[Sequence[Any]]) -> List[Row]:
        lossy: Set[str] = set()
        rows = []
        for record in records:
            row = {}
            for label, value in zip(labels, record):
                if isinstance(value, Decimal) and not decimal_fits_float(value):
                    lossy.add(label)
                row[label] = to_scalar(value)
            rows.append(row)

        if lossy:
            logger.warning(
                f"Decimal values in column(s) {sorted(lossy)} of table '{table_name}' "
                f"lost precision when converted to float."
            )
        return rows

    def load_data(self, table_name: str, rows: Sequence[Row]) -> int:
        conn = self._require_connection()
        if not rows:
            logger.info(f"No data provided to load into table '{table_name}'.")
            return 0

        # Column set comes from the first row; every row is assumed to share it.
        columns = list(rows[0].keys())
        if not columns:
            logger.warning(f"Data rows are empty (no columns) for table '{table_name}'. Cannot load.")
            return 0

        stmt = insert(table(table_name, *(column(name) for name in columns)))
        params = [dict(row) for row in rows]

        trans = self._begin(conn)
        try:
            result = conn.execute(stmt, params)
            inserted = self._affected_rows(result.rowcount, len(params))
            trans.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error loading data into table '{table_name}'. Rolling back transaction.", exc_info=True)
            rollback_error = self._rollback_quietly(trans, table_name)
            raise LoadError(
                f"Failed to load {len(params)} rows into table '{table_name}': {e}",
                details={"table": table_name, "rows": len(params)},
                rollback_error=rollback_error,
            ) from e

        logger.info(f"Successfully loaded {inserted} rows into table '{table_name}'.")
        return inserted

    @staticmethod
    def _affected_rows(rowcount: Optional[int], batch_size: int) -> int:
        # Drivers report -1 (or nothing) when a batched statement's count is unknown;
        # each entry then counts as one affected row.
        if rowcount is None or rowcount < 0:
            return batch_size
        return rowcount

    @staticmethod
    def _rollback_quietly(trans: RootTransaction, table_name: str) -> Optional[BaseException]:
        try:
            trans.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Error during transaction rollback for table '{table_name}': {rollback_error}")
            return rollback_error
        return None


