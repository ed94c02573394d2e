from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, TypeAdapter, field_serializer, field_validator

# -----------------------------
# Connection configs
# -----------------------------


class FileBackedConfig(BaseModel):
    """Connection details for an embedded, file-backed database (SQLite)."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["file"] = "file"
    path: str = Field(min_length=1)


class NetworkBackedConfig(BaseModel):
    """Connection details for a server database reached through a driver.

    Attributes:
        uri: SQLAlchemy-style URL, e.g. ``postgresql://db.internal:5432/sales``.
        user: Optional user name; overrides any user embedded in ``uri``.
        password: Optional password, either literal or an ``${env:NAME}`` reference.
        driver_id: DBAPI driver module the URL should use (e.g. ``psycopg2``, ``pymysql``).
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["network"] = "network"
    uri: str = Field(min_length=1)
    user: Optional[str] = None
    password: Optional[SecretStr] = None
    driver_id: str = Field(min_length=1)

    @field_serializer("password", when_used="json-unless-none")
    def _dump_password(self, value: SecretStr) -> str:
        return value.get_secret_value()


ConnectionConfig = Annotated[Union[FileBackedConfig, NetworkBackedConfig], Field(discriminator="type")]

_connection_config_adapter: TypeAdapter = TypeAdapter(ConnectionConfig)


def parse_connection_config(raw: Dict[str, Any]) -> Union[FileBackedConfig, NetworkBackedConfig]:
    """Builds the config variant selected by the ``type`` discriminator."""
    return _connection_config_adapter.validate_python(raw)


# -----------------------------
# Schema descriptors
# -----------------------------


class ColumnSchema(BaseModel):
    """Schema of one column.

    Attributes:
        name: Column name, unique within its table.
        data_type: Dialect-native type string (e.g. ``VARCHAR(100)``).
        is_nullable: True if the column accepts NULL.
        is_primary_key: True if the column is part of the primary key.
        ordinal_position: 1-based position of the column in the table definition.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    data_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    ordinal_position: int = Field(ge=1)


class TableSchema(BaseModel):
    """Schema of a table; columns are always held in ordinal order."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    columns: List[ColumnSchema]

    @field_validator("columns")
    @classmethod
    def _order_columns(cls, columns: List[ColumnSchema]) -> List[ColumnSchema]:
        names = [c.name for c in columns]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate columns in schema: {names}")

        ordered = sorted(columns, key=lambda c: c.ordinal_position)
        positions = [c.ordinal_position for c in ordered]
        if positions != list(range(1, len(ordered) + 1)):
            raise ValueError(f"Ordinal positions must be unique and contiguous from 1, got {positions}")
        return ordered

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key(self) -> List[str]:
        """Primary-key column names in ordinal order; empty when the table has no key."""
        return [c.name for c in self.columns if c.is_primary_key]

    def get_column(self, name: str) -> Optional[ColumnSchema]:
        return next((c for c in self.columns if c.name == name), None)


# -----------------------------
# Row values
# -----------------------------

Scalar = Union[None, bool, int, float, str, bytes]
Row = Dict[str, Scalar]


def decimal_fits_float(value: Decimal) -> bool:
    """True if ``to_scalar`` represents ``value`` without losing digits."""
    if not value.is_finite() or value == value.to_integral_value():
        return True
    return Decimal(repr(float(value))) == value


def to_scalar(value: Any) -> Scalar:
    """Normalizes a driver-returned value into the closed scalar variant.

    Temporal values become ISO-8601 text, matching how temporal columns are
    mapped onto targets without a native type.

    Raises:
        TypeError: If the value has no scalar representation.
    """
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    raise TypeError(f"Unsupported column value of type {type(value).__name__}")


# -----------------------------
# Persisted configuration and results
# -----------------------------


class MigrationConfig(BaseModel):
    """Named migration configuration as persisted to disk."""
    model_config = ConfigDict(extra="ignore")

    source_config: ConnectionConfig
    target_config: ConnectionConfig
    project_name: Optional[str] = None
    description: Optional[str] = None
    version: str = "1.0"


class MigrationResult(BaseModel):
    """Outcome of one successful source -> target table copy."""
    source_table: str
    target_table: str
    rows_extracted: int
    rows_loaded: int
    target_created: bool
    duration_ms: float = 0.0

    @property
    def status_message(self) -> str:
        if self.rows_extracted == 0:
            state = "created" if self.target_created else "already existed"
            return (
                f"Migration complete: Source table '{self.source_table}' was empty. "
                f"Target table '{self.target_table}' {state}."
            )
        return (
            f"Migration successful: {self.rows_loaded} rows transferred "
            f"from '{self.source_table}' to '{self.target_table}'."
        )
