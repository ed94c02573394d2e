"""Target dialect vocabularies used by type mapping and introspection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class DialectProfile:
    """
    Type vocabulary and catalog conventions of one SQL backend.

    Attributes:
        name: Normalized dialect id (``sqlite``, ``postgresql``, ...).
        integer: Type used for the integer family.
        text: Type used for character and large-text types.
        real: Type used for floating point types.
        blob: Type used for binary types.
        boolean: Native boolean type, or None when the backend has none.
        small_integer: Smallest integer type, used for 0/1 booleans when ``boolean`` is None.
        system_table_prefixes: Name prefixes of backend-internal tables.
    """
    name: str
    integer: str
    text: str
    real: str
    blob: str
    boolean: Optional[str]
    small_integer: str
    system_table_prefixes: Tuple[str, ...] = ()

    @property
    def boolean_type(self) -> str:
        return self.boolean or self.small_integer

    def is_system_table(self, table_name: str) -> bool:
        lowered = table_name.lower()
        return any(lowered.startswith(prefix.lower()) for prefix in self.system_table_prefixes)


SQLITE = DialectProfile(
    name="sqlite",
    integer="INTEGER",
    text="TEXT",
    real="REAL",
    blob="BLOB",
    boolean=None,
    small_integer="INTEGER",
    system_table_prefixes=("sqlite_",),
)

POSTGRESQL = DialectProfile(
    name="postgresql",
    integer="BIGINT",
    text="TEXT",
    real="DOUBLE PRECISION",
    blob="BYTEA",
    boolean="BOOLEAN",
    small_integer="SMALLINT",
    system_table_prefixes=("pg_", "sql_"),
)

MYSQL = DialectProfile(
    name="mysql",
    integer="BIGINT",
    text="LONGTEXT",
    real="DOUBLE",
    blob="LONGBLOB",
    boolean=None,
    small_integer="TINYINT",
)

MSSQL = DialectProfile(
    name="mssql",
    integer="BIGINT",
    text="NVARCHAR(MAX)",
    real="FLOAT",
    blob="VARBINARY(MAX)",
    boolean=None,
    small_integer="TINYINT",
    system_table_prefixes=("spt_", "MSreplication", "sysdiagrams"),
)

GENERIC = DialectProfile(
    name="generic",
    integer="INTEGER",
    text="TEXT",
    real="REAL",
    blob="BLOB",
    boolean=None,
    small_integer="SMALLINT",
)

_PROFILES: Dict[str, DialectProfile] = {p.name: p for p in (SQLITE, POSTGRESQL, MYSQL, MSSQL)}

_ALIASES = {
    "postgres": "postgresql",
    "mariadb": "mysql",
    "sqlserver": "mssql",
}


def normalize_dialect(name: str) -> str:
    """Normalizes SQLAlchemy backend names (``postgresql+psycopg2``) to profile ids."""
    backend = name.lower().split("+", 1)[0]
    return _ALIASES.get(backend, backend)


def get_dialect_profile(name: str) -> DialectProfile:
    """Returns the profile for ``name``, falling back to a generic ANSI vocabulary."""
    return _PROFILES.get(normalize_dialect(name), GENERIC)
