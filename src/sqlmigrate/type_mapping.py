"""Cross-dialect column type mapping."""
from __future__ import annotations

from typing import Callable, List, Tuple

from sqlmigrate.dialects import DialectProfile, get_dialect_profile
from sqlmigrate.logger import get_logger

logger = get_logger(__name__)

# Ordered rules: the first family whose marker appears in the upper-cased type wins.
_RULES: List[Tuple[str, Tuple[str, ...], Callable[[DialectProfile], str]]] = [
    ("integer", ("INT",), lambda d: d.integer),
    ("text", ("CHAR", "TEXT", "CLOB"), lambda d: d.text),
    ("real", ("REAL", "FLOAT", "DOUBLE"), lambda d: d.real),
    ("binary", ("BLOB", "BINARY", "BYTEA"), lambda d: d.blob),
    ("boolean", ("BOOL",), lambda d: d.boolean_type),
    ("temporal", ("DATE", "TIME"), lambda d: d.text),
]


def type_family(source_type: str) -> str | None:
    """Returns the family name matched by ``source_type``, or None if unrecognized."""
    upper = source_type.upper()
    for family, markers, _ in _RULES:
        if any(marker in upper for marker in markers):
            return family
    return None


def map_type(source_type: str, target_dialect: str = "sqlite") -> str:
    """
    Maps a source dialect's column type string onto the target dialect.

    Matching is case-insensitive substring search over ordered rules, so
    ``VARCHAR(255)`` maps to the target text type and ``BIGINT`` to its
    integer type. Unrecognized types pass through unchanged.

    Args:
        source_type: Dialect-native type string as introspected from the source.
        target_dialect: Target dialect id or SQLAlchemy backend name.

    Returns:
        The target dialect type string.
    """
    profile = get_dialect_profile(target_dialect)
    upper = source_type.upper()
    for family, markers, resolve in _RULES:
        if any(marker in upper for marker in markers):
            mapped = resolve(profile)
            if mapped.upper() != upper.strip():
                logger.debug(f"Mapped {family} type '{source_type}' -> '{mapped}' ({profile.name})")
            return mapped
    return source_type
