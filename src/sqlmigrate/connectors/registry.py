from importlib.metadata import entry_points
from typing import Dict, Type

from sqlmigrate.connectors.base import DatabaseConnector
from sqlmigrate.connectors.network import NetworkConnector
from sqlmigrate.connectors.sqlite import SqliteConnector
from sqlmigrate.errors import UnsupportedConfigKindError
from sqlmigrate.logger import get_logger
from sqlmigrate.models import ConnectionConfig

logger = get_logger(__name__)

ENTRY_POINT_GROUP = "sqlmigrate.connectors"

BUILTIN_CONNECTORS: Dict[str, Type[DatabaseConnector]] = {
    "file": SqliteConnector,
    "network": NetworkConnector,
}


def discover_connectors() -> Dict[str, Type[DatabaseConnector]]:
    """Discovers installed connectors via 'sqlmigrate.connectors' entry points.

    Built-in connectors are always present; an entry point with the same
    name replaces the built-in.

    Returns:
        Dict[str, Type[DatabaseConnector]]: Dict mapping config kind (e.g., 'file')
            to the Connector class.
    """
    connectors = dict(BUILTIN_CONNECTORS)
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            connectors[ep.name] = ep.load()
        except Exception as e:
            logger.error(f"Failed to load connector {ep.name}: {e}")

    return connectors


def create_connector(config: ConnectionConfig) -> DatabaseConnector:
    """
    Factory method to instantiate the connector matching the config kind.

    The returned connector is not yet connected.

    Raises:
        UnsupportedConfigKindError: If no connector handles the config kind.
    """
    available = discover_connectors()
    kind = config.type
    if kind not in available:
        raise UnsupportedConfigKindError(
            f"No connector found for config type '{kind}'. Available: {sorted(available)}."
        )
    return available[kind]()
