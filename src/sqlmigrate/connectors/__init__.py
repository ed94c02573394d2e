"""Database connectors: the contract, the SQLAlchemy implementation and discovery."""
from sqlmigrate.connectors.base import DatabaseConnector
from sqlmigrate.connectors.network import NetworkConnector
from sqlmigrate.connectors.registry import create_connector, discover_connectors
from sqlmigrate.connectors.sqlalchemy_base import SQLAlchemyConnector
from sqlmigrate.connectors.sqlite import SqliteConnector

__all__ = [
    "DatabaseConnector",
    "SQLAlchemyConnector",
    "SqliteConnector",
    "NetworkConnector",
    "create_connector",
    "discover_connectors",
]
