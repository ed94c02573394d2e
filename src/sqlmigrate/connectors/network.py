from __future__ import annotations

import os

from sqlalchemy.engine import URL, make_url

from sqlmigrate.connectors.sqlalchemy_base import SQLAlchemyConnector
from sqlmigrate.logger import get_logger
from sqlmigrate.models import NetworkBackedConfig

logger = get_logger(__name__)


def resolve_secret(value: str) -> str:
    """Resolves a secret reference string.

    Format: ``${env:NAME}``. Any other string is returned unchanged.

    Raises:
        ValueError: If the provider is unknown or the variable is not set.
    """
    if not (value.startswith("${") and value.endswith("}")):
        return value

    parts = value[2:-1].split(":", 1)
    if len(parts) != 2:
        raise ValueError(f"Invalid secret format '{value}'. Expected '${{provider_id:key}}'.")

    provider_id, key = parts
    if provider_id != "env":
        raise ValueError(f"Unknown secret provider '{provider_id}'.")
    if key not in os.environ:
        raise ValueError(f"Secret '{key}' not found in environment.")
    return os.environ[key]


class NetworkConnector(SQLAlchemyConnector):
    """Connector for server databases reached through a named DBAPI driver.

    ``uri`` is a SQLAlchemy URL; ``driver_id`` selects the driver, so
    ``postgresql://host/db`` with ``psycopg2`` connects via
    ``postgresql+psycopg2://host/db``.
    """

    config_type = NetworkBackedConfig

    def build_url(self, config: NetworkBackedConfig) -> URL:
        url = make_url(config.uri)
        backend = url.get_backend_name()
        logger.debug(f"Using driver '{config.driver_id}' for backend '{backend}'")
        if config.driver_id != backend:
            url = url.set(drivername=f"{backend}+{config.driver_id}")
        if config.user:
            url = url.set(username=config.user)
        if config.password is not None:
            url = url.set(password=resolve_secret(config.password.get_secret_value()))
        return url
