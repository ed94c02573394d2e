import pytest

from sqlmigrate.connectors.network import NetworkConnector, resolve_secret
from sqlmigrate.models import NetworkBackedConfig


def test_resolve_secret_reads_environment(monkeypatch):
    # Validates env references because configs must not store plain passwords.
    monkeypatch.setenv("WAREHOUSE_PASSWORD", "s3cret")

    assert resolve_secret("${env:WAREHOUSE_PASSWORD}") == "s3cret"


def test_resolve_secret_returns_literals_unchanged():
    assert resolve_secret("plain-password") == "plain-password"


@pytest.mark.parametrize("reference", ["${nocolon}", "${vault:key}", "${env:SQLMIGRATE_UNSET_VARIABLE}"])
def test_resolve_secret_rejects_bad_references(reference, monkeypatch):
    monkeypatch.delenv("SQLMIGRATE_UNSET_VARIABLE", raising=False)

    with pytest.raises(ValueError):
        resolve_secret(reference)


def test_build_url_joins_driver_user_and_password(monkeypatch):
    # Arrange
    monkeypatch.setenv("PG_PASSWORD", "pw")
    config = NetworkBackedConfig(
        uri="postgresql://db.internal:5432/sales",
        user="etl",
        password="${env:PG_PASSWORD}",
        driver_id="psycopg2",
    )

    # Act
    url = NetworkConnector().build_url(config)

    # Assert
    assert url.drivername == "postgresql+psycopg2"
    assert url.username == "etl"
    assert url.password == "pw"
    assert url.host == "db.internal"
    assert url.database == "sales"


def test_build_url_keeps_backend_when_driver_matches():
    config = NetworkBackedConfig(uri="sqlite:///a.db", driver_id="sqlite")

    url = NetworkConnector().build_url(config)

    assert url.drivername == "sqlite"
    assert url.password is None
