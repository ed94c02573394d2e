import json

import pytest

from sqlmigrate.config_store import default_config, load_config, save_config
from sqlmigrate.errors import ConfigurationError, ErrorCode
from sqlmigrate.models import FileBackedConfig, MigrationConfig, NetworkBackedConfig


def test_save_then_load_preserves_both_config_variants(tmp_path):
    # Validates persistence because the CLI reloads what it saved earlier.
    # Arrange
    config = MigrationConfig(
        source_config=FileBackedConfig(path="source.db"),
        target_config=NetworkBackedConfig(
            uri="postgresql://db/sales", user="etl", password="${env:PG_PASSWORD}", driver_id="psycopg2"
        ),
        project_name="Sales",
    )
    path = tmp_path / "nested" / "dir" / "migration.json"

    # Act
    save_config(config, path)
    loaded = load_config(path)

    # Assert
    assert loaded == config
    document = json.loads(path.read_text())
    assert document["source_config"]["type"] == "file"
    assert document["target_config"]["type"] == "network"
    assert document["target_config"]["password"] == "${env:PG_PASSWORD}"


def test_saved_document_is_pretty_printed(tmp_path):
    path = save_config(default_config(), tmp_path / "config.json")
    assert "\n    " in path.read_text()


def test_load_ignores_unknown_fields(tmp_path):
    # Arrange
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "source_config": {"type": "file", "path": "a.db"},
        "target_config": {"type": "file", "path": "b.db"},
        "schedule": "nightly",
    }))

    # Act
    config = load_config(path)

    # Assert
    assert config.version == "1.0"
    assert config.target_config.path == "b.db"


def test_load_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.json")


def test_load_invalid_json_raises_configuration_error(tmp_path):
    # Arrange
    path = tmp_path / "config.json"
    path.write_text("{not json")

    # Act / Assert
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    assert exc_info.value.code == ErrorCode.CONFIG_INVALID


def test_load_rejects_unknown_config_type(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "source_config": {"type": "ftp", "path": "a.db"},
        "target_config": {"type": "file", "path": "b.db"},
    }))

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_load_rejects_non_object_documents(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[]")

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_default_config_uses_placeholder_paths():
    config = default_config()
    assert config.project_name == "New Migration Project"
    assert config.source_config == FileBackedConfig(path="path/to/source.db")
    assert config.target_config == FileBackedConfig(path="path/to/target.db")


def test_default_config_accepts_source_path():
    config = default_config("data/app.db")
    assert config.source_config.path == "data/app.db"
    assert config.target_config.path == "path/to/target.db"
