import sqlite3

import pytest

from sqlmigrate.connectors.sqlite import SqliteConnector
from sqlmigrate.errors import ErrorCode, MigrationStageError
from sqlmigrate.models import FileBackedConfig
from sqlmigrate.pipeline import MigrationPipeline, MigrationRunner


def test_users_table_migrates_within_the_same_database(users_config, users_db_path, read_rows):
    # Validates the reference scenario because it exercises every stage end to end.
    # Arrange
    pipeline = MigrationPipeline(users_config, users_config)

    # Act
    result = pipeline.run("users", "users_migrated")

    # Assert
    assert result.rows_loaded == 2
    assert read_rows(users_db_path, "users_migrated") == [(1, "Ann", "a@x.com"), (2, "Bo", None)]
    with SqliteConnector() as connector:
        connector.connect(users_config)
        source_schema = connector.get_schema("users")
        target_schema = connector.get_schema("users_migrated")
    assert target_schema.column_names == source_schema.column_names
    assert target_schema.primary_key == ["id"]
    assert target_schema.get_column("name").is_nullable is False


def test_users_table_migrates_to_another_database(users_config, empty_db_path, read_rows):
    # Arrange
    pipeline = MigrationPipeline(users_config, FileBackedConfig(path=str(empty_db_path)))

    # Act
    result = pipeline.run("users", "users")

    # Assert
    assert result.target_created is True
    assert read_rows(empty_db_path, "users") == [(1, "Ann", "a@x.com"), (2, "Bo", None)]


def test_empty_source_creates_target_and_moves_nothing(users_db_path, users_config, read_rows):
    # Arrange
    conn = sqlite3.connect(users_db_path)
    conn.execute("CREATE TABLE audit (id INTEGER PRIMARY KEY, note TEXT)")
    conn.commit()
    conn.close()

    # Act
    result = MigrationPipeline(users_config, users_config).run("audit", "audit_copy")

    # Assert
    assert result.rows_extracted == 0
    assert result.target_created is True
    assert result.status_message.startswith("Migration complete: Source table 'audit' was empty.")
    assert read_rows(users_db_path, "audit_copy") == []


def test_failed_load_leaves_created_target_without_partial_rows(users_config, users_db_path, read_rows):
    # Validates all-or-nothing loading because a failed migration must not leave partial data.
    # Arrange: an existing target whose key already holds id 2.
    conn = sqlite3.connect(users_db_path)
    conn.execute("CREATE TABLE users_migrated (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)")
    conn.execute("INSERT INTO users_migrated VALUES (2, 'Existing', NULL)")
    conn.commit()
    conn.close()

    # Act
    with pytest.raises(MigrationStageError) as exc_info:
        MigrationPipeline(users_config, users_config).run("users", "users_migrated")

    # Assert
    assert exc_info.value.stage == "load"
    assert exc_info.value.code == ErrorCode.LOAD_FAILURE
    assert read_rows(users_db_path, "users_migrated") == [(2, "Existing", None)]


def test_runner_reports_outcome_for_sqlite_migration(users_config, users_db_path, read_rows):
    # Arrange
    statuses = []
    pipeline = MigrationPipeline(users_config, users_config, on_status=statuses.append)

    # Act
    with MigrationRunner() as runner:
        outcome = runner.submit(pipeline, "users", "users_migrated").result(timeout=30)

    # Assert
    assert outcome.success is True
    assert statuses[-1] == "Migration successful: 2 rows transferred from 'users' to 'users_migrated'."
    assert len(read_rows(users_db_path, "users_migrated")) == 2
