from sqlmigrate.errors import (
    ErrorCode,
    LoadError,
    MigrationStageError,
    NotConnectedError,
    SchemaNotFoundError,
    UnsupportedConfigKindError,
    mask_credentials,
)


def test_mask_credentials_hides_url_passwords():
    # Validates masking because connection errors are shown to users and logs.
    text = "could not connect to postgresql://admin:hunter2@db:5432/sales"
    assert mask_credentials(text) == "could not connect to postgresql://admin:***@db:5432/sales"


def test_mask_credentials_leaves_plain_text_alone():
    assert mask_credentials("sqlite:///tmp/a.db") == "sqlite:///tmp/a.db"


def test_error_messages_are_masked_on_construction():
    error = LoadError("failed on mysql://u:pw@h/db")
    assert "pw" not in str(error)
    assert error.code == ErrorCode.LOAD_FAILURE
    assert error.rollback_error is None


def test_fatal_codes():
    # Validates fatality because contract violations must never be retried.
    assert UnsupportedConfigKindError("x").is_fatal
    assert NotConnectedError("x").is_fatal
    assert not SchemaNotFoundError("users").is_fatal


def test_stage_error_keeps_cause_code_and_context():
    # Arrange
    cause = SchemaNotFoundError("users")

    # Act
    error = MigrationStageError("schema", "users", "users_migrated", cause)
    stage_error = error.to_stage_error()

    # Assert
    assert error.code == ErrorCode.SCHEMA_NOT_FOUND
    assert error.message == "Migration 'users' -> 'users_migrated' failed during schema: Table 'users' not found."
    assert stage_error.stage == "schema"
    assert stage_error.message == "Table 'users' not found."
    assert stage_error.source_table == "users"
    assert stage_error.is_retryable is False


def test_stage_error_wraps_foreign_exceptions_as_unknown():
    error = MigrationStageError("extract", "a", "b", RuntimeError("boom"))
    assert error.code == ErrorCode.UNKNOWN_ERROR
    assert error.reason == "boom"
    assert error.to_stage_error().is_retryable is True
