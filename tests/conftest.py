import logging
import sqlite3

import pytest

from sqlmigrate.models import FileBackedConfig
from sqlmigrate.settings import settings


@pytest.fixture()
def users_db_path(tmp_path):
    """SQLite file holding the `users` table with two rows (one NULL email)."""
    db_path = tmp_path / "source.db"
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)"
        )
        conn.executemany(
            "INSERT INTO users (id, name, email) VALUES (?, ?, ?)",
            [(1, "Ann", "a@x.com"), (2, "Bo", None)],
        )
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture()
def empty_db_path(tmp_path):
    db_path = tmp_path / "target.db"
    sqlite3.connect(db_path).close()
    return db_path


@pytest.fixture()
def users_config(users_db_path):
    return FileBackedConfig(path=str(users_db_path))


@pytest.fixture(autouse=True)
def _restore_settings(monkeypatch):
    # Tests tweak the module-level settings object; monkeypatch restores it.
    monkeypatch.setattr(settings, "extraction_failure_policy", "raise")
    monkeypatch.setattr(settings, "target_suffix", "_migrated")
    yield


@pytest.fixture(autouse=True)
def _reset_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def read_rows():
    """Reads every row of a table straight through sqlite3, ordered by the first column."""
    def _read(db_path, table_name):
        conn = sqlite3.connect(db_path)
        try:
            return conn.execute(f'SELECT * FROM "{table_name}" ORDER BY 1').fetchall()
        finally:
            conn.close()
    return _read
