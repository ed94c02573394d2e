"""Command-line front end for sqlmigrate."""
import json
import pathlib
import sys
from typing import Annotated, Optional

import typer
from rich.table import Table

from sqlmigrate.config_store import default_config, load_config, save_config
from sqlmigrate.connectors.registry import discover_connectors
from sqlmigrate.connectors.sqlite import SqliteConnector
from sqlmigrate.console import console, handle_cli_errors, print_error, print_step, print_success
from sqlmigrate.errors import SchemaNotFoundError
from sqlmigrate.logger import configure_logging
from sqlmigrate.models import FileBackedConfig
from sqlmigrate.pipeline import MigrationPipeline, MigrationRunner
from sqlmigrate.settings import settings

app = typer.Typer(
    name="sqlmigrate",
    help="Copy tables between relational databases.",
    no_args_is_help=True,
    add_completion=False,
)

config_app = typer.Typer(help="Create and inspect migration config files.", no_args_is_help=True)
app.add_typer(config_app, name="config")

DatabaseArgument = Annotated[pathlib.Path, typer.Argument(help="Path to a SQLite database file")]


def _require_database(db: pathlib.Path) -> FileBackedConfig:
    # SQLite would silently create a missing file on connect.
    if not db.is_file():
        raise FileNotFoundError(f"Database file not found: {db}")
    return FileBackedConfig(path=str(db))


@app.callback()
def global_callback(
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Logging level (DEBUG, INFO, ...)")] = None,
    json_logs: Annotated[bool, typer.Option("--json-logs", help="Emit logs as JSON lines")] = False,
):
    """
    sqlmigrate CLI Entry Point.
    """
    configure_logging(
        level=log_level or settings.log_level,
        json_format=json_logs or settings.log_json,
    )


@app.command()
@handle_cli_errors
def tables(db: DatabaseArgument):
    """
    List the user tables of a database.
    """
    with SqliteConnector() as connector:
        connector.connect(_require_database(db))
        names = connector.list_tables()

    if not names:
        console.print("[warning]No user tables found.[/warning]")
        return

    table = Table(title=f"Tables in {db}")
    table.add_column("Table", style="cyan", no_wrap=True)
    for name in names:
        table.add_row(name)
    console.print(table)


@app.command()
@handle_cli_errors
def schema(
    db: DatabaseArgument,
    table_name: Annotated[str, typer.Argument(metavar="TABLE", help="Table to describe")],
):
    """
    Show the introspected schema of a table.
    """
    with SqliteConnector() as connector:
        connector.connect(_require_database(db))
        table_schema = connector.get_schema(table_name)

    if table_schema is None:
        raise SchemaNotFoundError(table_name)

    table = Table(title=f"Schema of {table_schema.name}")
    table.add_column("#", justify="right")
    table.add_column("Column", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Nullable")
    table.add_column("PK")
    for column in table_schema.columns:
        table.add_row(
            str(column.ordinal_position),
            column.name,
            column.data_type or "-",
            "yes" if column.is_nullable else "no",
            "yes" if column.is_primary_key else "",
        )
    console.print(table)


@app.command()
@handle_cli_errors
def connectors():
    """
    List the installed connectors.
    """
    table = Table(title="Installed Connectors")
    table.add_column("Config Type", style="cyan", no_wrap=True)
    table.add_column("Class", style="magenta")
    for kind, cls in sorted(discover_connectors().items()):
        table.add_row(kind, f"{cls.__module__}.{cls.__name__}")
    console.print(table)


@app.command()
@handle_cli_errors
def migrate(
    table_name: Annotated[str, typer.Option("--table", "-t", help="Source table to copy")],
    source: Annotated[Optional[pathlib.Path], typer.Option("--source", "-s", help="Source SQLite database")] = None,
    target: Annotated[Optional[pathlib.Path], typer.Option("--target", help="Target SQLite database (defaults to the source)")] = None,
    target_table: Annotated[Optional[str], typer.Option("--target-table", help="Target table name")] = None,
    config: Annotated[Optional[pathlib.Path], typer.Option("--config", "-c", help="Path to a migration config JSON")] = None,
):
    """
    Copy one table's schema and rows into a target table.
    """
    if config is not None:
        migration_config = load_config(config)
        source_config = _require_database(source) if source else migration_config.source_config
        target_config = FileBackedConfig(path=str(target)) if target else migration_config.target_config
    elif source is not None:
        source_config = _require_database(source)
        target_config = FileBackedConfig(path=str(target or source))
    else:
        print_error("Either --source or --config is required.")
        sys.exit(1)

    target_table = target_table or settings.default_target_table(table_name)
    pipeline = MigrationPipeline(source_config, target_config, on_status=print_step)

    with MigrationRunner(report_failures=False) as runner:
        future = runner.submit(pipeline, table_name, target_table)
        try:
            outcome = future.result()
        except KeyboardInterrupt:
            runner.cancel(future)
            outcome = future.result()

    if outcome.success:
        print_success(outcome.message)
        return
    if outcome.cancelled:
        console.print("[warning]Migration cancelled.[/warning]")
    else:
        print_error(outcome.message)
    sys.exit(1)


@config_app.command("init")
@handle_cli_errors
def config_init(
    path: Annotated[pathlib.Path, typer.Argument(help="Where to write the config JSON")],
    source: Annotated[Optional[str], typer.Option("--source", help="Source SQLite database path")] = None,
    target: Annotated[Optional[str], typer.Option("--target", help="Target SQLite database path")] = None,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
):
    """
    Write a starter migration config.
    """
    if path.exists() and not force:
        print_error(f"{path} already exists. Use --force to overwrite.")
        sys.exit(1)
    save_config(default_config(source, target), path)
    print_success(f"Config written to {path}")


@config_app.command("show")
@handle_cli_errors
def config_show(path: Annotated[pathlib.Path, typer.Argument(help="Config JSON to display")]):
    """
    Print a migration config with secrets masked.
    """
    migration_config = load_config(path)
    console.print_json(json.dumps(migration_config.model_dump(), default=str))


def main():
    app()


if __name__ == "__main__":
    main()
