"""
Migration pipeline: one source table -> one target table.

Stages run strictly in sequence: connect -> schema -> create -> extract -> load.
Any failure surfaces once as a ``MigrationStageError`` naming the stage and
tables; nothing is retried and side effects already committed (such as a
freshly created, empty target table) are left in place.
"""
from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from pydantic import BaseModel

from sqlmigrate.connectors.base import DatabaseConnector
from sqlmigrate.connectors.registry import create_connector
from sqlmigrate.errors import (
    ConfigurationError,
    ErrorCode,
    MigrationCancelledError,
    MigrationStageError,
    SchemaNotFoundError,
    StageError,
)
from sqlmigrate.logger import get_logger, run_context
from sqlmigrate.models import ConnectionConfig, MigrationConfig, MigrationResult
from sqlmigrate.settings import settings

logger = get_logger(__name__)

StatusCallback = Callable[[str], None]
ConnectorFactory = Callable[[ConnectionConfig], DatabaseConnector]


class CancelToken:
    """Thread-safe cancellation flag checked by the pipeline between stages."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout=timeout)


class MigrationPipeline:
    """
    Orchestrates one table copy between two connectors.

    Connectors are created from the configs by ``connector_factory`` when a
    run starts and are always disconnected when it ends. One pipeline issues
    a single call at a time per connector.
    """

    def __init__(
        self,
        source_config: ConnectionConfig,
        target_config: ConnectionConfig,
        *,
        connector_factory: ConnectorFactory = create_connector,
        on_status: Optional[StatusCallback] = None,
        cancel_token: Optional[CancelToken] = None,
    ):
        self.source_config = source_config
        self.target_config = target_config
        self._connector_factory = connector_factory
        self._on_status = on_status
        self.cancel_token = cancel_token or CancelToken()
        self._lock = threading.Lock()
        self._source: Optional[DatabaseConnector] = None
        self._target: Optional[DatabaseConnector] = None

    @classmethod
    def from_config(cls, config: MigrationConfig, **kwargs) -> "MigrationPipeline":
        """Builds a pipeline from a persisted migration configuration."""
        return cls(config.source_config, config.target_config, **kwargs)

    def report_status(self, message: str) -> None:
        logger.info(message)
        if self._on_status is not None:
            self._on_status(message)

    @contextmanager
    def _stage(self, stage: str, source_table: str, target_table: str) -> Iterator[None]:
        if self.cancel_token.is_cancelled():
            raise MigrationStageError(
                stage, source_table, target_table, MigrationCancelledError("Migration cancelled.")
            )
        logger.debug(f"Stage '{stage}' started.")
        try:
            yield
        except MigrationStageError:
            raise
        except Exception as e:
            if self.cancel_token.is_cancelled():
                cancelled = MigrationCancelledError(f"Migration cancelled during {stage}.")
                raise MigrationStageError(stage, source_table, target_table, cancelled) from e
            logger.error(f"Migration error from '{source_table}' to '{target_table}' during {stage}: {e}")
            raise MigrationStageError(stage, source_table, target_table, e) from e

    def run(self, source_table: str, target_table: str) -> MigrationResult:
        """
        Copies ``source_table`` into ``target_table``.

        Returns:
            MigrationResult: Row counts and whether the target table was created.

        Raises:
            MigrationStageError: On any failure, chained to the original error.
        """
        if not source_table.strip() or not target_table.strip():
            raise MigrationStageError(
                "validate", source_table, target_table,
                ConfigurationError("Source table and target table names are required."),
            )

        start = time.perf_counter()
        with run_context():
            self.report_status(f"Migration starting for '{source_table}' to '{target_table}'...")
            try:
                with self._stage("connect", source_table, target_table):
                    source = self._attach("source", self._connector_factory(self.source_config))
                    target = self._attach("target", self._connector_factory(self.target_config))
                    source.connect(self.source_config)
                    target.connect(self.target_config)

                with self._stage("schema", source_table, target_table):
                    self.report_status(f"Fetching schema for source table '{source_table}'...")
                    schema = source.get_schema(source_table)
                    if schema is None:
                        raise SchemaNotFoundError(source_table)

                with self._stage("create", source_table, target_table):
                    self.report_status(f"Creating target table '{target_table}'...")
                    created = target.create_table(target_table, schema)

                with self._stage("extract", source_table, target_table):
                    self.report_status(f"Extracting data from '{source_table}'...")
                    rows = source.extract_data(source_table)

                rows_loaded = 0
                if rows:
                    with self._stage("load", source_table, target_table):
                        self.report_status(f"Loading {len(rows)} rows into '{target_table}'...")
                        rows_loaded = target.load_data(target_table, rows)
                else:
                    logger.info(f"Source table '{source_table}' is empty; skipping load.")
            finally:
                self.teardown()

            result = MigrationResult(
                source_table=source_table,
                target_table=target_table,
                rows_extracted=len(rows),
                rows_loaded=rows_loaded,
                target_created=created,
                duration_ms=(time.perf_counter() - start) * 1000,
            )
            self.report_status(result.status_message)
            return result

    def _attach(self, role: str, connector: DatabaseConnector) -> DatabaseConnector:
        with self._lock:
            if role == "source":
                self._source = connector
            else:
                self._target = connector
        return connector

    def teardown(self) -> None:
        """Disconnects both connectors; closing a connection aborts its in-flight statement."""
        with self._lock:
            connectors = [c for c in (self._source, self._target) if c is not None]
            self._source = None
            self._target = None
        for connector in connectors:
            connector.disconnect()

    def cancel(self) -> None:
        """Requests cancellation and tears down live connections."""
        logger.warning("Migration cancellation requested.")
        self.cancel_token.cancel()
        self.teardown()


class MigrationOutcome(BaseModel):
    """Success/failure outcome reported to front ends by the runner."""
    success: bool
    result: Optional[MigrationResult] = None
    error: Optional[StageError] = None

    @property
    def message(self) -> str:
        if self.success and self.result is not None:
            return self.result.status_message
        if self.error is not None:
            return f"Migration failed: {self.error.message}"
        return "Migration failed."

    @property
    def cancelled(self) -> bool:
        return self.error is not None and self.error.error_code == ErrorCode.CANCELLED


class MigrationRunner:
    """
    Runs pipelines on worker threads so callers are never blocked.

    Progress is reported through each pipeline's status callback; the
    returned future resolves to a ``MigrationOutcome`` for every migration
    failure instead of raising it. With ``report_failures`` the failure
    message is also sent through the status callback; front ends that render
    failures themselves turn it off.
    """

    def __init__(self, executor: Optional[ThreadPoolExecutor] = None, report_failures: bool = True):
        self.report_failures = report_failures
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.worker_threads,
            thread_name_prefix="sqlmigrate-worker",
        )
        self._lock = threading.Lock()
        self._active: Dict[Future, MigrationPipeline] = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    def submit(self, pipeline: MigrationPipeline, source_table: str, target_table: str) -> "Future[MigrationOutcome]":
        future = self._executor.submit(self._execute, pipeline, source_table, target_table)
        with self._lock:
            self._active[future] = pipeline
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._active.pop(future, None)

    def _execute(self, pipeline: MigrationPipeline, source_table: str, target_table: str) -> MigrationOutcome:
        try:
            result = pipeline.run(source_table, target_table)
        except MigrationStageError as e:
            outcome = MigrationOutcome(success=False, error=e.to_stage_error())
            if self.report_failures:
                pipeline.report_status(outcome.message)
            return outcome
        except Exception as e:
            # Failures outside a stage, e.g. a status callback raising.
            logger.exception(f"Unexpected error while migrating '{source_table}' to '{target_table}'")
            return MigrationOutcome(
                success=False,
                error=StageError(
                    stage="runner",
                    message=str(e) or type(e).__name__,
                    error_code=ErrorCode.UNKNOWN_ERROR,
                    source_table=source_table,
                    target_table=target_table,
                ),
            )
        return MigrationOutcome(success=True, result=result)

    def cancel(self, future: Optional[Future] = None) -> None:
        """Cancels one submitted migration, or all active ones when ``future`` is None."""
        with self._lock:
            if future is None:
                pipelines = list(self._active.values())
            else:
                pipelines = [self._active[future]] if future in self._active else []
        for pipeline in pipelines:
            pipeline.cancel()

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
