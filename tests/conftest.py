"""
Pytest fixtures for the wizard engine test suite.

Provides:
- An in-memory SQLite database, tables recreated per test
- Deterministic clock, filesystem object storage under tmp_path
- The default wizard registry and service factories
- Structured log capture

Environment Variables:
- DATABASE_URL: run against another database instead of in-memory SQLite.
"""

import json
import logging
import os
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from sirius_config.schema import CSV_MIME_TYPE, WizardSettings
from sirius_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from sirius_kernel.domain.clock import DeterministicClock
from sirius_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from sirius_wizards.services import FeedService, NavigationService, ReportService, RetentionService
from sirius_wizards.storage import FilesystemObjectStorage, SqlWorkerStore, WizardStore
from sirius_wizards.types import build_default_registry

DEFAULT_DATABASE_URL = "sqlite:///:memory:"
LEGAL_WORKERS = "gbhet_legal_workers"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture sirius logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, feed_service):
            feed_service.validate_feed_data(wizard_id)
            logs = captured_logs()
            assert any(r["message"] == "feed_validation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("sirius")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture(scope="session")
def engine(_configure_test_logging):
    engine = init_engine_from_url(os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL))
    yield engine
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    """A session over freshly created tables. Dropped after the test."""
    create_tables()
    s = get_session()
    yield s
    s.rollback()
    s.close()
    drop_tables()


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def settings(tmp_path) -> WizardSettings:
    return WizardSettings(
        database_url=DEFAULT_DATABASE_URL,
        object_storage_root=str(tmp_path / "objects"),
        batch_size=2,
        error_limit_per_type=3,
    )


@pytest.fixture
def object_storage(settings) -> FilesystemObjectStorage:
    return FilesystemObjectStorage(settings.object_storage_root)


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def wizard_store(session) -> WizardStore:
    return WizardStore(session)


@pytest.fixture
def worker_store(session) -> SqlWorkerStore:
    return SqlWorkerStore(session)


@pytest.fixture
def navigation(session, registry, clock) -> NavigationService:
    return NavigationService(session, registry, clock=clock)


@pytest.fixture
def feed_service(session, object_storage, registry, clock, settings) -> FeedService:
    return FeedService(session, object_storage, registry, clock=clock, settings=settings)


@pytest.fixture
def report_service(session, registry, clock) -> ReportService:
    return ReportService(session, registry, clock=clock)


@pytest.fixture
def retention_service(session, registry, clock, settings) -> RetentionService:
    return RetentionService(session, registry, clock=clock, settings=settings)


# =============================================================================
# Feed helpers
# =============================================================================


def csv_bytes(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def employer_id() -> UUID:
    return uuid4()


@pytest.fixture
def feed_wizard(navigation, employer_id):
    """A legal workers feed for March 2024."""
    return navigation.create_wizard(LEGAL_WORKERS, employer_id, {"year": 2024, "month": 3})


@pytest.fixture
def upload_csv(feed_service, feed_wizard):
    """Upload CSV lines to the feed wizard and return the stored file."""

    def _upload(*lines: str, wizard_id: UUID | None = None, file_name: str = "roster.csv"):
        return feed_service.upload_file(
            wizard_id or feed_wizard.id, file_name, csv_bytes(*lines), CSV_MIME_TYPE, "tester"
        )

    return _upload

