"""
Pytest configuration and fixtures for the cashback ingestion tests.

No live database is needed: pipeline and endpoint tests run against the
in-memory engine from ``tests.utils.fake_db``.
"""

import os
import tempfile
from pathlib import Path

# Keep the diagnostics log out of the working tree; must run before settings load.
os.environ.setdefault("LOG_FILE", str(Path(tempfile.gettempdir()) / "cashback_ingest_test.log"))

import pytest

from tests.utils.fake_db import FakeEngine


@pytest.fixture
def fake_engine():
    return FakeEngine()
