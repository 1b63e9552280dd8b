"""
Tests for the cashback upload endpoint.
"""
import pytest
from fastapi.testclient import TestClient

from cashback_ingest.core.config import settings
from cashback_ingest.core.errors import DatabasePoolError
from cashback_ingest.db.session import get_pool_factory
from cashback_ingest.main import app
from tests.utils.cashback_rows import build_numbered_export
from tests.utils.fake_db import FakeEngine, pool_factory


@pytest.fixture
def client():
    """Create a test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_engine():
    def _use(engine):
        app.dependency_overrides[get_pool_factory] = lambda: pool_factory(engine)
        return engine
    return _use


def _upload(client, data: bytes, params=None):
    return client.post(
        "/upload",
        params=params if params is not None else {"month": "May", "year": "2023"},
        files={"file": ("cashback.csv", data, "text/csv")},
    )


def test_upload_reports_elapsed_seconds_and_echoes_date(client, use_engine):
    engine = use_engine(FakeEngine())

    response = _upload(client, build_numbered_export(25))

    assert response.status_code == 200
    body = response.json()
    assert body["message"].startswith("Data inserted successfully in ")
    assert body["message"].endswith("seconds for month May, year 2023")
    assert body["summary"]["schema_name"] == "cashback_may_2023"
    assert body["summary"]["inserted"] == 25
    assert body["summary"]["stopped_at_error"] is False
    assert len(engine.inserted) == 25
    assert engine.disposed


def test_upload_still_succeeds_when_every_insert_fails(client, use_engine):
    engine = use_engine(FakeEngine(fail_waybills={str(1000 + i) for i in range(5)}))

    response = _upload(client, build_numbered_export(5))

    assert response.status_code == 200
    assert response.json()["summary"]["failed"] == 5
    assert engine.inserted == []


def test_missing_file_is_a_bad_request(client, use_engine):
    use_engine(FakeEngine())

    response = client.post("/upload", params={"month": "may", "year": "2023"})

    assert response.status_code == 400
    assert response.json() == {"message": "Failed to read the uploaded file"}


@pytest.mark.parametrize(
    "params",
    [
        {},
        {"month": "may"},
        {"year": "2023"},
        {"month": "may;drop", "year": "2023"},
        {"month": "  ", "year": "2023"},
    ],
)
def test_invalid_date_params_are_a_bad_request(client, use_engine, params):
    engine = use_engine(FakeEngine())

    response = _upload(client, build_numbered_export(1), params=params)

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid date parameters"}
    assert engine.connect_calls == 0


def test_pool_open_failure_is_a_server_error(client):
    def failing_pool(*args, **kwargs):
        raise DatabasePoolError(ConnectionRefusedError("connection refused"))

    app.dependency_overrides[get_pool_factory] = lambda: failing_pool

    response = _upload(client, build_numbered_export(1))

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to connect to the database"}


def test_request_deadline_returns_gateway_timeout(client, use_engine, monkeypatch):
    monkeypatch.setattr(settings, "ingest_request_timeout_seconds", 1)
    monkeypatch.setattr(settings, "ingest_worker_count", 1)
    engine = use_engine(FakeEngine(insert_delay=0.3))

    response = _upload(client, build_numbered_export(10))

    assert response.status_code == 504
    summary = response.json()["summary"]
    assert summary["timed_out"] is True
    assert summary["cancelled"] > 0
    assert summary["inserted"] + summary["failed"] + summary["cancelled"] == summary["jobs_queued"]
    assert engine.disposed


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
