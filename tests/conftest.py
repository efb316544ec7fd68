"""Pytest fixtures — per-test SQLite database, recording notifiers, client doubles."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from animia_sync.database import Base, get_db
from animia_sync.main import app
from animia_sync.services.notification_service import SyncNotifier, get_notifier
from animia_sync.client.cache import MemoryCache
from animia_sync.client.connectivity import ManualConnectivity, ONLINE
from animia_sync.client.errors import NetworkError
from animia_sync.client.queue import OfflineQueue

# Import all models so they register with Base.metadata
from animia_sync.models.beneficiary import Beneficiary                      # noqa: F401
from animia_sync.models.screening import Screening                          # noqa: F401
from animia_sync.models.intervention import Intervention                    # noqa: F401
from animia_sync.models.sync_receipt import SyncReceipt                      # noqa: F401
from animia_sync.models.notification import NotificationToken, NotificationLog  # noqa: F401


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session for direct assertions."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class RecordingPushSender:
    def __init__(self):
        self.sent = []

    def send(self, tokens, title, body, data):
        self.sent.append({"tokens": tokens, "title": title, "body": body, "data": data})


class RecordingSmsSender:
    def __init__(self):
        self.sent = []

    def send(self, phone, message):
        self.sent.append((phone, message))


@pytest.fixture(scope="function")
def notifier(session_factory):
    return SyncNotifier(session_factory, push_sender=RecordingPushSender(), sms_sender=RecordingSmsSender())


@pytest.fixture(scope="function")
def api_overrides(session_factory, notifier):
    """Point the app's database and notifier dependencies at the test database."""
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(api_overrides):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    with TestClient(api_overrides) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers: drive the sync endpoint the way the device does
# ---------------------------------------------------------------------------
def post_sync(client: TestClient, op: str, entity: str, payload: dict, key: str = None,
              timestamp: str = "2025-02-01T10:30:00+00:00"):
    """Helper — POST one envelope to /api/sync and return the response."""
    envelope = {"op": op, "entity": entity, "payload": payload, "timestamp": timestamp}
    if key is not None:
        envelope["idempotency_key"] = key
    return client.post("/api/sync", json=envelope)


def create_test_beneficiary(client: TestClient, name: str = "Asha Devi", **fields) -> dict:
    """Helper — register a beneficiary through the sync endpoint, return response JSON."""
    payload = {"name": name, "phone": "9876543210", "short_id": "AN-001", "doctor_name": "Dr. Rao"}
    payload.update(fields)
    resp = post_sync(client, "CREATE", "beneficiaries", payload)
    assert resp.status_code == 200, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Client-side doubles
# ---------------------------------------------------------------------------
class FakeTransport:
    """Records POSTed envelopes; ``outcomes`` scripts per-call results.

    Each outcome is either a dict (returned as the acknowledgement) or an
    exception instance (raised).  When outcomes run out every call succeeds.
    """

    def __init__(self, outcomes=None, gate=None):
        self.outcomes = list(outcomes or [])
        self.posted = []
        self.gate = gate

    async def post_mutation(self, envelope):
        self.posted.append(envelope)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else {"success": True}
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def fetch_beneficiaries(self, limit=None):
        raise NetworkError("not scripted")


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def queue(cache):
    return OfflineQueue(cache)


@pytest.fixture
def connectivity():
    return ManualConnectivity(ONLINE)
