import pytest
from unittest.mock import MagicMock

import requests

from gsdsync.engine import SyncEngine
from gsdsync.models.items import TaskItem
from gsdsync.services.remote import RemoteStore
from fakes import FakeRemoteStore


# --- Canned store records ---

ACTION_A = {
    "id": "a",
    "action": "Call the plumber",
    "created_at": "2025-01-01T09:00:00Z",
    "position": 1,
}

ACTION_B = {
    "id": "b",
    "action": "Draft quarterly report",
    "project_id": "p1",
    "size": "big",
    "energy": "high",
    "created_at": "2025-01-01T09:05:00Z",
    "position": 2,
}

ACTION_C = {
    "id": "c",
    "action": "Renew passport",
    "url": "https://example.com/passport",
    "size": "small",
    "energy": "low",
    "created_at": "2025-01-01T09:10:00Z",
    "position": 3,
}

PROJECT_P1 = {
    "id": "p1",
    "name": "Quarterly review",
    "position": 1,
    "deadline": "2025-03-31",
}

PROJECT_P2 = {
    "id": "p2",
    "name": "Move house",
    "position": 2,
}

INBOX_ITEM = {
    "id": "i1",
    "description": "Look into standing desks",
    "url": "https://example.com/desks",
    "created_at": "2025-01-02T10:00:00Z",
}


def make_action(item_id: str, position: float, **fields) -> TaskItem:
    return TaskItem(
        id=item_id,
        action=fields.pop("action", f"action {item_id}"),
        created_at=fields.pop("created_at", "2025-01-01T00:00:00Z"),
        position=position,
        **fields,
    )


def make_response(status: int = 200, payload=None) -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.content = b"" if payload is None else b"{}"
    resp.text = "" if payload is None else str(payload)
    resp.json.return_value = payload
    return resp


@pytest.fixture
def mock_session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def remote_store(mock_session):
    return RemoteStore("http://store.test/api/", mock_session, timeout=5)


@pytest.fixture
def fake_remote():
    """In-memory remote store seeded with A, B, C and both projects."""
    return FakeRemoteStore(
        actions=[ACTION_A, ACTION_B, ACTION_C],
        projects=[PROJECT_P1, PROJECT_P2],
        inbox=[INBOX_ITEM],
    )


@pytest.fixture
def engine(fake_remote):
    return SyncEngine(fake_remote)
