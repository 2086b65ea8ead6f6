"""
Tests for the Firestore REST booking store.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import pendulum
import pytest
import requests

from slotbooker.adapters import firestore_store
from slotbooker.adapters.firestore_store import FirestoreBookingStore
from slotbooker.domain.exceptions import BookingStoreError
from slotbooker.domain.models import Actor

DAY = pendulum.date(2024, 11, 25)
ALICE = Actor(id="u-alice", display_name="Alice")
DOCUMENTS = "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else json.dumps(payload).encode()

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


class FakeFirestore:
    """Records requests and replays queued responses."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "json": json})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _document(time: str, **extra: str) -> Dict[str, Any]:
    fields = {"date": "2024-11-25", "time": time, **extra}
    return {
        "document": {
            "name": f"projects/demo/databases/(default)/documents/bookings/2024-11-25_{time.replace(':', '-')}",
            "fields": {name: {"stringValue": value} for name, value in fields.items()},
        },
        "readTime": "2024-11-25T08:00:00Z",
    }


@pytest.fixture
def fake(monkeypatch):
    def install(responses: List[Any]) -> FakeFirestore:
        fake_request = FakeFirestore(responses)
        monkeypatch.setattr(firestore_store.requests, "request", fake_request)
        return fake_request

    return install


def _store(api_key: Optional[str] = None, access_token: Optional[str] = None) -> FirestoreBookingStore:
    return FirestoreBookingStore(project_id="demo", api_key=api_key, access_token=access_token)


def test_read_booked_labels_queries_by_date(fake):
    """Labels come from a structured query filtered on the date field."""
    requests_made = fake([FakeResponse(payload=[_document("10:00"), {"readTime": "2024-11-25T08:00:00Z"}])])

    labels = asyncio.run(_store(api_key="k-123").read_booked_labels(DAY))

    assert labels == {"10:00"}
    call = requests_made.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{DOCUMENTS}:runQuery"
    assert call["params"] == {"key": "k-123"}
    field_filter = call["json"]["structuredQuery"]["where"]["fieldFilter"]
    assert field_filter["value"] == {"stringValue": "2024-11-25"}


def test_empty_query_result(fake):
    """A date without documents yields an empty set."""
    fake([FakeResponse(payload=[{"readTime": "2024-11-25T08:00:00Z"}])])

    assert asyncio.run(_store().read_booked_labels(DAY)) == set()


def test_commit_writes_only_missing_labels_in_one_call(fake):
    """Already booked labels are skipped; the rest go in a single commit."""
    requests_made = fake([
        FakeResponse(payload=[_document("10:00")]),
        FakeResponse(payload={"commitTime": "2024-11-25T08:00:01Z"}),
    ])

    committed = asyncio.run(_store().commit_bookings(DAY, ["10:00", "12:00", "13:00"], ALICE))

    assert committed == {"12:00", "13:00"}
    commit_call = requests_made.calls[1]
    assert commit_call["url"] == f"{DOCUMENTS}:commit"
    writes = commit_call["json"]["writes"]
    assert [w["update"]["name"].rsplit("/", 1)[-1] for w in writes] == ["2024-11-25_12-00", "2024-11-25_13-00"]
    fields = writes[0]["update"]["fields"]
    assert fields["actorId"] == {"stringValue": "u-alice"}
    assert fields["actorName"] == {"stringValue": "Alice"}
    assert fields["time"] == {"stringValue": "12:00"}


def test_commit_of_booked_labels_sends_no_write(fake):
    """Nothing is written when every label is already booked."""
    requests_made = fake([FakeResponse(payload=[_document("10:00")])])

    committed = asyncio.run(_store().commit_bookings(DAY, ["10:00"], ALICE))

    assert committed == set()
    assert len(requests_made.calls) == 1


def test_remove_existing_and_missing(fake):
    """Deleting an absent document is a no-op."""
    requests_made = fake([FakeResponse(payload={}), FakeResponse(status_code=404, payload={"error": {}})])
    store = _store()

    assert asyncio.run(store.remove_booking(DAY, "10:00")) is True
    assert asyncio.run(store.remove_booking(DAY, "10:00")) is False

    call = requests_made.calls[0]
    assert call["method"] == "DELETE"
    assert call["url"] == f"{DOCUMENTS}/bookings/2024-11-25_10-00"
    assert call["params"] == {"currentDocument.exists": "true"}


def test_network_failure_raises_store_error(fake):
    """Transport errors surface as BookingStoreError."""
    fake([requests.exceptions.ConnectionError("boom")])

    with pytest.raises(BookingStoreError):
        asyncio.run(_store().read_booked_labels(DAY))


def test_server_error_on_commit_raises_store_error(fake):
    """A failed commit is reported, not swallowed."""
    fake([FakeResponse(payload=[]), FakeResponse(status_code=503, payload={"error": {}})])

    with pytest.raises(BookingStoreError):
        asyncio.run(_store().commit_bookings(DAY, ["09:00"], ALICE))


def test_not_found_on_query_is_an_error(fake):
    """Only deletes treat 404 as a no-op."""
    fake([FakeResponse(status_code=404, payload={"error": {}})])

    with pytest.raises(BookingStoreError):
        asyncio.run(_store().read_booked_labels(DAY))


def test_list_bookings_parses_documents(fake):
    """Documents become Booking objects, legacy fields included."""
    fake([FakeResponse(payload=[
        _document("09:00", userId="legacy-1", userName="Carol", bookedAt="2024-11-20T08:00:00.000Z"),
        _document("11:00"),
    ])])

    bookings = asyncio.run(_store().list_bookings(DAY))

    assert [(b.time, b.actor_name) for b in bookings] == [("09:00", "Carol")]


def test_bearer_token_header():
    """An access token is sent as bearer authorization."""
    store = _store(access_token="tok")

    assert store.headers["Authorization"] == "Bearer tok"
    assert store.params == {}
