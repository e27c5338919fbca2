"""Tests for the message endpoints and RFC 3339 helpers."""
from datetime import datetime, timezone
from typing import List

import pytest

from app.messages.schemas import Message
from app.messages.store import InMemoryMessageStore, set_message_store
from app.messages.timeutil import format_rfc3339, parse_rfc3339


class FailingStore(InMemoryMessageStore):
    """Store whose appends always fail, as on a full or read-only disk."""

    def _write(self, message: Message) -> None:
        raise OSError("disk full")


def _post(client, content: str, sender: str = "Laptop") -> dict:
    response = client.post(
        "/api/messages",
        json={"content": content, "sender": sender, "type": "text"},
    )
    assert response.status_code == 201
    return response.json()


class TestTimeUtil:
    """Tests for RFC 3339 parsing."""

    @pytest.mark.parametrize("value, expected", [
        ("2024-05-01T12:00:00Z", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("2024-05-01T14:00:00+02:00", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("2024-05-01t12:00:00z", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("2024-05-01T12:00:00", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("2024-05-01T12:00:00.5Z", datetime(2024, 5, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)),
        ("2024-05-01T12:00:00.123456789+00:00",
         datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)),
    ])
    def test_parse_valid(self, value, expected):
        assert parse_rfc3339(value) == expected

    @pytest.mark.parametrize("value", [
        None, "", "not-a-date", "2024-05-01", "2024-13-01T00:00:00Z", "12:00:00",
    ])
    def test_parse_invalid(self, value):
        assert parse_rfc3339(value) is None

    def test_format_round_trip(self):
        now = datetime.now(timezone.utc)
        assert parse_rfc3339(format_rfc3339(now)) == now


class TestListAndSend:
    """Tests for GET/POST /api/messages."""

    def test_empty_log(self, api_client):
        response = api_client.get("/api/messages")

        assert response.status_code == 200
        assert response.json() == []

    def test_send_message(self, api_client):
        created = _post(api_client, "hello there")

        assert created["content"] == "hello there"
        assert created["sender"] == "Laptop"
        assert created["type"] == "text"
        assert created["id"]
        assert parse_rfc3339(created["timestamp"]) is not None
        assert created["fileSize"] is None
        assert created["mimeType"] is None

    def test_sent_messages_are_listed_in_order(self, api_client):
        first = _post(api_client, "one")
        second = _post(api_client, "two", sender="Phone")

        listed = api_client.get("/api/messages").json()

        assert [m["id"] for m in listed] == [first["id"], second["id"]]
        assert listed[1]["sender"] == "Phone"

    def test_send_message_is_persisted_to_log(self, api_client, message_store):
        _post(api_client, "on disk")

        assert message_store.path.exists()
        assert "on disk" in message_store.path.read_text(encoding="utf-8")

    def test_invalid_type_is_rejected(self, api_client):
        response = api_client.post(
            "/api/messages",
            json={"content": "x", "sender": "y", "type": "video"},
        )

        assert response.status_code == 422

    def test_append_failure_still_returns_message(self, api_client):
        set_message_store(FailingStore())

        response = api_client.post(
            "/api/messages",
            json={"content": "lost", "sender": "Phone", "type": "text"},
        )

        assert response.status_code == 201
        assert response.json()["content"] == "lost"

    def test_cors_header(self, api_client):
        response = api_client.get("/api/messages", headers={"Origin": "http://phone.local"})

        assert response.headers["access-control-allow-origin"] == "*"


class TestPoll:
    """Tests for GET /api/messages/poll."""

    def _poll(self, client, since=None) -> dict:
        params = {"since": since} if since is not None else {}
        response = client.get("/api/messages/poll", params=params)
        assert response.status_code == 200
        return response.json()

    def _ids(self, payload: dict) -> List[str]:
        return [m["id"] for m in payload["messages"]]

    def test_malformed_since_returns_everything(self, api_client):
        ids = [_post(api_client, str(i))["id"] for i in range(3)]

        payload = self._poll(api_client, "not-a-date")

        assert self._ids(payload) == ids
        assert parse_rfc3339(payload["timestamp"]) is not None

    def test_missing_since_returns_everything(self, api_client):
        ids = [_post(api_client, str(i))["id"] for i in range(2)]

        assert self._ids(self._poll(api_client)) == ids

    def test_incremental_sync(self, api_client):
        _post(api_client, "before")
        cursor = self._poll(api_client, "not-a-date")["timestamp"]

        assert self._poll(api_client, cursor)["messages"] == []

        after = _post(api_client, "after")
        payload = self._poll(api_client, cursor)

        assert self._ids(payload) == [after["id"]]
        assert parse_rfc3339(payload["timestamp"]) > parse_rfc3339(cursor)

    def test_since_before_message_includes_it(self, api_client):
        created = _post(api_client, "hi")
        ts = parse_rfc3339(created["timestamp"])

        assert self._ids(self._poll(api_client, format_rfc3339(ts.replace(year=ts.year - 1)))) == [
            created["id"]
        ]
        assert self._poll(api_client, created["timestamp"])["messages"] == []

    def test_poll_includes_upload_metadata(self, api_client, message_store):
        message_store.append(Message(
            content="abc.png", sender="Phone", type="image",
            filename="cat.png", file_size=3, mime_type="image/png",
        ))

        message = self._poll(api_client)["messages"][0]

        assert message["type"] == "image"
        assert message["fileSize"] == 3
        assert message["mimeType"] == "image/png"
