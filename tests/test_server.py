"""Tests for the FastAPI control server."""

import socket
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from notify_handler import server
from notify_handler.notifiers.log import LogNotifier
from notify_handler.store import NotificationRecord


def post_webhook(port: int, body: str) -> bytes:
    with socket.create_connection(("127.0.0.1", port), timeout=5) as sock:
        sock.sendall(f"POST /notify HTTP/1.1\r\nHost: localhost\r\n\r\n{body}".encode())
        chunks = []
        while chunk := sock.recv(4096):
            chunks.append(chunk)
    return b"".join(chunks)


class TestServerEndpoints:
    """Tests for control API endpoints."""

    @pytest.fixture
    def mock_notifier(self):
        """Create a mock desktop notifier."""
        notifier = AsyncMock()
        notifier.start = AsyncMock()
        notifier.stop = AsyncMock()
        notifier.show = AsyncMock()
        return notifier

    @pytest.fixture
    def client(self, mock_notifier, free_port, monkeypatch):
        """Create a test client with a mocked notifier and a free webhook port."""
        monkeypatch.setattr(server.settings, "webhook_host", "127.0.0.1")
        monkeypatch.setattr(server.settings, "webhook_port", free_port)
        with patch("notify_handler.server.get_notifier", return_value=mock_notifier):
            with TestClient(server.app) as client:
                yield client
        server.store.clear()

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "listener_running": "True"}

    def test_status_endpoint(self, client, free_port):
        response = client.get("/status")
        assert response.status_code == 200
        assert response.json() == {
            "running": True,
            "port": free_port,
            "last_error": None,
            "notifications": 0,
        }

    def test_stop_and_start(self, client):
        response = client.post("/listener/stop")
        assert response.status_code == 200
        assert response.json()["running"] is False
        assert client.get("/health").json()["listener_running"] == "False"

        response = client.post("/listener/start")
        assert response.json()["running"] is True

    def test_change_port(self, client, free_port, port_factory):
        new_port = port_factory()
        while new_port == free_port:
            new_port = port_factory()

        response = client.put("/listener/port", json={"port": new_port})

        assert response.status_code == 200
        assert response.json() == {"running": True, "port": new_port, "last_error": None}

    @pytest.mark.parametrize("port", [-1, 65536, "abc"])
    def test_change_port_validates(self, client, port):
        response = client.put("/listener/port", json={"port": port})
        assert response.status_code == 422

    def test_change_port_to_zero_is_bind_error(self, client, free_port):
        response = client.put("/listener/port", json={"port": 0})

        assert response.status_code == 200
        assert response.json() == {
            "running": False,
            "port": free_port,
            "last_error": "Invalid port: 0",
        }

    def test_change_port_in_use_reports_error(self, client):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen()
            busy_port = blocker.getsockname()[1]

            response = client.put("/listener/port", json={"port": busy_port})

        data = response.json()
        assert data["running"] is False
        assert data["port"] == busy_port
        assert data["last_error"]

    def test_webhook_is_stored_and_shown(self, client, free_port, mock_notifier):
        """Test a notification travelling from the webhook port to the API."""
        response = post_webhook(
            free_port, '{"title": "Deploy", "body": "done", "category": "success"}'
        )
        assert response.startswith(b"HTTP/1.1 200 OK")

        deadline = time.monotonic() + 5
        while not client.get("/notifications").json() and time.monotonic() < deadline:
            time.sleep(0.01)

        records = client.get("/notifications").json()
        assert len(records) == 1
        assert records[0]["title"] == "Deploy"
        assert records[0]["category"] == "success"
        mock_notifier.show.assert_awaited_once_with("Deploy", "done", "success")

    def test_list_notifications_since(self, client):
        now = datetime.now(timezone.utc)
        server.store.insert(
            NotificationRecord(title="old", body="b", timestamp=now - timedelta(hours=2))
        )
        server.store.insert(NotificationRecord(title="new", body="b", timestamp=now))

        all_records = client.get("/notifications").json()
        recent = client.get(
            "/notifications",
            params={"since": (now - timedelta(hours=1)).isoformat()},
        ).json()

        assert [r["title"] for r in all_records] == ["new", "old"]
        assert [r["title"] for r in recent] == ["new"]

    def test_mark_read(self, client):
        record = NotificationRecord(
            title="a", body="b", timestamp=datetime.now(timezone.utc)
        )
        server.store.insert(record)

        response = client.post(f"/notifications/{record.id}/read")

        assert response.status_code == 200
        assert response.json()["is_read"] is True

    def test_delete_notification(self, client):
        record = NotificationRecord(
            title="a", body="b", timestamp=datetime.now(timezone.utc)
        )
        server.store.insert(record)

        assert client.delete(f"/notifications/{record.id}").json() == {"deleted": 1}
        assert client.delete(f"/notifications/{record.id}").status_code == 404
        assert client.post(f"/notifications/{record.id}/read").status_code == 404

    def test_clear_notifications(self, client):
        for title in ("a", "b"):
            server.store.insert(
                NotificationRecord(
                    title=title, body="b", timestamp=datetime.now(timezone.utc)
                )
            )

        assert client.delete("/notifications").json() == {"deleted": 2}
        assert client.get("/status").json()["notifications"] == 0

    def test_openapi_available(self, client):
        response = client.get("/openapi.json")
        assert response.status_code == 200
        assert response.json()["info"]["title"] == "NotifyHandler"


class TestServerLifespan:
    """Tests for server lifespan management."""

    @pytest.fixture
    def mock_notifier(self):
        notifier = AsyncMock()
        notifier.start = AsyncMock()
        notifier.stop = AsyncMock()
        return notifier

    @pytest.fixture(autouse=True)
    def webhook_port(self, free_port, monkeypatch):
        monkeypatch.setattr(server.settings, "webhook_host", "127.0.0.1")
        monkeypatch.setattr(server.settings, "webhook_port", free_port)

    def test_lifespan_starts_and_stops(self, mock_notifier, free_port):
        with patch("notify_handler.server.get_notifier", return_value=mock_notifier):
            with TestClient(server.app):
                assert server.listener.is_running is True

        mock_notifier.start.assert_called_once()
        mock_notifier.stop.assert_called_once()
        assert server.listener.is_running is False
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", free_port))

    def test_notifier_failure_falls_back_to_log(self, mock_notifier):
        mock_notifier.start = AsyncMock(side_effect=OSError("no session bus"))

        with patch("notify_handler.server.get_notifier", return_value=mock_notifier):
            with TestClient(server.app):
                assert isinstance(server.notifier, LogNotifier)
                assert server.listener.is_running is True

    def test_bind_failure_does_not_stop_api(self, mock_notifier, free_port):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", free_port))
            blocker.listen()

            with patch("notify_handler.server.get_notifier", return_value=mock_notifier):
                with TestClient(server.app) as client:
                    data = client.get("/status").json()

        assert data["running"] is False
        assert data["last_error"]


class TestServerConfiguration:
    """Tests for server configuration."""

    def test_server_uses_settings(self):
        from notify_handler.core import Settings

        settings = Settings()
        assert settings.api_host == "127.0.0.1"
        assert settings.api_port == 9001
        assert settings.webhook_port == 19527
