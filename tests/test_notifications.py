"""Tests for the notification inbox and the real-time channel."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from book_exchange.models.enums import NotificationType
from book_exchange.models.notification import Notification
from book_exchange.services.notification_service import NotificationService
from book_exchange.services.realtime import ConnectionManager


class FakeWebSocket:
    """Records what the server sends; optionally fails on send."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.accepted = False
        self.sent: list[str] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(text)


class TestConnectionManager:
    """Test cases for the per-user channel registry."""

    @pytest.mark.asyncio
    async def test_send_to_every_socket_of_user(self, connections: ConnectionManager):
        first, second, other = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
        await connections.connect(first, 1)
        await connections.connect(second, 1)
        await connections.connect(other, 2)

        delivered = await connections.send_to_user(1, {"event": "ping"})

        assert delivered == 2
        assert first.sent == ['{"event": "ping"}']
        assert second.sent == ['{"event": "ping"}']
        assert other.sent == []
        assert connections.get_connection_stats() == {"connected_users": 2, "total_connections": 3}

    @pytest.mark.asyncio
    async def test_failed_socket_is_dropped(self, connections: ConnectionManager):
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
        await connections.connect(healthy, 1)
        await connections.connect(broken, 1)

        delivered = await connections.send_to_user(1, {"event": "ping"})

        assert delivered == 1
        assert connections.get_connection_stats()["total_connections"] == 1

    @pytest.mark.asyncio
    async def test_offline_user(self, connections: ConnectionManager):
        assert await connections.send_to_user(42, {"event": "ping"}) == 0
        assert not connections.is_connected(42)

    @pytest.mark.asyncio
    async def test_disconnect_removes_user(self, connections: ConnectionManager):
        socket = FakeWebSocket()
        await connections.connect(socket, 1)

        connections.disconnect(socket)
        connections.disconnect(socket)

        assert not connections.is_connected(1)
        assert connections.get_connection_stats() == {"connected_users": 0, "total_connections": 0}


class TestNotificationService:
    """Test cases for NotificationService."""

    @pytest.mark.asyncio
    async def test_notify_stores_and_pushes(
        self, notifier: NotificationService, connections: ConnectionManager, owner, requester
    ):
        socket = FakeWebSocket()
        await connections.connect(socket, owner.id)

        notification = await notifier.notify(
            recipient_id=owner.id,
            sender_id=requester.id,
            type=NotificationType.EXCHANGE_REQUEST,
            reference_id=7,
            message="requester wants your book",
        )

        assert notification.id is not None
        assert not notification.is_read
        assert len(socket.sent) == 1
        assert '"event": "newNotification"' in socket.sent[0]
        assert '"recipientId": %d' % owner.id in socket.sent[0]
        assert '"type": "exchange_request"' in socket.sent[0]

    @pytest.mark.asyncio
    async def test_push_failure_keeps_notification(
        self, notifier: NotificationService, connections: ConnectionManager, owner
    ):
        await connections.connect(FakeWebSocket(fail=True), owner.id)

        await notifier.notify(
            recipient_id=owner.id,
            sender_id=None,
            type=NotificationType.SYSTEM_ALERT,
            reference_id=None,
            message="Maintenance tonight",
        )

        assert await notifier.unread_count(owner.id) == 1

    @pytest.mark.asyncio
    async def test_list_newest_first(self, notifier: NotificationService, owner):
        for text in ("first", "second"):
            await notifier.notify(owner.id, None, NotificationType.SYSTEM_ALERT, None, text)

        notifications = await notifier.list_notifications(owner.id)

        assert [n.message for n in notifications] == ["second", "first"]


class TestNotificationEndpoints:
    """Integration tests for /api/notifications."""

    @pytest.fixture
    def inbox(self, test_session, owner, requester):
        items = [
            Notification(recipient_id=owner.id, type=NotificationType.MESSAGE, message="one"),
            Notification(recipient_id=owner.id, type=NotificationType.MESSAGE, message="two"),
            Notification(recipient_id=requester.id, type=NotificationType.MESSAGE, message="three"),
        ]
        test_session.add_all(items)
        test_session.commit()
        for item in items:
            test_session.refresh(item)
        return items

    def test_list_only_own(self, client: TestClient, inbox, owner, auth_headers):
        response = client.get("/api/notifications", headers=auth_headers(owner))

        assert response.status_code == 200
        assert sorted(n["message"] for n in response.json()) == ["one", "two"]

    def test_mark_read(self, client: TestClient, inbox, owner, auth_headers):
        response = client.put(f"/api/notifications/{inbox[0].id}/read", headers=auth_headers(owner))

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Notification marked as read."
        assert data["notification"]["isRead"] is True
        assert data["notification"]["readAt"] is not None
        assert client.get("/api/notifications/unread-count", headers=auth_headers(owner)).json() == {"count": 1}

    def test_mark_read_of_other_user(self, client: TestClient, inbox, requester, auth_headers):
        response = client.put(f"/api/notifications/{inbox[0].id}/read", headers=auth_headers(requester))

        assert response.status_code == 403

    def test_mark_read_missing(self, client: TestClient, owner, auth_headers):
        response = client.put("/api/notifications/999/read", headers=auth_headers(owner))

        assert response.status_code == 404

    def test_mark_all_read(self, client: TestClient, inbox, owner, requester, auth_headers):
        response = client.put("/api/notifications/mark-all-read", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["updated"] == 2
        assert client.get("/api/notifications/unread-count", headers=auth_headers(owner)).json() == {"count": 0}
        assert client.get("/api/notifications/unread-count", headers=auth_headers(requester)).json() == {"count": 1}

    def test_requires_auth(self, client: TestClient):
        assert client.get("/api/notifications").status_code == 401


class TestNotificationChannel:
    """Integration tests for the WebSocket channel."""

    def test_missing_token_is_rejected(self, client: TestClient):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/notifications"):
                pass

        assert exc_info.value.code == 1008

    def test_invalid_token_is_rejected(self, client: TestClient):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws/notifications?token=invalid_token"):
                pass

        assert exc_info.value.code == 1008

    def test_exchange_request_is_pushed_to_owner(
        self, client: TestClient, factory, owner, requester, auth_headers
    ):
        book = factory.book(owner, title="Dune")
        token = auth_headers(owner)["Authorization"].split(" ", 1)[1]

        with client.websocket_connect(f"/ws/notifications?token={token}") as websocket:
            response = client.post(
                "/api/exchanges", json={"requestedBookId": book.id}, headers=auth_headers(requester)
            )
            assert response.status_code == 201

            event = websocket.receive_json()

        assert event["event"] == "newNotification"
        assert event["notification"]["type"] == "exchange_request"
        assert event["notification"]["recipientId"] == owner.id
        assert event["notification"]["referenceId"] == response.json()["id"]
