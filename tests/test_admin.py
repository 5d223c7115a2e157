"""Integration tests for the administrator endpoints."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from book_exchange.models.book import Book
from book_exchange.models.enums import AvailabilityStatus, ExchangeStatus, NotificationType
from book_exchange.models.exchange import ExchangeRequest
from book_exchange.models.message import Message
from book_exchange.models.notification import Notification
from book_exchange.models.user import User


class TestAdminAccess:
    """Only administrators may use /api/admin."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/admin/users"),
            ("get", "/api/admin/books"),
            ("get", "/api/admin/exchanges"),
            ("delete", "/api/admin/users/1"),
            ("delete", "/api/admin/books/1"),
            ("post", "/api/admin/exchanges/1/reconcile"),
        ],
    )
    def test_regular_user_is_forbidden(self, client: TestClient, owner, auth_headers, method, path):
        response = client.request(method, path, headers=auth_headers(owner))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "authorization_error"

    def test_anonymous_is_unauthorized(self, client: TestClient):
        assert client.get("/api/admin/users").status_code == 401


class TestAdminListings:
    """Listing endpoints."""

    def test_list_users(self, client: TestClient, admin, owner, requester, auth_headers):
        response = client.get("/api/admin/users", headers=auth_headers(admin))

        assert response.status_code == 200
        assert {u["username"] for u in response.json()} == {"admin", "owner", "requester"}

    def test_list_users_paginated(self, client: TestClient, admin, owner, requester, auth_headers):
        response = client.get("/api/admin/users?limit=2&offset=0", headers=auth_headers(admin))

        assert len(response.json()) == 2

    def test_list_books_includes_unavailable(self, client: TestClient, factory, admin, owner, auth_headers):
        factory.book(owner, title="Dune")
        factory.book(owner, title="Emma", availability_status=AvailabilityStatus.EXCHANGED)

        response = client.get("/api/admin/books", headers=auth_headers(admin))

        assert sorted(b["title"] for b in response.json()) == ["Dune", "Emma"]

    def test_list_exchanges(self, client: TestClient, factory, admin, owner, requester, auth_headers):
        factory.exchange(requester, factory.book(owner), status=ExchangeStatus.DECLINED)
        factory.exchange(requester, factory.book(owner, title="Emma"))

        response = client.get("/api/admin/exchanges", headers=auth_headers(admin))

        assert response.status_code == 200
        assert sorted(e["status"] for e in response.json()) == ["Declined", "Pending"]


class TestAdminDeletion:
    """Deleting users and books with their dependent records."""

    def test_delete_user_releases_counterparty_books(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        wanted = factory.book(owner, availability_status=AvailabilityStatus.PENDING_EXCHANGE)
        offered = factory.book(requester, title="Emma", availability_status=AvailabilityStatus.PENDING_EXCHANGE)
        exchange = factory.exchange(requester, wanted, offered, status=ExchangeStatus.ACCEPTED)
        test_session.add(
            Message(sender_id=requester.id, receiver_id=owner.id, exchange_request_id=exchange.id, content="Hi")
        )
        test_session.commit()
        owner_id, offered_id = owner.id, offered.id

        response = client.delete(f"/api/admin/users/{owner_id}", headers=auth_headers(admin))

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "User deleted successfully"
        assert data["deleted"]["books"] == 1
        assert data["deleted"]["exchange_requests"] == 1
        assert data["deleted"]["messages"] == 1

        assert test_session.exec(select(User).where(User.id == owner_id)).first() is None
        assert test_session.exec(select(ExchangeRequest)).all() == []
        remaining = test_session.exec(select(Book)).all()
        assert [b.id for b in remaining] == [offered_id]
        test_session.refresh(remaining[0])
        assert remaining[0].availability_status == AvailabilityStatus.AVAILABLE

    def test_delete_user_releases_books_of_sent_requests(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        wanted = factory.book(owner, availability_status=AvailabilityStatus.PENDING_EXCHANGE)
        factory.exchange(requester, wanted, status=ExchangeStatus.ACCEPTED)
        wanted_id = wanted.id

        response = client.delete(f"/api/admin/users/{requester.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        book = test_session.exec(select(Book).where(Book.id == wanted_id)).one()
        test_session.refresh(book)
        assert book.availability_status == AvailabilityStatus.AVAILABLE

    def test_delete_user_keeps_exchanged_books(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        wanted = factory.book(owner, availability_status=AvailabilityStatus.EXCHANGED)
        factory.exchange(requester, wanted, status=ExchangeStatus.COMPLETED)

        response = client.delete(f"/api/admin/users/{requester.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["deleted"]["exchange_requests"] == 1
        test_session.refresh(wanted)
        assert wanted.availability_status == AvailabilityStatus.EXCHANGED

    def test_admin_cannot_delete_self(self, client: TestClient, admin, auth_headers):
        response = client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400

    def test_delete_missing_user(self, client: TestClient, admin, auth_headers):
        assert client.delete("/api/admin/users/999", headers=auth_headers(admin)).status_code == 404

    def test_delete_book_in_active_exchange(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        wanted = factory.book(owner, availability_status=AvailabilityStatus.PENDING_EXCHANGE)
        offered = factory.book(requester, title="Emma", availability_status=AvailabilityStatus.PENDING_EXCHANGE)
        factory.exchange(requester, wanted, offered, status=ExchangeStatus.ACCEPTED)
        wanted_id, offered_id = wanted.id, offered.id

        response = client.delete(f"/api/admin/books/{wanted_id}", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["deleted"]["exchange_requests"] == 1
        assert test_session.exec(select(Book).where(Book.id == wanted_id)).first() is None
        offered = test_session.exec(select(Book).where(Book.id == offered_id)).one()
        test_session.refresh(offered)
        assert offered.availability_status == AvailabilityStatus.AVAILABLE

    def test_delete_missing_book(self, client: TestClient, admin, auth_headers):
        assert client.delete("/api/admin/books/999", headers=auth_headers(admin)).status_code == 404


class TestAdminExchangeRepair:
    """Forcing statuses and reconciling availability."""

    def test_force_status_back_to_pending(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        book = factory.book(owner, availability_status=AvailabilityStatus.EXCHANGED)
        exchange = factory.exchange(requester, book, status=ExchangeStatus.COMPLETED)

        response = client.put(
            f"/api/admin/exchanges/{exchange.id}/status",
            json={"status": "Pending"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Pending"
        test_session.refresh(book)
        assert book.availability_status == AvailabilityStatus.AVAILABLE

        alerts = test_session.exec(
            select(Notification).where(Notification.type == NotificationType.SYSTEM_ALERT)
        ).all()
        assert {n.recipient_id for n in alerts} == {owner.id, requester.id}

    def test_force_cancel_of_completed_keeps_books_exchanged(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        book = factory.book(owner, availability_status=AvailabilityStatus.EXCHANGED)
        exchange = factory.exchange(requester, book, status=ExchangeStatus.COMPLETED)

        response = client.put(
            f"/api/admin/exchanges/{exchange.id}/status",
            json={"status": "Cancelled"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"
        test_session.refresh(book)
        assert book.availability_status == AvailabilityStatus.EXCHANGED

    def test_force_unknown_status(self, client: TestClient, factory, admin, owner, requester, auth_headers):
        exchange = factory.exchange(requester, factory.book(owner))

        response = client.put(
            f"/api/admin/exchanges/{exchange.id}/status",
            json={"status": "Lost"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400

    def test_reconcile_repairs_drift(
        self, client: TestClient, factory, test_session, admin, owner, requester, auth_headers
    ):
        wanted = factory.book(owner)
        offered = factory.book(requester, title="Emma")
        exchange = factory.exchange(requester, wanted, offered, status=ExchangeStatus.COMPLETED)
        url = f"/api/admin/exchanges/{exchange.id}/reconcile"

        first = client.post(url, headers=auth_headers(admin))

        assert first.status_code == 200
        data = first.json()
        assert data["exchangeId"] == exchange.id
        assert data["changed"] == 2
        assert {b["availabilityStatus"] for b in data["books"]} == {"Exchanged"}

        second = client.post(url, headers=auth_headers(admin))
        assert second.json()["changed"] == 0

    def test_reconcile_missing_exchange(self, client: TestClient, admin, auth_headers):
        assert client.post("/api/admin/exchanges/999/reconcile", headers=auth_headers(admin)).status_code == 404
