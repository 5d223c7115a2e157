"""Integration tests for the exchange endpoints."""

from fastapi.testclient import TestClient

from book_exchange.models.enums import AvailabilityStatus, ExchangeStatus


class TestExchangeEndpoints:
    """Integration tests for /api/exchanges."""

    def test_create_exchange(self, client: TestClient, factory, owner, requester, auth_headers):
        wanted = factory.book(owner, title="Dune")
        offered = factory.book(requester, title="Emma")

        response = client.post(
            "/api/exchanges",
            json={
                "requestedBookId": wanted.id,
                "offeredBookId": offered.id,
                "requestMessage": "Happy to swap",
            },
            headers=auth_headers(requester),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Pending"
        assert data["requesterId"] == requester.id
        assert data["ownerId"] == owner.id
        assert data["requestedBook"]["title"] == "Dune"
        assert data["offeredBook"]["availabilityStatus"] == "Available"
        assert data["requestMessage"] == "Happy to swap"
        assert data["version"] == 1

    def test_create_exchange_requires_auth(self, client: TestClient, factory, owner):
        wanted = factory.book(owner)

        response = client.post("/api/exchanges", json={"requestedBookId": wanted.id})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "authentication_error"

    def test_create_exchange_invalid_token(self, client: TestClient, factory, owner, invalid_auth_headers):
        wanted = factory.book(owner)

        response = client.post(
            "/api/exchanges", json={"requestedBookId": wanted.id}, headers=invalid_auth_headers
        )

        assert response.status_code == 401

    def test_request_own_book_is_rejected(self, client: TestClient, factory, owner, auth_headers):
        book = factory.book(owner)

        response = client.post(
            "/api/exchanges", json={"requestedBookId": book.id}, headers=auth_headers(owner)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    def test_request_reserved_book_is_precondition_error(
        self, client: TestClient, factory, owner, requester, auth_headers
    ):
        book = factory.book(owner, availability_status=AvailabilityStatus.PENDING_EXCHANGE)

        response = client.post(
            "/api/exchanges", json={"requestedBookId": book.id}, headers=auth_headers(requester)
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "precondition_error"
        assert error["details"]["current_state"] == "Pending Exchange"

    def test_duplicate_request_conflicts(self, client: TestClient, factory, owner, requester, auth_headers):
        book = factory.book(owner)
        factory.exchange(requester, book)

        response = client.post(
            "/api/exchanges", json={"requestedBookId": book.id}, headers=auth_headers(requester)
        )

        assert response.status_code == 409

    def test_missing_book(self, client: TestClient, requester, auth_headers):
        response = client.post(
            "/api/exchanges", json={"requestedBookId": 999}, headers=auth_headers(requester)
        )

        assert response.status_code == 404

    def test_my_requests(self, client: TestClient, factory, owner, requester, auth_headers):
        factory.exchange(requester, factory.book(owner, title="Dune"))
        factory.exchange(owner, factory.book(requester, title="Emma"))

        response = client.get("/api/exchanges/myrequests", headers=auth_headers(requester))

        assert response.status_code == 200
        data = response.json()
        assert [r["requestedBook"]["title"] for r in data["sentRequests"]] == ["Dune"]
        assert [r["requestedBook"]["title"] for r in data["receivedRequests"]] == ["Emma"]

    def test_get_exchange_party_only(
        self, client: TestClient, factory, owner, requester, outsider, admin, auth_headers
    ):
        exchange = factory.exchange(requester, factory.book(owner))

        assert client.get(f"/api/exchanges/{exchange.id}", headers=auth_headers(owner)).status_code == 200
        assert client.get(f"/api/exchanges/{exchange.id}", headers=auth_headers(admin)).status_code == 200
        assert client.get(f"/api/exchanges/{exchange.id}", headers=auth_headers(outsider)).status_code == 403

    def test_full_lifecycle(self, client: TestClient, factory, test_session, owner, requester, auth_headers):
        wanted = factory.book(owner)
        offered = factory.book(requester)
        exchange = factory.exchange(requester, wanted, offered)
        url = f"/api/exchanges/{exchange.id}/status"

        accepted = client.put(url, json={"status": "Accepted"}, headers=auth_headers(owner))
        assert accepted.status_code == 200
        assert accepted.json()["requestedBook"]["availabilityStatus"] == "Pending Exchange"

        completed = client.put(url, json={"status": "Completed"}, headers=auth_headers(requester))
        assert completed.status_code == 200
        body = completed.json()
        assert body["status"] == "Completed"
        assert body["completedAt"] is not None
        assert body["version"] == 3

        test_session.refresh(wanted)
        test_session.refresh(offered)
        assert wanted.availability_status == AvailabilityStatus.EXCHANGED
        assert offered.availability_status == AvailabilityStatus.EXCHANGED

    def test_non_party_gets_forbidden_before_precondition(
        self, client: TestClient, factory, owner, requester, outsider, auth_headers
    ):
        exchange = factory.exchange(requester, factory.book(owner), status=ExchangeStatus.COMPLETED)

        response = client.put(
            f"/api/exchanges/{exchange.id}/status",
            json={"status": "Cancelled"},
            headers=auth_headers(outsider),
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "authorization_error"

    def test_invalid_transition(self, client: TestClient, factory, owner, requester, auth_headers):
        exchange = factory.exchange(requester, factory.book(owner), status=ExchangeStatus.DECLINED)

        response = client.put(
            f"/api/exchanges/{exchange.id}/status",
            json={"status": "Accepted"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "precondition_error"

    def test_unknown_status(self, client: TestClient, factory, owner, requester, auth_headers):
        exchange = factory.exchange(requester, factory.book(owner))

        response = client.put(
            f"/api/exchanges/{exchange.id}/status",
            json={"status": "Shipped"},
            headers=auth_headers(owner),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    def test_missing_status_body(self, client: TestClient, factory, owner, requester, auth_headers):
        exchange = factory.exchange(requester, factory.book(owner))

        response = client.put(
            f"/api/exchanges/{exchange.id}/status", json={}, headers=auth_headers(owner)
        )

        assert response.status_code == 422
