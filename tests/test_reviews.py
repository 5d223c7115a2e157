"""Integration tests for reviews."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from book_exchange.models.enums import ExchangeStatus, NotificationType
from book_exchange.models.notification import Notification


class TestReviewEndpoints:
    """Integration tests for /api/reviews."""

    @pytest.fixture
    def completed(self, factory, owner, requester):
        return factory.exchange(requester, factory.book(owner), status=ExchangeStatus.COMPLETED)

    def test_add_review(self, client: TestClient, test_session, completed, owner, requester, auth_headers):
        response = client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": completed.id, "rating": 5, "comment": " Great swap "},
            headers=auth_headers(requester),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["rating"] == 5
        assert data["comment"] == "Great swap"
        assert data["exchangeRequestId"] == completed.id
        assert data["reviewer"]["username"] == "requester"

        notification = test_session.exec(select(Notification)).one()
        assert notification.recipient_id == owner.id
        assert notification.type == NotificationType.REVIEW
        assert notification.message == "requester left you a 5-star review."

    def test_review_twice_conflicts(self, client: TestClient, completed, owner, requester, auth_headers):
        body = {"revieweeId": owner.id, "exchangeId": completed.id, "rating": 4}
        assert client.post("/api/reviews", json=body, headers=auth_headers(requester)).status_code == 201

        response = client.post("/api/reviews", json=body, headers=auth_headers(requester))

        assert response.status_code == 409

    def test_both_parties_can_review(self, client: TestClient, completed, owner, requester, auth_headers):
        first = client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": completed.id, "rating": 4},
            headers=auth_headers(requester),
        )
        second = client.post(
            "/api/reviews",
            json={"revieweeId": requester.id, "exchangeId": completed.id, "rating": 3},
            headers=auth_headers(owner),
        )

        assert first.status_code == 201
        assert second.status_code == 201

    def test_review_requires_completed_exchange(
        self, client: TestClient, factory, owner, requester, auth_headers
    ):
        exchange = factory.exchange(requester, factory.book(owner), status=ExchangeStatus.ACCEPTED)

        response = client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": exchange.id, "rating": 5},
            headers=auth_headers(requester),
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "precondition_error"
        assert error["details"]["current_state"] == "Accepted"

    def test_review_yourself(self, client: TestClient, completed, requester, auth_headers):
        response = client.post(
            "/api/reviews",
            json={"revieweeId": requester.id, "exchangeId": completed.id, "rating": 5},
            headers=auth_headers(requester),
        )

        assert response.status_code == 400

    def test_outsider_cannot_review(self, client: TestClient, completed, owner, outsider, auth_headers):
        response = client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": completed.id, "rating": 1},
            headers=auth_headers(outsider),
        )

        assert response.status_code == 403

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, client: TestClient, completed, owner, requester, auth_headers, rating):
        response = client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": completed.id, "rating": rating},
            headers=auth_headers(requester),
        )

        assert response.status_code == 422

    def test_user_reviews_with_average(
        self, client: TestClient, factory, owner, requester, outsider, auth_headers
    ):
        first = factory.exchange(requester, factory.book(owner, title="Dune"), status=ExchangeStatus.COMPLETED)
        second = factory.exchange(outsider, factory.book(owner, title="Emma"), status=ExchangeStatus.COMPLETED)
        client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": first.id, "rating": 5},
            headers=auth_headers(requester),
        )
        client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": second.id, "rating": 2},
            headers=auth_headers(outsider),
        )

        response = client.get(f"/api/reviews/user/{owner.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["numReviews"] == 2
        assert data["averageRating"] == 3.5
        assert len(data["reviews"]) == 2

    def test_user_without_reviews(self, client: TestClient, owner):
        data = client.get(f"/api/reviews/user/{owner.id}").json()

        assert data == {"reviews": [], "averageRating": 0.0, "numReviews": 0}

    def test_reviews_of_missing_user(self, client: TestClient):
        assert client.get("/api/reviews/user/999").status_code == 404

    def test_review_status(self, client: TestClient, completed, owner, requester, auth_headers):
        url = f"/api/reviews/exchange-status/{completed.id}"

        before = client.get(url, headers=auth_headers(requester)).json()
        assert before["canReview"] is True
        assert before["otherPartyId"] == owner.id
        assert before["otherPartyUsername"] == "owner"

        client.post(
            "/api/reviews",
            json={"revieweeId": owner.id, "exchangeId": completed.id, "rating": 4},
            headers=auth_headers(requester),
        )

        after = client.get(url, headers=auth_headers(requester)).json()
        assert after["canReview"] is False
        assert after["hasReviewed"] is True

    def test_review_status_before_completion(self, client: TestClient, factory, owner, requester, auth_headers):
        exchange = factory.exchange(requester, factory.book(owner))

        data = client.get(f"/api/reviews/exchange-status/{exchange.id}", headers=auth_headers(owner)).json()

        assert data["canReview"] is False
        assert data["message"] == "Exchange not completed yet."

    def test_review_status_for_outsider(self, client: TestClient, completed, outsider, auth_headers):
        response = client.get(f"/api/reviews/exchange-status/{completed.id}", headers=auth_headers(outsider))

        assert response.status_code == 403
