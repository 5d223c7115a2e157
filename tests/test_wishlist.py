"""Integration tests for the wishlist."""

from fastapi.testclient import TestClient


class TestWishlistEndpoints:
    """Integration tests for /api/wishlist."""

    def test_add_listed_book(self, client: TestClient, factory, owner, requester, auth_headers):
        book = factory.book(owner, title="Dune", author="Frank Herbert")

        response = client.post("/api/wishlist", json={"bookId": book.id}, headers=auth_headers(requester))

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Dune"
        assert data["author"] == "Frank Herbert"
        assert data["book"]["id"] == book.id
        assert data["book"]["availabilityStatus"] == "Available"

    def test_add_wanted_title(self, client: TestClient, requester, auth_headers):
        response = client.post(
            "/api/wishlist",
            json={"title": "Ulysses", "author": "James Joyce", "notes": "Any edition"},
            headers=auth_headers(requester),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["bookId"] is None
        assert data["book"] is None
        assert data["notes"] == "Any edition"

    def test_title_without_author(self, client: TestClient, requester, auth_headers):
        response = client.post("/api/wishlist", json={"title": "Ulysses"}, headers=auth_headers(requester))

        assert response.status_code == 400

    def test_duplicate_book(self, client: TestClient, factory, owner, requester, auth_headers):
        book = factory.book(owner)
        client.post("/api/wishlist", json={"bookId": book.id}, headers=auth_headers(requester))

        response = client.post("/api/wishlist", json={"bookId": book.id}, headers=auth_headers(requester))

        assert response.status_code == 409

    def test_duplicate_title_ignores_case(self, client: TestClient, requester, auth_headers):
        client.post(
            "/api/wishlist", json={"title": "Ulysses", "author": "James Joyce"}, headers=auth_headers(requester)
        )

        response = client.post(
            "/api/wishlist", json={"title": "ULYSSES", "author": "james joyce"}, headers=auth_headers(requester)
        )

        assert response.status_code == 409

    def test_missing_book(self, client: TestClient, requester, auth_headers):
        response = client.post("/api/wishlist", json={"bookId": 999}, headers=auth_headers(requester))

        assert response.status_code == 404

    def test_list_only_own(self, client: TestClient, factory, owner, requester, auth_headers):
        book = factory.book(owner)
        client.post("/api/wishlist", json={"bookId": book.id}, headers=auth_headers(requester))
        client.post("/api/wishlist", json={"title": "Emma", "author": "Jane Austen"}, headers=auth_headers(owner))

        response = client.get("/api/wishlist", headers=auth_headers(requester))

        assert response.status_code == 200
        assert [item["bookId"] for item in response.json()] == [book.id]

    def test_status(self, client: TestClient, factory, owner, requester, auth_headers):
        book = factory.book(owner)
        url = f"/api/wishlist/status/{book.id}"

        assert client.get(url, headers=auth_headers(requester)).json() == {
            "isInWishlist": False,
            "wishlistItemId": None,
        }

        item = client.post("/api/wishlist", json={"bookId": book.id}, headers=auth_headers(requester)).json()

        assert client.get(url, headers=auth_headers(requester)).json() == {
            "isInWishlist": True,
            "wishlistItemId": item["id"],
        }

    def test_remove(self, client: TestClient, requester, auth_headers):
        item = client.post(
            "/api/wishlist", json={"title": "Emma", "author": "Jane Austen"}, headers=auth_headers(requester)
        ).json()

        response = client.delete(f"/api/wishlist/{item['id']}", headers=auth_headers(requester))

        assert response.status_code == 200
        assert response.json() == {"message": "Removed from wishlist"}
        assert client.get("/api/wishlist", headers=auth_headers(requester)).json() == []

    def test_remove_other_users_item(self, client: TestClient, owner, requester, auth_headers):
        item = client.post(
            "/api/wishlist", json={"title": "Emma", "author": "Jane Austen"}, headers=auth_headers(requester)
        ).json()

        response = client.delete(f"/api/wishlist/{item['id']}", headers=auth_headers(owner))

        assert response.status_code == 403

    def test_remove_missing(self, client: TestClient, requester, auth_headers):
        assert client.delete("/api/wishlist/999", headers=auth_headers(requester)).status_code == 404
