"""
==============================================================================
API Integration Tests
==============================================================================

Tests for REST API endpoints.

==============================================================================
"""

from typing import List

from fastapi.testclient import TestClient


def create_product(client: TestClient, name: str, price: int = 100, categories: List[str] = None) -> dict:
    response = client.post(
        "/api/v1/products",
        json={
            "name": name,
            "description": f"{name} description",
            "price": price,
            "categories": categories or []
        }
    )
    assert response.status_code == 201
    return response.json()["product"]


def category_id(client: TestClient, name: str) -> int:
    categories = client.get("/api/v1/categories").json()["categories"]
    return next(c["id"] for c in categories if c["name"] == name)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_service_info(self, client: TestClient):
        """Test the root route lists the entry points."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["updates"] == "/ws"

    def test_health_check(self, client: TestClient):
        """Test health check returns status and catalog counts."""
        create_product(client, "Bread")

        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["catalog"] == "healthy"
        assert data["details"]["products"] == 1
        assert data["details"]["fallback_present"] is True

    def test_health_without_fallback_category(self, client: TestClient):
        """Test a catalog without "Other" is still reported healthy."""
        response = client.get("/api/v1/health")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["catalog"] == "healthy"
        assert data["details"]["fallback_present"] is False

    def test_readiness_check(self, client: TestClient):
        """Test readiness check."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_liveness_check(self, client: TestClient):
        """Test liveness check."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestProductEndpoints:
    """Tests for product endpoints."""

    def test_create_without_categories(self, client: TestClient):
        """Test a product created without categories is in "Other"."""
        product = create_product(client, "Bread", 50)

        assert product["name"] == "Bread"
        assert product["price"] == 50
        assert product["categories"] == ["Other"]
        assert product["created_at"] == product["modified_at"]

    def test_create_validation(self, client: TestClient):
        """Test non-positive prices and blank names are rejected."""
        response = client.post(
            "/api/v1/products",
            json={"name": " ", "description": "x", "price": 0}
        )
        assert response.status_code == 422

    def test_get_product(self, client: TestClient):
        """Test fetching a product by id."""
        created = create_product(client, "Bread", categories=["Bakery"])

        response = client.get(f"/api/v1/products/{created['id']}")

        assert response.status_code == 200
        assert response.json()["product"]["categories"] == ["Bakery"]

    def test_get_missing_product(self, client: TestClient):
        """Test the error envelope for an unknown id."""
        response = client.get("/api/v1/products/999")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "PRODUCT_NOT_FOUND"
        assert data["error"]["details"] == {"product_id": 999}

    def test_update_replaces_fallback(self, client: TestClient):
        """Test adding a real category to an "Other" product drops "Other"."""
        created = create_product(client, "Bread")

        response = client.put(
            f"/api/v1/products/{created['id']}",
            json={"price": 75, "categories": ["Grocery"]}
        )

        assert response.status_code == 200
        product = response.json()["product"]
        assert product["categories"] == ["Grocery"]
        assert product["price"] == 75

    def test_clear_categories(self, client: TestClient):
        """Test clearing moves the product to "Other"."""
        created = create_product(client, "Bread", categories=["Bakery", "Grocery"])

        response = client.delete(f"/api/v1/products/{created['id']}/categories")

        assert response.status_code == 200
        assert response.json()["product"]["categories"] == ["Other"]

    def test_delete_product(self, client: TestClient):
        """Test deleting a product."""
        created = create_product(client, "Bread")

        response = client.delete(f"/api/v1/products/{created['id']}")
        assert response.status_code == 200
        assert client.get(f"/api/v1/products/{created['id']}").status_code == 404

    def test_bulk_create_and_delete(self, client: TestClient):
        """Test batch endpoints."""
        response = client.post(
            "/api/v1/products/bulk",
            json=[
                {"name": "Bread", "description": "wheat", "price": 50},
                {"name": "Milk", "description": "whole", "price": 100, "categories": ["Dairy"]},
            ]
        )
        assert response.status_code == 201
        ids = [p["id"] for p in response.json()["products"]]

        response = client.request("DELETE", "/api/v1/products/bulk", json=ids + [999])
        assert response.status_code == 200
        assert response.json()["deleted_ids"] == sorted(ids)

        response = client.request("DELETE", "/api/v1/products/bulk", json=[999])
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCTS_NOT_FOUND"

    def test_search(self, client: TestClient):
        """Test combined search criteria over query parameters."""
        create_product(client, "Bread", 50, ["Grocery"])
        create_product(client, "Cheese", 900, ["A"])
        create_product(client, "Kettle", 5000, ["A"])
        create_product(client, "Milk", 100, ["Grocery"])

        response = client.get(
            "/api/v1/products",
            params={"name": "e", "price_max": 1000, "categories": ["A", "Grocery"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["products"]] == ["Bread", "Cheese"]
        assert data["total"] == 2

    def test_sorting(self, client: TestClient):
        """Test sort_by and direction."""
        create_product(client, "Bread", 50)
        create_product(client, "Cheese", 900)

        response = client.get("/api/v1/products", params={"sort_by": "price", "direction": "desc"})

        assert [p["name"] for p in response.json()["products"]] == ["Cheese", "Bread"]

    def test_invalid_sort_field(self, client: TestClient):
        """Test unknown sort fields are rejected."""
        response = client.get("/api/v1/products", params={"sort_by": "secret"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_SORT_FIELD"


class TestCategoryEndpoints:
    """Tests for category endpoints."""

    def test_create_category_is_idempotent(self, client: TestClient):
        """Test creating a taken name returns the existing category."""
        first = client.post("/api/v1/categories", json={"name": "Snacks"})
        second = client.post("/api/v1/categories", json={"name": "Snacks"})

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["category"]["id"] == second.json()["category"]["id"]

    def test_list_categories(self, client: TestClient):
        """Test listing categories with product names."""
        create_product(client, "Chips", categories=["Snacks"])
        client.post("/api/v1/categories/bulk", json=[{"name": "Bakery"}, {"name": "Dairy"}])

        response = client.get("/api/v1/categories", params={"sort_by": "name"})

        assert response.status_code == 200
        categories = response.json()["categories"]
        assert [c["name"] for c in categories] == ["Bakery", "Dairy", "Snacks"]
        assert categories[2]["products"] == ["Chips"]

    def test_category_sort_rejects_product_fields(self, client: TestClient):
        """Test categories only sort by id or name."""
        response = client.get("/api/v1/categories", params={"sort_by": "price"})
        assert response.status_code == 400

    def test_rename(self, client: TestClient):
        """Test renaming a category."""
        create_product(client, "Bread", categories=["Bakery"])
        bakery_id = category_id(client, "Bakery")

        response = client.put(f"/api/v1/categories/{bakery_id}", json={"name": "Baked goods"})

        assert response.status_code == 200
        assert response.json()["category"]["products"] == ["Bread"]

    def test_rename_to_taken_name(self, client: TestClient):
        """Test renaming onto another category's name is a conflict."""
        client.post("/api/v1/categories/bulk", json=[{"name": "Bakery"}, {"name": "Dairy"}])

        response = client.put(
            f"/api/v1/categories/{category_id(client, 'Bakery')}",
            json={"name": "Dairy"}
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CATEGORY_NAME_EXISTS"

    def test_delete_moves_products_to_fallback(self, client: TestClient):
        """Test deleting "Snacks" leaves its product in "Other"."""
        chips = create_product(client, "Chips", categories=["Snacks"])

        response = client.delete(f"/api/v1/categories/{category_id(client, 'Snacks')}")

        assert response.status_code == 200
        product = client.get(f"/api/v1/products/{chips['id']}").json()["product"]
        assert product["categories"] == ["Other"]

    def test_delete_missing_category(self, client: TestClient):
        """Test deleting an unknown category."""
        response = client.delete("/api/v1/categories/999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    def test_bulk_delete(self, client: TestClient):
        """Test batch category deletion."""
        create_product(client, "Bread", categories=["Bakery", "Grocery"])
        ids = [category_id(client, "Bakery"), category_id(client, "Grocery")]

        response = client.request("DELETE", "/api/v1/categories/bulk", json=ids)

        assert response.status_code == 200
        assert response.json()["deleted_ids"] == sorted(ids)
        names = [c["name"] for c in client.get("/api/v1/categories").json()["categories"]]
        assert names == ["Other"]
