"""
Tests for the Orders API (web POS checkout)

Author: TM3
Date: 2025-12-02
"""
import pytest


@pytest.fixture
def dosa(make_product):
    return make_product(name="Masala Dosa", price="10.00", quantity=5)


def _checkout(client, items, **extra):
    body = {"items": [{"product_id": pid, "quantity": qty} for pid, qty in items]}
    body.update(extra)
    return client.post("/api/v1/orders/checkout", json=body)


class TestCheckoutAPI:
    """Test POST /api/v1/orders/checkout"""

    def test_checkout_created(self, client, dosa, stock_of):
        response = _checkout(client, [(dosa.id, 3)], customer_name="Asha", payment_method="Cash")

        assert response.status_code == 201
        order = response.json()
        assert order["total_price"] == 30.0
        assert order["customer_ref"] == "Asha"
        assert order["payment_method"] == "Cash"
        assert order["channel"] == "pos"
        assert order["lines"][0]["quantity"] == 3
        assert stock_of(dosa.id) == 2

    def test_root_post_alias(self, client, dosa):
        response = client.post("/api/v1/orders/", json={"items": [{"product_id": dosa.id, "quantity": 1}]})

        assert response.status_code == 201
        assert response.json()["customer_ref"] == "Walk-in Customer"

    def test_blank_customer_name_is_walk_in(self, client, dosa):
        response = _checkout(client, [(dosa.id, 1)], customer_name="   ")

        assert response.json()["customer_ref"] == "Walk-in Customer"

    def test_insufficient_stock_is_400(self, client, dosa, stock_of):
        _checkout(client, [(dosa.id, 3)])

        response = _checkout(client, [(dosa.id, 3)])

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "insufficient_stock"
        assert body["requested"] == 3
        assert body["available"] == 2
        assert "Masala Dosa" in body["error"]
        assert stock_of(dosa.id) == 2

    def test_unknown_product_is_400(self, client):
        response = _checkout(client, [(999, 1)])

        assert response.status_code == 400
        assert response.json()["code"] == "product_not_found"

    def test_empty_cart_is_400(self, client):
        response = _checkout(client, [])

        assert response.status_code == 400
        assert response.json()["code"] == "empty_request"

    def test_zero_quantity_is_400(self, client, dosa):
        response = _checkout(client, [(dosa.id, 0)])

        assert response.status_code == 400
        assert "error" in response.json()


class TestOrdersAPI:
    """Test order history endpoints"""

    def test_list_and_get_orders(self, client, dosa):
        created = _checkout(client, [(dosa.id, 1)]).json()

        listing = client.get("/api/v1/orders/").json()
        single = client.get(f"/api/v1/orders/{created['id']}")

        assert listing["total"] == 1
        assert listing["data"][0]["id"] == created["id"]
        assert single.status_code == 200
        assert single.json()["data"]["total_price"] == 10.0

    def test_get_missing_order(self, client):
        assert client.get("/api/v1/orders/999").status_code == 404

    def test_update_status(self, client, dosa):
        order_id = _checkout(client, [(dosa.id, 1)]).json()["id"]

        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "Completed"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Completed"

    def test_update_status_rejects_unknown_value(self, client, dosa):
        order_id = _checkout(client, [(dosa.id, 1)]).json()["id"]

        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "Shipped"})

        assert response.status_code == 400


class TestAnalyticsAPI:
    """Test GET /api/v1/analytics/"""

    def test_summary(self, client, dosa):
        _checkout(client, [(dosa.id, 2)])

        response = client.get("/api/v1/analytics/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["orders"] == 1
        assert data["revenue"] == 20.0
        assert data["top_products"][0]["name"] == "Masala Dosa"


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json()["status"] == "online"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"


class TestOutOfRangeIntegers:
    """Test ids and quantities larger than an INTEGER column"""

    def test_huge_quantity_is_400(self, client, dosa, stock_of):
        response = _checkout(client, [(dosa.id, 10**19)])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert stock_of(dosa.id) == 5

    def test_huge_product_id_is_400(self, client):
        response = _checkout(client, [(10**19, 1)])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_largest_integer_is_accepted_as_input(self, client, dosa):
        response = _checkout(client, [(dosa.id, 2**31 - 1)])

        assert response.status_code == 400
        assert response.json()["code"] == "insufficient_stock"

    def test_huge_path_ids_are_400(self, client):
        assert client.get(f"/api/v1/orders/{10**19}").status_code == 400
        assert client.get(f"/api/v1/products/{10**19}").status_code == 400
