"""Tests for Product API endpoints."""
from datetime import date, timedelta

import pytest

from pharmapos.models import Product, StockMovement


def test_create_product(client, stockist_headers, product_payload):
    """Test creating a new product."""
    response = client.post(
        "/api/v1/products/",
        json=product_payload(barcode="5601234567890"),
        headers=stockist_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Paracetamol 500mg"
    assert data["sellingPrice"] == 4.00
    assert data["stockQuantity"] == 100
    assert data["barcode"] == "5601234567890"
    assert data["isLowStock"] is False
    assert "id" in data
    assert "createdAt" in data


def test_create_product_requires_authentication(client, product_payload):
    response = client.post("/api/v1/products/", json=product_payload())

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


def test_attendant_cannot_create_product(client, attendant_headers, product_payload):
    response = client.post("/api/v1/products/", json=product_payload(), headers=attendant_headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}


def test_create_product_invalid_price(client, admin_headers, product_payload):
    """Test creating product with invalid price fails."""
    response = client.post(
        "/api/v1/products/",
        json=product_payload(purchasePrice=-10.00),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "purchasePrice" in response.json()["error"]


def test_create_product_invalid_stock(client, admin_headers, product_payload):
    """Test creating product with negative stock fails."""
    response = client.post(
        "/api/v1/products/",
        json=product_payload(stockQuantity=-5),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "stockQuantity" in response.json()["error"]


def test_create_product_selling_below_purchase(client, admin_headers, product_payload):
    response = client.post(
        "/api/v1/products/",
        json=product_payload(purchasePrice=5.0, sellingPrice=4.0),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Selling price cannot be lower than purchase price."


def test_create_product_min_stock_above_stock(client, admin_headers, product_payload):
    response = client.post(
        "/api/v1/products/",
        json=product_payload(stockQuantity=5, minStockQuantity=6),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "Minimum stock quantity" in response.json()["error"]


def test_create_product_expiry_must_be_future(client, admin_headers, product_payload):
    response = client.post(
        "/api/v1/products/",
        json=product_payload(expiryDate=date.today().isoformat()),
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "expiryDate: Expiry date must be in the future."


def test_create_product_name_too_short(client, admin_headers, product_payload):
    response = client.post("/api/v1/products/", json=product_payload(name="A"), headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"].startswith("name:")


def test_create_product_duplicate_barcode(client, admin_headers, product_payload):
    client.post("/api/v1/products/", json=product_payload(barcode="123"), headers=admin_headers)

    response = client.post(
        "/api/v1/products/",
        json=product_payload(name="Ibuprofen", barcode="123"),
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert "barcode" in response.json()["error"]


def test_get_product(client, attendant_headers, make_product):
    """Test getting a product by ID."""
    product = make_product(name="Test Product")

    response = client.get(f"/api/v1/products/{product.id}", headers=attendant_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == product.id
    assert data["name"] == "Test Product"


def test_get_product_served_from_cache(client, attendant_headers, cache_client):
    cache_client.get.return_value = (
        '{"id": 42, "name": "Cached", "category": "General", "purchasePrice": 1.0, '
        '"sellingPrice": 2.0, "stockQuantity": 3, "minStockQuantity": 0, '
        '"expiryDate": "2099-01-01", "isLowStock": false}'
    )

    response = client.get("/api/v1/products/42", headers=attendant_headers)

    assert response.status_code == 200
    assert response.json()["name"] == "Cached"
    cache_client.get.assert_called_with("product:42")


def test_get_product_not_found(client, attendant_headers):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/v1/products/9999", headers=attendant_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "Product with ID 9999 not found"}


def test_get_product_by_barcode(client, attendant_headers, make_product):
    product = make_product(barcode="7890001")

    response = client.get("/api/v1/products/barcode/7890001", headers=attendant_headers)

    assert response.status_code == 200
    assert response.json()["id"] == product.id


def test_list_products(client, attendant_headers, make_product):
    """Test listing products with pagination."""
    for i in range(15):
        make_product(name=f"Product {i:02d}")

    response = client.get("/api/v1/products/?page=1&pageSize=10", headers=attendant_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data["items"]) == 10
    assert data["total"] == 15
    assert data["totalPages"] == 2


def test_list_products_ordered_by_name(client, attendant_headers, make_product):
    for name in ("Zinc", "Aspirin", "Melatonin"):
        make_product(name=name)

    response = client.get("/api/v1/products/", headers=attendant_headers)

    assert [item["name"] for item in response.json()["items"]] == ["Aspirin", "Melatonin", "Zinc"]


def test_search_products(client, attendant_headers, make_product):
    """Test searching products by name."""
    make_product(name="Amoxicillin 500mg")
    make_product(name="Ibuprofen 400mg")
    make_product(name="Amoxicillin 250mg")

    response = client.get("/api/v1/products/?search=Amoxi", headers=attendant_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert all("Amoxicillin" in item["name"] for item in data["items"])


def test_update_without_stock_change_records_no_movement(client, stockist_headers, make_product, db_session):
    product = make_product(name="Original Name", stock_quantity=10)

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"name": "Updated Name", "sellingPrice": 120.0},
        headers=stockist_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Updated Name"
    assert data["sellingPrice"] == 120.0
    assert data["stockQuantity"] == 10  # Stock should remain unchanged
    assert db_session.query(StockMovement).count() == 0


def test_update_stock_records_manual_adjustment(client, stockist, stockist_headers, make_product, db_session):
    product = make_product(stock_quantity=10, min_stock_quantity=2)

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"stockQuantity": 4},
        headers=stockist_headers,
    )

    assert response.status_code == 200
    assert response.json()["stockQuantity"] == 4

    movements = db_session.query(StockMovement).all()
    assert len(movements) == 1
    assert movements[0].quantity_change == -6
    assert movements[0].reason == "manual adjustment"
    assert movements[0].user_id == stockist.id
    assert movements[0].product_id == product.id


def test_update_stock_to_same_value_records_no_movement(client, stockist_headers, make_product, db_session):
    product = make_product(stock_quantity=10)

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"stockQuantity": 10},
        headers=stockist_headers,
    )

    assert response.status_code == 200
    assert db_session.query(StockMovement).count() == 0


def test_update_checks_rules_against_current_values(client, stockist_headers, make_product, db_session):
    product = make_product(purchase_price=50.0, selling_price=100.0, stock_quantity=5, min_stock_quantity=1)

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"sellingPrice": 40.0},
        headers=stockist_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Selling price cannot be lower than purchase price."

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"stockQuantity": 0},
        headers=stockist_headers,
    )
    assert response.status_code == 400
    assert "Minimum stock quantity" in response.json()["error"]

    db_session.expire_all()
    unchanged = db_session.get(Product, product.id)
    assert unchanged.selling_price == 100.0
    assert unchanged.stock_quantity == 5
    assert db_session.query(StockMovement).count() == 0


def test_update_rejects_past_expiry(client, stockist_headers, make_product):
    product = make_product()

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"expiryDate": (date.today() - timedelta(days=1)).isoformat()},
        headers=stockist_headers,
    )

    assert response.status_code == 400
    assert "Expiry date must be in the future" in response.json()["error"]


def test_update_barcode_conflict(client, stockist_headers, make_product):
    make_product(barcode="111")
    product = make_product(barcode="222")

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"barcode": "111"},
        headers=stockist_headers,
    )

    assert response.status_code == 409


def test_update_keeping_own_barcode_is_allowed(client, stockist_headers, make_product):
    product = make_product(barcode="222")

    response = client.put(
        f"/api/v1/products/{product.id}",
        json={"barcode": "222", "name": "Renamed"},
        headers=stockist_headers,
    )

    assert response.status_code == 200


def test_update_product_not_found(client, stockist_headers):
    response = client.put("/api/v1/products/9999", json={"name": "Ghost"}, headers=stockist_headers)

    assert response.status_code == 404


def test_update_invalidates_cache(client, stockist_headers, make_product, cache_client):
    product = make_product()

    client.put(f"/api/v1/products/{product.id}", json={"name": "Renamed"}, headers=stockist_headers)

    cache_client.delete.assert_called_with(f"product:{product.id}")


def test_delete_product(client, stockist_headers, make_product, db_session):
    """Test deleting a product removes it and its stock history."""
    product = make_product(stock_quantity=10)
    client.put(f"/api/v1/products/{product.id}", json={"stockQuantity": 12}, headers=stockist_headers)
    assert db_session.query(StockMovement).count() == 1

    response = client.delete(f"/api/v1/products/{product.id}", headers=stockist_headers)
    assert response.status_code == 204

    get_response = client.get(f"/api/v1/products/{product.id}", headers=stockist_headers)
    assert get_response.status_code == 404
    assert db_session.query(StockMovement).count() == 0


def test_delete_sold_product_is_refused(client, admin_headers, make_product, db_session):
    product = make_product(stock_quantity=5)
    sale = client.post(
        "/api/v1/sales/",
        json={"cart": [{"id": product.id, "quantity": 1}], "paymentMethod": "cash"},
        headers=admin_headers,
    )
    assert sale.status_code == 201

    response = client.delete(f"/api/v1/products/{product.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete a product that is part of a sale."
    db_session.expire_all()
    assert db_session.get(Product, product.id) is not None


@pytest.mark.parametrize("method", ["get", "delete"])
def test_product_id_out_of_range(client, stockist_headers, method):
    response = getattr(client, method)(f"/api/v1/products/{2**64}", headers=stockist_headers)

    assert response.status_code == 400
    assert response.json()["error"].startswith("product_id:")


def test_update_product_id_out_of_range(client, stockist_headers):
    response = client.put(f"/api/v1/products/{2**64}", json={"name": "Ghost"}, headers=stockist_headers)

    assert response.status_code == 400


def test_stock_movements_product_filter_out_of_range(client, stockist_headers):
    response = client.get(f"/api/v1/reports/stock-movements?productId={2**64}", headers=stockist_headers)

    assert response.status_code == 400
