"""Tests for the reporting endpoints."""
from datetime import date, timedelta


def sell(client, headers, product, quantity, discount=0):
    response = client.post(
        "/api/v1/sales/",
        json={"cart": [{"id": product.id, "quantity": quantity}], "discount": discount, "paymentMethod": "cash"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def test_sales_report_totals_and_profit(client, admin, admin_headers, attendant, attendant_headers, make_product):
    product = make_product(purchase_price=6.0, selling_price=10.0, stock_quantity=50)
    sell(client, attendant_headers, product, 3)
    sell(client, attendant_headers, product, 2, discount=5)
    sell(client, admin_headers, product, 1)

    response = client.get("/api/v1/reports/sales", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["saleCount"] == 3
    assert data["totalSalesValue"] == 30.0 + 15.0 + 10.0
    assert data["totalProfit"] == (30.0 - 18.0) + (15.0 - 12.0) + (10.0 - 6.0)
    assert data["salesByEmployee"][attendant.name] == {"total": 45.0, "count": 2}
    assert data["salesByEmployee"][admin.name] == {"total": 10.0, "count": 1}
    assert data["detailedSales"][0]["itemCount"] == 1


def test_sales_report_date_range(client, admin_headers, make_product):
    product = make_product(stock_quantity=5)
    sell(client, admin_headers, product, 1)

    future = (date.today() + timedelta(days=2)).isoformat()
    response = client.get(f"/api/v1/reports/sales?from={future}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["saleCount"] == 0


def test_sales_report_is_admin_only(client, attendant_headers):
    assert client.get("/api/v1/reports/sales", headers=attendant_headers).status_code == 403


def test_my_sales_only_lists_own_sales(client, admin_headers, attendant_headers, make_product):
    product = make_product(selling_price=10.0, stock_quantity=50)
    sell(client, attendant_headers, product, 1)
    sell(client, attendant_headers, product, 2)
    sell(client, admin_headers, product, 4)

    response = client.get("/api/v1/reports/my-sales", headers=attendant_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["saleCount"] == 2
    assert data["totalSalesValue"] == 30.0


def test_stock_movements_report(client, stockist_headers, attendant_headers, make_product):
    first = make_product(name="First", stock_quantity=10)
    second = make_product(name="Second", stock_quantity=10)
    sell(client, attendant_headers, first, 2)
    client.put(f"/api/v1/products/{second.id}", json={"stockQuantity": 15}, headers=stockist_headers)

    response = client.get("/api/v1/reports/stock-movements", headers=stockist_headers)
    assert response.status_code == 200
    assert len(response.json()) == 2

    filtered = client.get(f"/api/v1/reports/stock-movements?productId={second.id}", headers=stockist_headers)
    rows = filtered.json()
    assert len(rows) == 1
    assert rows[0]["quantityChange"] == 5
    assert rows[0]["reason"] == "manual adjustment"
    assert rows[0]["product"]["name"] == "Second"
    assert rows[0]["user"]["name"] == "Stockist"

    assert client.get("/api/v1/reports/stock-movements", headers=attendant_headers).status_code == 403


def test_stock_alerts(client, admin_headers, make_product):
    make_product(name="Low", stock_quantity=2, min_stock_quantity=2)
    make_product(name="Expiring", stock_quantity=10, min_stock_quantity=1,
                 expiry_date=date.today() + timedelta(days=30))
    make_product(name="Expiring but empty", stock_quantity=0, min_stock_quantity=0,
                 expiry_date=date.today() + timedelta(days=30))
    make_product(name="Healthy", stock_quantity=10, min_stock_quantity=1)

    response = client.get("/api/v1/reports/stock-alerts", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert {p["name"] for p in data["lowStockProducts"]} == {"Low", "Expiring but empty"}
    assert [p["name"] for p in data["nearExpiryProducts"]] == ["Expiring"]


def test_stock_dashboard(client, attendant_headers, make_product):
    make_product(stock_quantity=1, min_stock_quantity=1)
    make_product(stock_quantity=10, min_stock_quantity=1, expiry_date=date.today() + timedelta(days=10))
    make_product(stock_quantity=10, min_stock_quantity=1)

    response = client.get("/api/v1/reports/stock-dashboard", headers=attendant_headers)

    assert response.status_code == 200
    assert {row["name"]: row["value"] for row in response.json()} == {
        "Total products": 3,
        "Low stock": 1,
        "Near expiry": 1,
    }


def test_most_sold_products(client, attendant_headers, make_product):
    popular = make_product(name="Popular", stock_quantity=50)
    niche = make_product(name="Niche", stock_quantity=50)
    sell(client, attendant_headers, niche, 1)
    sell(client, attendant_headers, popular, 4)
    sell(client, attendant_headers, popular, 3)

    response = client.get("/api/v1/reports/most-sold-products", headers=attendant_headers)

    assert response.json() == [
        {"name": "Popular", "quantitySold": 7},
        {"name": "Niche", "quantitySold": 1},
    ]


def test_sales_by_category(client, attendant_headers, make_product):
    vitamins = make_product(category="Vitamins", selling_price=20.0, stock_quantity=50)
    antibiotics = make_product(category="Antibiotics", selling_price=100.0, stock_quantity=50)
    sell(client, attendant_headers, vitamins, 2)
    sell(client, attendant_headers, antibiotics, 1)

    response = client.get("/api/v1/reports/sales-by-category", headers=attendant_headers)

    assert response.json() == [
        {"name": "Antibiotics", "totalSales": 100.0},
        {"name": "Vitamins", "totalSales": 40.0},
    ]


def test_recent_stock_movements(client, stockist_headers, attendant_headers, make_product):
    restocked = make_product(name="Restocked", stock_quantity=10)
    sold = make_product(name="Sold", stock_quantity=10)
    client.put(f"/api/v1/products/{restocked.id}", json={"stockQuantity": 30}, headers=stockist_headers)
    sell(client, attendant_headers, sold, 4)

    response = client.get("/api/v1/reports/recent-stock-movements", headers=attendant_headers)

    assert response.json() == [
        {"name": "Restocked", "netChange": 20},
        {"name": "Sold", "netChange": -4},
    ]
