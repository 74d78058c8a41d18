"""Tests for dashboard, report, audit log and health endpoints."""
from datetime import timedelta

from stockledger.utils import utcnow

from conftest import API


def sell(client, headers, product_id, quantity, unit_price, **extra):
    response = client.post(
        f"{API}/sales",
        json={"product_id": product_id, "quantity": quantity, "unit_price": unit_price, **extra},
        headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestDashboard:
    """Tests for /dashboard."""

    def test_stats(self, make_product, client, auth_headers):
        flour = make_product(name="Flour", unit="kg", purchase_price=2, selling_price=3, current_stock=10, minimum_stock=2)
        make_product(name="Eggs", purchase_price=1, selling_price=2, current_stock=3, minimum_stock=6)
        sell(client, auth_headers, flour["id"], 4, 3)
        sell(client, auth_headers, flour["id"], 1, 3, total_price=2.5)

        response = client.get(f"{API}/dashboard/stats", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "total_products": 2,
            "total_stock_value": 13.0,
            "today_sales_count": 2,
            "today_sales_amount": 14.5,
            "critical_stock_count": 1,
        }

    def test_stats_empty(self, client, auth_headers):
        data = client.get(f"{API}/dashboard/stats", headers=auth_headers).json()

        assert data["total_products"] == 0
        assert data["total_stock_value"] == 0
        assert data["today_sales_amount"] == 0

    def test_critical_stocks(self, make_product, client, auth_headers):
        make_product(name="Water", current_stock=2, minimum_stock=2)
        make_product(name="Apples", current_stock=0, minimum_stock=5)
        make_product(name="Plenty", current_stock=50, minimum_stock=5)

        data = client.get(f"{API}/dashboard/critical-stocks", headers=auth_headers).json()

        assert data["total"] == 2
        assert [item["name"] for item in data["items"]] == ["Apples", "Water"]

    def test_sales_chart(self, make_product, client, auth_headers):
        product = make_product(current_stock=10)
        sell(client, auth_headers, product["id"], 2, 15)

        points = client.get(f"{API}/dashboard/sales-chart", headers=auth_headers).json()

        today = utcnow().date()
        assert len(points) == 7
        assert points[0]["date"] == (today - timedelta(days=6)).isoformat()
        assert points[-1] == {"date": today.isoformat(), "amount": 30.0}
        assert all(point["amount"] == 0 for point in points[:-1])


class TestReports:
    """Tests for /reports."""

    def test_daily_report(self, make_product, client, auth_headers):
        product = make_product(name="Tea", purchase_price=10, selling_price=15, current_stock=10)
        sell(client, auth_headers, product["id"], 3, 14)

        response = client.get(f"{API}/reports/daily", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == utcnow().date().isoformat()
        assert data["pagination"] == {"page": 1, "page_size": 20, "total": 2, "pages": 1}
        sale, opening = data["items"]
        assert (sale["type"], sale["unit_price"], sale["total_price"]) == ("OUT", 15.0, 45.0)
        assert (opening["type"], opening["unit_price"], opening["total_price"]) == ("IN", 10.0, 100.0)
        assert data["summary"] == {
            "total_stock_in": 10.0,
            "total_stock_out": 3.0,
            "total_purchase": 100.0,
            "total_sale": 45.0,
            "profit": -55.0,
        }

    def test_daily_report_other_day_is_empty(self, make_product, client, auth_headers):
        make_product(current_stock=10)
        yesterday = (utcnow().date() - timedelta(days=1)).isoformat()

        data = client.get(f"{API}/reports/daily", params={"date": yesterday}, headers=auth_headers).json()

        assert data["items"] == []
        assert data["summary"]["total_stock_in"] == 0

    def test_stock_report(self, make_product, client, auth_headers):
        make_product(name="Beans", purchase_price=2, selling_price=3, current_stock=5, minimum_stock=1)
        make_product(name="Corn", purchase_price=4, selling_price=5, current_stock=1, minimum_stock=1)

        data = client.get(f"{API}/reports/stock", headers=auth_headers).json()

        assert [(row["name"], row["status"]) for row in data["items"]] == [
            ("Beans", "normal"),
            ("Corn", "critical"),
        ]
        assert data["total_stock_value"] == 14.0
        assert data["critical_count"] == 1

    def test_sales_report(self, make_product, client, auth_headers):
        product = make_product(name="Soda", current_stock=10)
        sell(client, auth_headers, product["id"], 2, 15)
        sell(client, auth_headers, product["id"], 1, 15, total_price=12)

        data = client.get(f"{API}/reports/sales", headers=auth_headers).json()

        assert len(data["items"]) == 2
        assert data["total_quantity"] == 3
        assert data["total_amount"] == 42

    def test_popular_report(self, make_product, client, auth_headers):
        fast = make_product(name="Fast", current_stock=100)
        slow = make_product(name="Slow", current_stock=100)
        make_product(name="Idle", current_stock=100)
        sell(client, auth_headers, fast["id"], 20, 15)
        sell(client, auth_headers, slow["id"], 5, 15)

        data = client.get(f"{API}/reports/popular", params={"days": 10}, headers=auth_headers).json()

        assert data["days"] == 10
        assert [row["name"] for row in data["items"]] == ["Fast", "Slow", "Idle"]
        fast_row, slow_row, idle_row = data["items"]
        assert fast_row["quantity_sold"] == 20
        assert fast_row["revenue"] == 300
        assert fast_row["daily_average"] == 2.0
        assert fast_row["days_of_cover"] == 40
        assert slow_row["days_of_cover"] == 190
        assert idle_row["days_of_cover"] is None

    def test_reports_require_authentication(self, client):
        assert client.get(f"{API}/reports/stock").status_code == 401


class TestAuditLogs:
    """Tests for /audit-logs."""

    def test_own_entries_only(self, make_product, client, auth_headers, other_auth_headers):
        make_product()

        mine = client.get(f"{API}/audit-logs", headers=auth_headers).json()
        theirs = client.get(f"{API}/audit-logs", headers=other_auth_headers).json()

        assert mine["total"] == 1
        assert mine["items"][0]["entity_type"] == "Product"
        assert theirs["total"] == 0

    def test_filter_by_action(self, make_product, client, auth_headers):
        product = make_product()
        client.delete(f"{API}/products/{product['id']}", headers=auth_headers)

        deletes = client.get(f"{API}/audit-logs", params={"action": "DELETE"}, headers=auth_headers).json()

        assert deletes["total"] == 1
        assert deletes["items"][0]["details"]["permanent"] is False


class TestHealth:
    """Tests for public endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
