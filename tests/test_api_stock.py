"""Tests for stock movement and sales endpoints."""
from decimal import Decimal
import uuid

from stockledger.models import StockMovement

from conftest import API, run_async, count_rows, stock_and_ledger_sum


def move(client, headers, product_id, movement_type, reason, quantity, **extra):
    return client.post(
        f"{API}/stock-movements",
        json={"product_id": product_id, "type": movement_type, "reason": reason, "quantity": quantity, **extra},
        headers=headers
    )


class TestCreateStockMovement:
    """Tests for POST /stock-movements."""

    def test_purchase_increases_stock(self, make_product, client, auth_headers, user):
        product = make_product(current_stock=5)

        response = move(client, auth_headers, product["id"], "IN", "PURCHASE", 20, description="Weekly order")

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["type"] == "IN"
        assert data["reason"] == "PURCHASE"
        assert data["quantity"] == 20
        assert data["description"] == "Weekly order"
        assert data["created_by"] == str(user.id)

        current = client.get(f"{API}/products/{product['id']}", headers=auth_headers).json()
        assert current["current_stock"] == 25

    def test_decimal_movements_for_weighed_units(self, make_product, client, auth_headers):
        product = make_product(unit="kg", current_stock=10, minimum_stock=5)

        assert move(client, auth_headers, product["id"], "OUT", "SALE", 3.5).status_code == 201
        after_first = client.get(f"{API}/products/{product['id']}", headers=auth_headers).json()
        assert move(client, auth_headers, product["id"], "OUT", "SALE", 2).status_code == 201
        after_second = client.get(f"{API}/products/{product['id']}", headers=auth_headers).json()

        assert after_first["current_stock"] == 6.5
        assert after_first["is_low_stock"] is False
        assert after_second["current_stock"] == 4.5
        assert after_second["is_low_stock"] is True
        assert run_async(stock_and_ledger_sum(product["id"])) == (Decimal("4.5"), Decimal("4.5"))

    def test_fractional_quantity_for_pieces(self, make_product, client, auth_headers):
        product = make_product(unit="adet", current_stock=10)

        response = move(client, auth_headers, product["id"], "OUT", "SALE", 2.5)

        assert response.status_code == 400
        assert response.json()["details"]["unit"] == "adet"

    def test_insufficient_stock(self, make_product, client, auth_headers):
        product = make_product(current_stock=3)

        response = move(client, auth_headers, product["id"], "OUT", "WASTE", 5)

        assert response.status_code == 400
        assert response.json()["details"] == {"available": 3.0, "requested": 5.0}
        assert run_async(count_rows(StockMovement, StockMovement.product_id == uuid.UUID(product["id"]))) == 1
        assert run_async(stock_and_ledger_sum(product["id"])) == (Decimal("3"), Decimal("3"))

    def test_reason_not_valid_for_direction(self, make_product, client, auth_headers):
        product = make_product(current_stock=3)

        response = move(client, auth_headers, product["id"], "IN", "SALE", 1)

        assert response.status_code == 400
        assert response.json()["details"]["allowed"] == ["COUNT", "OTHER", "PURCHASE", "RETURN"]

    def test_zero_quantity_is_a_validation_error(self, make_product, client, auth_headers):
        product = make_product(current_stock=3)

        response = move(client, auth_headers, product["id"], "IN", "PURCHASE", 0)

        assert response.status_code == 400
        assert response.json()["validation_errors"][0]["field"] == "body -> quantity"

    def test_unknown_type(self, make_product, client, auth_headers):
        product = make_product(current_stock=3)

        response = move(client, auth_headers, product["id"], "SIDEWAYS", "OTHER", 1)

        assert response.status_code == 400

    def test_other_users_product(self, make_product, client, other_auth_headers):
        product = make_product(current_stock=3)

        response = move(client, other_auth_headers, product["id"], "OUT", "SALE", 1)

        assert response.status_code == 404

    def test_deleted_product(self, make_product, client, auth_headers):
        product = make_product(current_stock=3)
        client.delete(f"{API}/products/{product['id']}", headers=auth_headers)

        response = move(client, auth_headers, product["id"], "IN", "PURCHASE", 1)

        assert response.status_code == 404

    def test_movement_is_audited(self, make_product, client, auth_headers):
        product = make_product(current_stock=3)
        movement = move(client, auth_headers, product["id"], "IN", "RETURN", 2).json()

        logs = client.get(
            f"{API}/audit-logs",
            params={"entity_type": "StockMovement"},
            headers=auth_headers
        ).json()

        assert logs["total"] == 1
        entry = logs["items"][0]
        assert entry["action"] == "CREATE"
        assert entry["entity_id"] == movement["id"]
        assert entry["details"]["old_stock"] == 3
        assert entry["details"]["new_stock"] == 5


class TestListStockMovements:
    """Tests for GET /stock-movements."""

    def test_list_with_product_details(self, make_product, client, auth_headers, other_auth_headers):
        product = make_product(name="Flour", category="Baking", unit="kg", current_stock=10)
        move(client, auth_headers, product["id"], "OUT", "WASTE", 1)
        client.post(
            f"{API}/products",
            json={"name": "Theirs", "category": "X", "purchase_price": 1, "selling_price": 2, "current_stock": 4},
            headers=other_auth_headers
        )

        response = client.get(f"{API}/stock-movements", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 1
        newest = data["items"][0]
        assert (newest["type"], newest["reason"]) == ("OUT", "WASTE")
        assert newest["product_name"] == "Flour"
        assert newest["product_unit"] == "kg"
        assert newest["product_category"] == "Baking"

    def test_filters(self, make_product, client, auth_headers):
        first = make_product(name="First", current_stock=10)
        second = make_product(name="Second", current_stock=10)
        move(client, auth_headers, first["id"], "OUT", "SALE", 1)
        move(client, auth_headers, second["id"], "OUT", "WASTE", 2)

        by_product = client.get(
            f"{API}/stock-movements", params={"product_id": second["id"]}, headers=auth_headers
        ).json()
        by_type = client.get(f"{API}/stock-movements", params={"type": "OUT"}, headers=auth_headers).json()
        by_reason = client.get(f"{API}/stock-movements", params={"reason": "WASTE"}, headers=auth_headers).json()

        assert by_product["total"] == 2
        assert by_type["total"] == 2
        assert [item["product_name"] for item in by_reason["items"]] == ["Second"]

    def test_pagination(self, make_product, client, auth_headers):
        product = make_product(current_stock=10)
        for _ in range(4):
            move(client, auth_headers, product["id"], "OUT", "OTHER", 1)

        response = client.get(
            f"{API}/stock-movements", params={"page": 2, "page_size": 2}, headers=auth_headers
        ).json()

        assert response["total"] == 5
        assert response["pages"] == 3
        assert len(response["items"]) == 2


class TestSales:
    """Tests for /sales."""

    def test_record_sale(self, make_product, client, auth_headers):
        product = make_product(unit="kg", current_stock=10, selling_price=15)

        response = client.post(
            f"{API}/sales",
            json={"product_id": product["id"], "quantity": 1.5, "unit_price": 12.5},
            headers=auth_headers
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["type"] == "OUT"
        assert data["reason"] == "SALE"
        assert data["unit_price"] == 12.5
        assert data["total_price"] == 18.75
        assert run_async(stock_and_ledger_sum(product["id"])) == (Decimal("8.5"), Decimal("8.5"))

    def test_sale_over_stock(self, make_product, client, auth_headers):
        product = make_product(current_stock=1)

        response = client.post(
            f"{API}/sales",
            json={"product_id": product["id"], "quantity": 2, "unit_price": 15},
            headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["details"]["available"] == 1.0

    def test_list_sales_only(self, make_product, client, auth_headers):
        product = make_product(name="Juice", current_stock=10)
        client.post(
            f"{API}/sales",
            json={"product_id": product["id"], "quantity": 2, "unit_price": 15},
            headers=auth_headers
        )
        move(client, auth_headers, product["id"], "OUT", "WASTE", 1)

        response = client.get(f"{API}/sales", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["product_name"] == "Juice"
        assert data["items"][0]["total_price"] == 30
