"""
Purchase and sell API tests.

Verifies:
- Creates return 201 with the derived amount
- Overselling returns 409 with the available quantity
- Non-admins trade as themselves and only list their own records
- product_id cannot be changed after creation
"""

import pytest

from conftest import reload_product


def _purchase_body(catalog, **overrides):
    body = {
        "product_id": catalog["product_id"],
        "firm_id": catalog["firm_id"],
        "quantity": 10,
        "purchase_price": 60,
    }
    body.update(overrides)
    return body


def _sell_body(catalog, **overrides):
    body = {"product_id": catalog["product_id"], "quantity": 4, "sell_price": 100}
    body.update(overrides)
    return body


class TestPurchaseRoutes:

    def test_create(self, client, catalog, headers_for, users):
        resp = client.post("/api/purchases", json=_purchase_body(catalog), headers=headers_for("staff"))

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["amount"] == 600.0
        assert data["buyer_id"] == users["staff"].id
        assert reload_product(catalog["product_id"]).quantity == 10

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quantity": 0},
            {"quantity": -2},
            {"quantity": 1.5},
            {"quantity": "ten"},
            {"purchase_price": -1},
            {"purchase_price": "cheap"},
        ],
    )
    def test_invalid_payload_is_400(self, client, catalog, headers_for, overrides):
        resp = client.post("/api/purchases", json=_purchase_body(catalog, **overrides), headers=headers_for("staff"))
        assert resp.status_code == 400
        assert resp.get_json()["error"] is True
        assert reload_product(catalog["product_id"]).quantity == 0

    def test_missing_fields_is_400(self, client, catalog, headers_for):
        resp = client.post("/api/purchases", json={"quantity": 1}, headers=headers_for("staff"))
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["message"]

    def test_unknown_product_is_404(self, client, catalog, headers_for):
        resp = client.post(
            "/api/purchases", json=_purchase_body(catalog, product_id=999), headers=headers_for("staff")
        )
        assert resp.status_code == 404

    def test_user_naming_another_buyer_is_403(self, client, catalog, headers_for, users):
        resp = client.post(
            "/api/purchases",
            json=_purchase_body(catalog, buyer_id=users["admin"].id),
            headers=headers_for("user"),
        )
        assert resp.status_code == 403
        assert reload_product(catalog["product_id"]).quantity == 0

    def test_update_applies_delta(self, client, catalog, headers_for):
        created = client.post(
            "/api/purchases", json=_purchase_body(catalog, quantity=5), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.patch(f"/api/purchases/{created['id']}", json={"quantity": 8}, headers=headers_for("staff"))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["quantity"] == 8
        assert reload_product(catalog["product_id"]).quantity == 8

    def test_changing_product_is_rejected(self, client, catalog, headers_for):
        created = client.post(
            "/api/purchases", json=_purchase_body(catalog), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.put(
            f"/api/purchases/{created['id']}", json={"product_id": 42}, headers=headers_for("staff")
        )

        assert resp.status_code == 400
        assert "product_id" in resp.get_json()["message"]

    def test_delete(self, client, catalog, headers_for):
        created = client.post(
            "/api/purchases", json=_purchase_body(catalog, quantity=3), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.delete(f"/api/purchases/{created['id']}", headers=headers_for("staff"))
        assert resp.status_code == 200
        assert reload_product(catalog["product_id"]).quantity == 0

        resp = client.get(f"/api/purchases/{created['id']}", headers=headers_for("staff"))
        assert resp.status_code == 404

    def test_user_list_is_scoped(self, client, catalog, headers_for, users):
        client.post("/api/purchases", json=_purchase_body(catalog), headers=headers_for("staff"))
        client.post("/api/purchases", json=_purchase_body(catalog, quantity=2), headers=headers_for("user"))

        resp = client.get("/api/purchases", headers=headers_for("user"))
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["details"]["total_records"] == 1
        assert body["data"][0]["buyer_id"] == users["user"].id

        resp = client.get("/api/purchases", headers=headers_for("staff"))
        assert resp.get_json()["details"]["total_records"] == 2

    def test_user_cannot_read_staff_purchase(self, client, catalog, headers_for):
        created = client.post(
            "/api/purchases", json=_purchase_body(catalog), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.get(f"/api/purchases/{created['id']}", headers=headers_for("user"))
        assert resp.status_code == 403

    def test_list_filter_by_product(self, client, catalog, headers_for):
        client.post("/api/purchases", json=_purchase_body(catalog), headers=headers_for("staff"))

        resp = client.get(
            f"/api/purchases?filter[product_id]={catalog['product_id']}", headers=headers_for("staff")
        )
        assert resp.get_json()["details"]["total_records"] == 1

        resp = client.get("/api/purchases?filter[product_id]=999", headers=headers_for("staff"))
        assert resp.get_json()["details"]["total_records"] == 0


class TestSellRoutes:

    @pytest.fixture
    def stocked(self, client, catalog, headers_for):
        client.post("/api/purchases", json=_purchase_body(catalog, quantity=5), headers=headers_for("staff"))
        return catalog

    def test_create(self, client, stocked, headers_for, users):
        resp = client.post("/api/sells", json=_sell_body(stocked), headers=headers_for("coordinator"))

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["amount"] == 400.0
        assert data["seller_id"] == users["coordinator"].id
        assert reload_product(stocked["product_id"]).quantity == 1

    def test_oversell_is_409(self, client, stocked, headers_for):
        resp = client.post("/api/sells", json=_sell_body(stocked, quantity=6), headers=headers_for("staff"))

        assert resp.status_code == 409
        body = resp.get_json()
        assert body["error"] is True
        assert body["available"] == 5
        assert body["requested"] == 6
        assert reload_product(stocked["product_id"]).quantity == 5

    def test_update_beyond_stock_is_409(self, client, stocked, headers_for):
        created = client.post(
            "/api/sells", json=_sell_body(stocked, quantity=4), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.patch(f"/api/sells/{created['id']}", json={"quantity": 6}, headers=headers_for("staff"))

        assert resp.status_code == 409
        assert resp.get_json()["available"] == 1
        assert reload_product(stocked["product_id"]).quantity == 1

    def test_sell_has_no_firm(self, client, stocked, headers_for):
        resp = client.post(
            "/api/sells", json=_sell_body(stocked, firm_id=stocked["firm_id"]), headers=headers_for("staff")
        )
        assert resp.status_code == 400

    def test_delete_returns_stock(self, client, stocked, headers_for):
        created = client.post(
            "/api/sells", json=_sell_body(stocked, quantity=2), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.delete(f"/api/sells/{created['id']}", headers=headers_for("staff"))

        assert resp.status_code == 200
        assert reload_product(stocked["product_id"]).quantity == 5

    def test_user_cannot_delete_staff_sell(self, client, stocked, headers_for):
        created = client.post(
            "/api/sells", json=_sell_body(stocked, quantity=2), headers=headers_for("staff")
        ).get_json()["data"]

        resp = client.delete(f"/api/sells/{created['id']}", headers=headers_for("user"))

        assert resp.status_code == 403
        assert reload_product(stocked["product_id"]).quantity == 3

    def test_admin_may_sell_on_behalf(self, client, stocked, headers_for, users):
        resp = client.post(
            "/api/sells",
            json=_sell_body(stocked, quantity=1, seller_id=users["user"].id),
            headers=headers_for("admin"),
        )
        assert resp.status_code == 201
        assert resp.get_json()["data"]["seller_id"] == users["user"].id

    def test_history_embedded_on_product(self, client, stocked, headers_for):
        client.post("/api/sells", json=_sell_body(stocked, quantity=2), headers=headers_for("staff"))

        resp = client.get(f"/api/products/{stocked['product_id']}?history=1", headers=headers_for("staff"))

        data = resp.get_json()["data"]
        assert [e["quantity"] for e in data["purchase_history"]] == [5]
        assert [e["quantity"] for e in data["sell_history"]] == [2]
