"""
Suite: HTTP JSON API (/api)

- domain errors map to 400/404/409 with {"error", "details"}
- request bodies are validated before any work is done
- read endpoints degrade to an empty payload when the database fails
"""
import sqlite3

import pytest

from .helpers import stock_of


def _sale_body(catalog, **overrides):
    body = {
        "customerName": "Ali",
        "customerPhone": "0300",
        "totalAmount": "1000",
        "amountPaid": "0",
        "paymentStatus": "unpaid",
        "items": [{"colorId": catalog["red"], "quantity": 2, "rate": "500", "subtotal": "1000"}],
    }
    body.update(overrides)
    return body


def test_health(client, db_path):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok", "database": str(db_path)}


def test_unknown_route_is_json_404(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.get_json() == {"error": "Not found"}


# ---------- sales ----------

def test_create_sale_then_merge(client, catalog, conn):
    r1 = client.post("/api/sales", json=_sale_body(catalog))
    assert r1.status_code == 201
    sale = r1.get_json()
    assert sale["totalAmount"] == "1000.00"
    assert sale["saleItems"][0]["color"]["variant"]["product"]["company"] == "Asian Paints"

    r2 = client.post("/api/sales", json=_sale_body(
        catalog, items=[{"colorId": catalog["blue"], "quantity": 1}], totalAmount="500",
    ))
    assert r2.status_code == 200
    merged = r2.get_json()
    assert merged["id"] == sale["id"]
    assert len(merged["saleItems"]) == 2
    assert stock_of(conn, catalog["red"]) == 18


def test_create_sale_body_validation(client, catalog):
    r = client.post("/api/sales", json=_sale_body(catalog, items=[]))
    assert r.status_code == 400
    assert "items" in r.get_json()["error"]

    r = client.post("/api/sales", json=_sale_body(catalog, items=[{"colorId": catalog["red"], "quantity": 0}]))
    assert r.status_code == 400

    r = client.post("/api/sales", data="not json", content_type="application/json")
    assert r.status_code == 400


def test_oversell_is_409_with_details(client, catalog):
    r = client.post("/api/sales", json=_sale_body(catalog, items=[{"colorId": catalog["white"], "quantity": 9}]))
    assert r.status_code == 409
    body = r.get_json()
    assert body["details"] == {"colorId": catalog["white"], "available": 5, "requested": 9}


def test_sale_detail_and_missing_sale(client, catalog):
    sale = client.post("/api/sales", json=_sale_body(catalog)).get_json()
    assert client.get(f"/api/sales/{sale['id']}").get_json()["id"] == sale["id"]
    r = client.get("/api/sales/nope")
    assert r.status_code == 404
    assert r.get_json()["error"] == "Sale not found"


def test_payment_items_return_and_delete_flow(client, catalog, conn):
    sale = client.post("/api/sales", json=_sale_body(catalog)).get_json()
    sid = sale["id"]

    r = client.post(f"/api/sales/{sid}/payment", json={"amount": "400"})
    assert r.status_code == 200
    assert r.get_json()["paymentStatus"] == "partial"

    r = client.post(f"/api/sales/{sid}/items", json={"colorId": catalog["blue"], "quantity": 1, "rate": "500"})
    assert r.status_code == 201
    item_id = r.get_json()["id"]

    r = client.post(f"/api/sale-items/{item_id}/return", json={"quantity": 1, "reason": "Damaged tin"})
    assert r.get_json() == {"success": True}
    assert stock_of(conn, catalog["blue"]) == 15

    history = client.get(f"/api/sales/{sid}/history").get_json()
    assert [p["amount"] for p in history["payments"]] == ["400.00"]
    assert [x["reason"] for x in history["returns"]] == ["Damaged tin"]

    red_item = sale["saleItems"][0]["id"]
    assert client.delete(f"/api/sale-items/{red_item}").get_json() == {"success": True}
    assert client.delete(f"/api/sales/{sid}").get_json() == {"success": True}
    assert stock_of(conn, catalog["red"]) == 20
    assert client.get(f"/api/sales/{sid}").status_code == 404


def test_payment_must_be_positive(client, catalog):
    sale = client.post("/api/sales", json=_sale_body(catalog)).get_json()
    r = client.post(f"/api/sales/{sale['id']}/payment", json={"amount": 0})
    assert r.status_code == 400
    assert r.get_json()["details"][0]["loc"] == ["amount"]


def test_unpaid_and_recent_lists(client, catalog):
    client.post("/api/sales", json=_sale_body(catalog))
    client.post("/api/sales", json=_sale_body(
        catalog, customerPhone="0311", amountPaid="1000",
    ))
    unpaid = client.get("/api/sales/unpaid").get_json()
    assert [s["customerPhone"] for s in unpaid] == ["0300"]
    assert len(client.get("/api/sales/recent?limit=1").get_json()) == 1
    assert len(client.get("/api/sales").get_json()) == 2


def test_read_endpoint_degrades_on_database_error(client, monkeypatch):
    from paint_pos.database.repositories.sales_repo import SalesRepo

    def broken(self):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(SalesRepo, "list_unpaid", broken)
    r = client.get("/api/sales/unpaid")
    assert r.status_code == 200
    assert r.get_json() == []


def test_dashboard_degrades_to_empty_stats(client, monkeypatch):
    from paint_pos.database.repositories.dashboard_repo import DashboardRepo

    def broken(self, now=None):
        raise sqlite3.OperationalError("no such table: sales")

    monkeypatch.setattr(DashboardRepo, "stats", broken)
    body = client.get("/api/dashboard-stats").get_json()
    assert body == DashboardRepo.empty_stats()


def test_unexpected_error_is_generic_500(client, monkeypatch):
    from paint_pos.modules.sales.lifecycle import SaleLifecycleManager

    def boom(*a, **kw):
        raise KeyError("internal detail")

    monkeypatch.setattr(SaleLifecycleManager, "delete_sale", boom)
    r = client.delete("/api/sales/whatever")
    assert r.status_code == 500
    assert r.get_json() == {"error": "Internal server error"}


# ---------- customers ----------

def test_customer_account_and_allocation(client, catalog):
    client.post("/api/sales", json=_sale_body(catalog))
    accounts = client.get("/api/customers/accounts").get_json()
    assert [(a["customerPhone"], a["totalOutstanding"]) for a in accounts] == [("0300", "1000.00")]

    r = client.post("/api/customers/0300/payment", json={"amount": "600"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["allocations"][0]["paymentStatus"] == "partial"
    assert body["account"]["totalOutstanding"] == "400.00"

    r = client.post("/api/customers/0300/payment", json={"amount": "500"})
    assert r.status_code == 400
    assert client.get("/api/customers/0300/account").get_json()["totalOutstanding"] == "400.00"


def test_payments_in_fractions_of_a_cent_are_rejected(client, catalog):
    sale = client.post("/api/sales", json=_sale_body(catalog)).get_json()
    assert client.post(f"/api/sales/{sale['id']}/payment", json={"amount": "10.006"}).status_code == 400
    assert client.post("/api/customers/0300/payment", json={"amount": "0.005"}).status_code == 400
    assert client.get("/api/customers/0300/account").get_json()["totalOutstanding"] == "1000.00"


def test_account_filters_are_validated(client, catalog):
    assert client.get("/api/customers/accounts?status=someday").status_code == 400
    assert client.get("/api/customers/accounts?amount=small&search=ali").status_code == 200


def test_customer_lookups(client, catalog):
    client.post("/api/sales", json=_sale_body(catalog))
    assert client.get("/api/customers/suggestions?limit=5").get_json()[0]["customerPhone"] == "0300"
    assert client.get("/api/customers/search?query=Al").get_json()[0]["outstandingBalance"] == 1000
    assert len(client.get("/api/customers/0300/bills").get_json()) == 1
    assert client.get("/api/customers/0399/account").status_code == 404


# ---------- catalog & stock ----------

def test_catalog_crud(client):
    p = client.post("/api/products", json={"company": "Berger", "productName": "Weathercoat"})
    assert p.status_code == 201
    pid = p.get_json()["id"]

    v = client.post("/api/variants", json={"productId": pid, "packingSize": "1L", "rate": "750"})
    assert v.status_code == 201
    vid = v.get_json()["id"]
    assert v.get_json()["rate"] == "750.00"

    c = client.post("/api/colors", json={"variantId": vid, "colorName": "Sky", "colorCode": "BG-1",
                                         "stockQuantity": 3})
    assert c.status_code == 201
    cid = c.get_json()["id"]
    assert c.get_json()["variant"]["product"]["id"] == pid

    assert client.put(f"/api/colors/{cid}", json={"colorName": "Sky Blue"}).get_json()["colorName"] == "Sky Blue"
    assert client.patch(f"/api/variants/{vid}/rate", json={"rate": "800"}).get_json()["rate"] == "800.00"
    assert client.delete(f"/api/products/{pid}").status_code == 409
    assert client.delete(f"/api/colors/{cid}").status_code == 200
    assert client.delete(f"/api/variants/{vid}").status_code == 200
    assert client.delete(f"/api/products/{pid}").status_code == 200
    assert client.get(f"/api/products/{pid}").status_code == 404


def test_create_variant_rejects_zero_rate(client, catalog):
    r = client.post("/api/variants", json={"productId": catalog["product"], "packingSize": "1L", "rate": "0"})
    assert r.status_code == 400


def test_stock_endpoints(client, catalog):
    r = client.post(f"/api/colors/{catalog['white']}/stock-in", json={"quantity": 5})
    assert r.get_json()["stockQuantity"] == 10
    r = client.patch(f"/api/colors/{catalog['white']}/stock", json={"stockQuantity": 2})
    assert r.get_json()["stockQuantity"] == 2
    assert client.patch(f"/api/colors/{catalog['white']}/stock", json={"stockQuantity": -1}).status_code == 400

    moves = client.get(f"/api/colors/{catalog['white']}/movements").get_json()
    assert [m["movementType"] for m in moves] == ["adjustment", "stock_in", "stock_in"]
    assert client.get("/api/colors/nope/movements").status_code == 404

    low = client.get("/api/inventory/low-stock").get_json()
    assert [c["id"] for c in low] == [catalog["white"]]


def test_bulk_endpoints(client, catalog):
    r = client.post("/api/bulk/stock-in", json={"items": [
        {"colorId": catalog["red"], "quantity": 1},
        {"colorId": "nope", "quantity": 1},
    ]})
    assert [x["success"] for x in r.get_json()["results"]] == [True, False]

    r = client.post("/api/bulk/update-rates", json={"updates": [{"variantId": catalog["gallon"], "rate": "1900"}]})
    assert r.get_json()["results"][0]["result"]["rate"] == "1900.00"


def test_search_endpoints(client, catalog):
    assert len(client.get("/api/search/products?query=apex").get_json()) == 1
    colors = client.get("/api/search/colors?query=red").get_json()
    assert [c["id"] for c in colors] == [catalog["red"]]


# ---------- reports ----------

def test_reports(client, catalog):
    client.post("/api/sales", json=_sale_body(catalog))
    sales = client.get("/api/reports/sales?groupBy=month").get_json()
    assert sales["totals"]["revenue"] == 1000.0
    assert client.get("/api/reports/sales?groupBy=year").status_code == 400
    assert client.get("/api/reports/inventory?lowStockThreshold=5").get_json()["threshold"] == 5
    debt = client.get("/api/reports/customer-debt").get_json()
    assert debt[0]["totalOutstanding"] == 1000.0


def test_dashboard_stats_endpoint(client, catalog):
    client.post("/api/sales", json=_sale_body(catalog))
    body = client.get("/api/dashboard-stats").get_json()
    assert body["todaySales"]["transactions"] == 1
    assert body["unpaidBills"]["count"] == 1


@pytest.mark.parametrize("kind", ["all", "products", "inventory", "sales"])
def test_export_data_kinds(client, catalog, kind):
    r = client.get(f"/api/export/data?type={kind}")
    assert r.status_code == 200
    assert r.get_json()["type"] == kind
