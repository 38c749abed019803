"""
Suite: Dashboard, reports and customer lookups (read-only)
"""
from datetime import datetime

import pytest

from paint_pos.database.repositories.customers_repo import CustomersRepo
from paint_pos.database.repositories.dashboard_repo import DashboardRepo
from paint_pos.database.repositories.errors import ValidationError
from paint_pos.database.repositories.queries import InventoryReportQuery, SalesReportQuery
from paint_pos.database.repositories.reporting_repo import ReportingRepo
from paint_pos.utils.helpers import fmt_ddmmyyyy

from .helpers import age_sale, line


@pytest.fixture()
def sales(conn, catalog, manager):
    """
    Ali  0300: Jan-2024 sale 1000 (paid 400), paid Mar-2024 sale 500
    Sara 0311: today's sale 1800 unpaid
    """
    a = manager.create_sale("Ali", "0300", [line(catalog["red"], 2)], amount_paid=400).sale
    age_sale(conn, a["id"], "2024-01-10T09:00:00.000000")
    b = manager.create_sale("Ali", "0300", [line(catalog["blue"], 1)], amount_paid=500).sale
    age_sale(conn, b["id"], "2024-03-05T09:00:00.000000")
    c = manager.create_sale("Sara", "0311", [line(catalog["white"], 1)]).sale
    return a["id"], b["id"], c["id"]


def test_dashboard_stats_shape_and_numbers(conn, catalog, sales):
    stats = DashboardRepo(conn).stats(datetime.now())
    assert stats["todaySales"] == {"revenue": 1800.0, "transactions": 1}
    assert stats["unpaidBills"] == {"count": 2, "totalAmount": 2400.0}
    inv = stats["inventory"]
    assert (inv["totalProducts"], inv["totalVariants"], inv["totalColors"]) == (1, 2, 3)
    # white has 4 left, strictly between 0 and the threshold
    assert inv["lowStock"] == 1
    assert inv["totalStockValue"] == 18 * 500 + 14 * 500 + 4 * 1800
    assert [s["id"] for s in stats["recentSales"]][0] == sales[2]
    chart = stats["monthlyChart"]
    assert len(chart) == 30
    assert chart[-1] == {"date": datetime.now().strftime("%d-%m-%Y"), "revenue": 1800.0}


def test_dashboard_empty_stats_matches_shape(conn):
    empty = DashboardRepo.empty_stats()
    assert set(empty) == set(DashboardRepo(conn).stats())


def test_sales_report_groups_by_month(conn, sales):
    report = ReportingRepo(conn).sales_report(
        SalesReportQuery(start_date="2024-01-01", end_date="2024-12-31", group_by="month"),
    )
    assert [(p["period"], p["transactions"], p["revenue"]) for p in report["periods"]] == [
        ("2024-01", 1, 1000.0),
        ("2024-03", 1, 500.0),
    ]
    assert report["totals"] == {"revenue": 1500.0, "collected": 900.0, "outstanding": 600.0, "transactions": 2}


def test_sales_report_end_date_is_inclusive(conn, sales):
    report = ReportingRepo(conn).sales_report(SalesReportQuery(start_date="2024-01-10", end_date="2024-01-10"))
    assert [p["period"] for p in report["periods"]] == ["2024-01-10"]


@pytest.mark.parametrize(
    "q",
    [
        SalesReportQuery(group_by="year"),
        SalesReportQuery(start_date="10-01-2024"),
        SalesReportQuery(start_date="2024-02-01", end_date="2024-01-01"),
    ],
)
def test_sales_report_validates_parameters(conn, q):
    with pytest.raises(ValidationError):
        ReportingRepo(conn).sales_report(q)


def test_inventory_report(conn, catalog):
    report = ReportingRepo(conn).inventory_report(InventoryReportQuery(low_stock_threshold=5))
    assert report["threshold"] == 5
    assert [c["id"] for c in report["lowStockItems"]] == [catalog["white"]]


def test_customer_debt_report_orders_by_outstanding(conn, sales):
    rows = ReportingRepo(conn).customer_debt_report()
    assert [(r["customerPhone"], r["totalOutstanding"], r["billCount"]) for r in rows] == [
        ("0311", 1800.0, 1),
        ("0300", 600.0, 1),
    ]
    assert rows[1]["oldestBill"] == "10-01-2024"


def test_customer_suggestions_and_search(conn, sales):
    repo = CustomersRepo(conn)
    suggestions = repo.suggestions(limit=5)
    assert [s["customerPhone"] for s in suggestions] == ["0311", "0300"]
    assert suggestions[1]["totalSpent"] == 1500
    assert suggestions[1]["lastSaleDate"] == "05-03-2024"

    found = repo.search("ali")
    assert [(f["customerPhone"], f["outstandingBalance"]) for f in found] == [("0300", 600)]
    assert repo.search("   ") == []


def test_customer_bills_newest_first(conn, sales):
    a, b, _ = sales
    assert [s.id for s in CustomersRepo(conn).bills("0300")] == [b, a]


def test_report_dates_fall_back_to_raw_text(caplog):
    assert fmt_ddmmyyyy("2024-03-05T10:00:00.000001") == "05-03-2024"
    assert fmt_ddmmyyyy(None) is None
    with caplog.at_level("DEBUG", logger="paint_pos.helpers"):
        assert fmt_ddmmyyyy("last tuesday") == "last tuesday"
    assert "could not parse" in caplog.text
