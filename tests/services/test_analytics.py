"""
Sales Intelligence Tests

Lightspeed is served by an httpx.MockTransport returning a fixed 90-day sale
history; the reference time is 2025-10-20 12:00 UTC.
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from legacy_ops.integrations.lightspeed import LightspeedClient
from legacy_ops.services.analytics import SalesIntelligence

NOW = datetime(2025, 10, 20, 12, 0, tzinfo=timezone.utc)


def _sale(customer_id, total, when, first=None, last=None, email=None):
    sale = {"saleID": f"{customer_id}-{when}", "customerID": customer_id, "total": str(total), "completeTime": when}
    if first:
        profile = {"firstName": first, "lastName": last}
        if email:
            profile["Contact"] = {"Emails": {"ContactEmail": {"address": email}}}
        sale["Customer"] = profile
    return sale


def _history():
    sales = [
        _sale("1", 300, "2025-08-01T15:00:00+00:00", "Ana", "Reyes", "ana@example.com"),
        _sale("1", 250, "2025-08-20T15:00:00+00:00", "Ana", "Reyes", "ana@example.com"),
        _sale("3", 1500, "2025-09-01T15:00:00+00:00", "Cal", "Ortiz"),
        _sale("0", 40, "2025-10-19T15:00:00+00:00"),
    ]
    sales += [_sale("2", 20, f"2025-10-{day:02d}T15:00:00+00:00", "Ben", "Cho") for day in range(9, 19)]
    sales += [_sale("4", 400, f"2025-10-{day:02d}T15:00:00+00:00", "Dee", "Park") for day in (1, 5, 10)]
    return sales


def _intel(handler) -> SalesIntelligence:
    return SalesIntelligence(LightspeedClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def intel(requests_seen):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(200, json={"Sale": _history()})

    return _intel(handler)


def test_not_configured(monkeypatch):
    from legacy_ops.config import get_settings

    monkeypatch.setenv("LIGHTSPEED_ACCESS_TOKEN", "")
    get_settings.cache_clear()
    analyzer = SalesIntelligence()

    expected = {"success": False, "message": "Lightspeed access token not configured"}
    assert asyncio.run(analyzer.get_today_sales()) == expected
    assert asyncio.run(analyzer.get_vip_customers()) == expected
    assert asyncio.run(analyzer.test_connection()) == expected


def test_http_error_becomes_error_dict():
    analyzer = _intel(lambda request: httpx.Response(503, json={}))

    result = asyncio.run(analyzer.get_at_risk_customers(NOW))

    assert result["success"] is False
    assert "503" in result["error"]


def test_today_sales():
    seen = {}
    sales = [
        {
            "saleID": "11",
            "total": "100",
            "calcTotal": "100",
            "calcCost": "60",
            "completeTime": "2025-10-20T10:00:00-04:00",
            "Customer": {"firstName": "Ana", "lastName": "Reyes"},
        },
        {"saleID": "12", "total": "50", "calcTotal": "50", "calcCost": "30"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"Sale": sales})

    result = asyncio.run(_intel(handler).get_today_sales(datetime(2025, 10, 20, 15, 30)))

    data = result["data"]
    assert (data["count"], data["revenue"], data["profit"], data["profit_margin"]) == (2, 150.0, 60.0, 40.0)
    assert [s["customer"] for s in data["sales"]] == ["Ana Reyes", "Walk-in"]
    assert seen["params"]["timeStamp"] == "><,2025-10-20T00:00:00,2025-10-20T23:59:59"
    assert seen["params"]["completed"] == "true"
    assert json.loads(seen["params"]["load_relations"]) == ["Customer", "SaleLines.Item"]


def test_repeat_customers(intel, requests_seen):
    result = asyncio.run(intel.get_repeat_customers(NOW))

    data = result["data"]
    assert [c["name"] for c in data["customers"]] == ["Dee Park", "Ana Reyes", "Ben Cho"]
    assert data["summary"] == {"total_repeat_customers": 3, "total_revenue": 1950.0, "avg_lifetime_value": 650.0}
    assert requests_seen[0].url.params["timeStamp"] == "><,2025-07-22T12:00:00,2025-10-20T12:00:00"


def test_at_risk_customers(intel):
    result = asyncio.run(intel.get_at_risk_customers(NOW))

    assert [c["name"] for c in result["data"]] == ["Ana Reyes"]
    assert result["data"][0]["days_since_last"] == 60
    assert result["summary"] == {"count": 1, "total_value": 550.0, "avg_value": 550.0}


def test_vip_customers_by_visits_or_spend(intel):
    result = asyncio.run(intel.get_vip_customers(NOW))

    assert [c["name"] for c in result["data"]] == ["Dee Park", "Ben Cho"]
    assert result["summary"] == {"count": 2, "total_value": 1400.0, "avg_value": 700.0}


def test_customer_segmentation(intel):
    result = asyncio.run(intel.get_customer_segmentation(NOW))

    assert result["data"] == {
        "Occasional": {"count": 1, "revenue": 1200.0},
        "Two-time": {"count": 1, "revenue": 550.0},
        "VIP": {"count": 1, "revenue": 200.0},
    }


def test_reengagement_list(intel):
    result = asyncio.run(intel.generate_reengagement_list(NOW))

    (target,) = result["data"]
    assert target["email"] == "ana@example.com"
    assert target["last_purchase"] == "2025-08-20T15:00:00+00:00"
    assert target["average_order_value"] == 275.0
    assert target["suggested_offer"] == "15% off + complimentary gift"


def test_dashboard_data(intel):
    result = asyncio.run(intel.get_dashboard_data(NOW))

    data = result["data"]
    assert data["repeat_customers"]["total_repeat_customers"] == 3
    assert data["at_risk"]["count"] == 1
    assert data["vip"]["count"] == 2
    assert data["today_sales"]["count"] == len(_history())


def test_dashboard_data_failed_sections_are_none():
    result = asyncio.run(_intel(lambda request: httpx.Response(500)).get_dashboard_data(NOW))

    assert result["success"] is True
    assert set(result["data"].values()) == {None}


def test_export_csv(intel, test_settings):
    result = asyncio.run(intel.export_customer_data("csv", NOW))

    path = Path(result["data"]["path"])
    assert path.parent == Path(test_settings.reports_dir)
    assert path.name.startswith("customer-export-") and path.suffix == ".csv"
    assert len(path.read_text(encoding="utf-8").splitlines()) == 4
    assert result["data"]["count"] == 3


def test_export_json(intel):
    result = asyncio.run(intel.export_customer_data("json", NOW))

    exported = json.loads(Path(result["data"]["path"]).read_text(encoding="utf-8"))
    assert [c["customer_id"] for c in exported] == ["4", "1", "2"]


def test_export_rejects_unknown_format(intel, requests_seen):
    with pytest.raises(ValueError):
        asyncio.run(intel.export_customer_data("xml"))
    assert requests_seen == []
