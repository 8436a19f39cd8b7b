"""
Sales Intelligence

Customer and sales analytics over Lightspeed sale history: today's numbers,
repeat / at-risk / VIP customers, segmentation, win-back lists and exports.
Every public method returns {"success": True, "data": ...} or a failure dict.
"""

import asyncio
import json
import logging
from collections import Counter
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from legacy_ops.config import get_settings
from legacy_ops.integrations.lightspeed import LightspeedClient, date_range
from legacy_ops.utils.helpers import aggregate_customers, customers_to_csv, offer_recommendation

logger = logging.getLogger(__name__)

REPEAT_WINDOW_DAYS = 90
AT_RISK_MIN_SPENT = 200
AT_RISK_MIN_DAYS = 30
VIP_MIN_VISITS = 10
VIP_MIN_SPENT = 1000


def _summary(customers: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = round(sum(c["total_spent"] for c in customers), 2)
    return {
        "count": len(customers),
        "total_value": total,
        "avg_value": round(total / len(customers), 2) if customers else 0.0,
    }


def _customer_name(sale: Dict[str, Any]) -> str:
    profile = sale.get("Customer") or {}
    name = " ".join(part for part in [profile.get("firstName"), profile.get("lastName")] if part)
    return name or "Walk-in"


class SalesIntelligence:
    def __init__(self, lightspeed: Optional[LightspeedClient] = None):
        self.settings = get_settings()
        self.lightspeed = lightspeed or LightspeedClient()

    def _not_configured(self) -> Dict[str, Any]:
        return {"success": False, "message": "Lightspeed access token not configured"}

    async def test_connection(self) -> Dict[str, Any]:
        if not self.lightspeed.is_configured:
            return self._not_configured()
        if await self.lightspeed.test_connection():
            return {"success": True, "message": "Connected to Lightspeed"}
        return {"success": False, "message": "Lightspeed connection failed"}

    async def _customers(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Aggregated customers over the repeat window. Raises httpx.HTTPError."""
        now = now or datetime.now(timezone.utc)
        sales = await self.lightspeed.fetch_sales(
            time_range=date_range(now - timedelta(days=REPEAT_WINDOW_DAYS), now),
            relations=("Customer",),
            completed_only=True,
        )
        return aggregate_customers(sales, now)

    async def get_today_sales(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        if not self.lightspeed.is_configured:
            return self._not_configured()
        now = now or datetime.now()
        start = datetime.combine(now.date(), time.min)
        end = datetime.combine(now.date(), time.max)
        try:
            sales = await self.lightspeed.fetch_sales(
                time_range=date_range(start, end),
                relations=("Customer", "SaleLines.Item"),
                completed_only=True,
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch today's sales: {e}")
            return {"success": False, "error": str(e)}

        revenue = sum(float(s.get("total") or 0) for s in sales)
        profit = sum(float(s.get("calcTotal") or 0) - float(s.get("calcCost") or 0) for s in sales)
        return {
            "success": True,
            "data": {
                "count": len(sales),
                "revenue": round(revenue, 2),
                "profit": round(profit, 2),
                "profit_margin": round(profit / revenue * 100, 2) if revenue else 0.0,
                "sales": [
                    {
                        "id": s.get("saleID"),
                        "total": float(s.get("total") or 0),
                        "customer": _customer_name(s),
                        "time": s.get("completeTime"),
                    }
                    for s in sales
                ],
            },
        }

    async def get_repeat_customers(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Customers with two or more completed sales in the last 90 days, highest spend first."""
        if not self.lightspeed.is_configured:
            return self._not_configured()
        try:
            customers = await self._customers(now)
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch repeat customers: {e}")
            return {"success": False, "error": str(e)}

        repeat = [c for c in customers if c["visit_count"] >= 2]
        total = round(sum(c["total_spent"] for c in repeat), 2)
        return {
            "success": True,
            "data": {
                "summary": {
                    "total_repeat_customers": len(repeat),
                    "total_revenue": total,
                    "avg_lifetime_value": round(total / len(repeat), 2) if repeat else 0.0,
                },
                "customers": repeat,
            },
        }

    async def _filtered(self, predicate, now: Optional[datetime] = None) -> Dict[str, Any]:
        result = await self.get_repeat_customers(now)
        if not result["success"]:
            return result
        matched = [c for c in result["data"]["customers"] if predicate(c)]
        return {"success": True, "data": matched, "summary": _summary(matched)}

    async def get_at_risk_customers(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return await self._filtered(
            lambda c: c["total_spent"] > AT_RISK_MIN_SPENT
            and c["days_since_last"] is not None
            and c["days_since_last"] > AT_RISK_MIN_DAYS,
            now,
        )

    async def get_vip_customers(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return await self._filtered(
            lambda c: c["visit_count"] >= VIP_MIN_VISITS or c["total_spent"] >= VIP_MIN_SPENT, now
        )

    async def get_customer_segmentation(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Customer count and revenue per segment (VIP, Frequent, Occasional, Two-time)."""
        result = await self.get_repeat_customers(now)
        if not result["success"]:
            return result
        customers = result["data"]["customers"]
        counts = Counter(c["segment"] for c in customers)
        segments = {}
        for segment, count in counts.most_common():
            revenue = round(sum(c["total_spent"] for c in customers if c["segment"] == segment), 2)
            segments[segment] = {"count": count, "revenue": revenue}
        return {"success": True, "data": segments}

    async def generate_reengagement_list(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        result = await self.get_at_risk_customers(now)
        if not result["success"]:
            return result
        targets = [
            {
                "customer_id": c["customer_id"],
                "name": c["name"],
                "email": c["email"],
                "total_spent": c["total_spent"],
                "average_order_value": c["average_order_value"],
                "last_purchase": c["last_visit"],
                "days_since_last": c["days_since_last"],
                "suggested_offer": offer_recommendation(c),
            }
            for c in result["data"]
        ]
        return {"success": True, "data": targets}

    async def get_dashboard_data(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Today's sales plus repeat / at-risk / VIP summaries. Failed sections are None."""
        today, repeat, at_risk, vip = await asyncio.gather(
            self.get_today_sales(),
            self.get_repeat_customers(now),
            self.get_at_risk_customers(now),
            self.get_vip_customers(now),
        )
        return {
            "success": True,
            "data": {
                "today_sales": today["data"] if today["success"] else None,
                "repeat_customers": repeat["data"]["summary"] if repeat["success"] else None,
                "at_risk": at_risk["summary"] if at_risk["success"] else None,
                "vip": vip["summary"] if vip["success"] else None,
            },
        }

    async def export_customer_data(self, fmt: str = "json", now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Write repeat customers to reports/customer-export-<timestamp>.<fmt>.

        Raises:
            ValueError: fmt is not json or csv
        """
        if fmt not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {fmt}")
        result = await self.get_repeat_customers(now)
        if not result["success"]:
            return result

        customers = result["data"]["customers"]
        reports_dir = Path(self.settings.reports_dir)
        reports_dir.mkdir(parents=True, exist_ok=True)
        path = reports_dir / f"customer-export-{datetime.now().strftime('%Y%m%d-%H%M%S')}.{fmt}"
        if fmt == "csv":
            path.write_text(customers_to_csv(customers), encoding="utf-8")
        else:
            path.write_text(json.dumps(customers, indent=2, default=str), encoding="utf-8")
        logger.info(f"Exported {len(customers)} customers to {path}")
        return {"success": True, "data": {"path": str(path), "count": len(customers)}}
