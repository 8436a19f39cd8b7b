"""Lightspeed Retail (R-Series) API V3 client.

Every collection endpoint answers with a bare object when exactly one record
matches, so list results go through ensure_list.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from legacy_ops.config import get_settings
from legacy_ops.utils.helpers import ensure_list, filter_low_stock

logger = logging.getLogger(__name__)

TOKEN_URL = "https://cloud.lightspeedapp.com/oauth/access_token.php"


def _relations(*names: str) -> str:
    return json.dumps(list(names))


def date_range(start: datetime, end: datetime) -> str:
    """Format a Lightspeed timeStamp between-filter."""
    return f"><,{start.strftime('%Y-%m-%dT%H:%M:%S')},{end.strftime('%Y-%m-%dT%H:%M:%S')}"


def item_qoh(item: dict[str, Any]) -> float | None:
    """Quantity on hand from the item's first ItemShop."""
    shops = ensure_list((item.get("ItemShops") or {}).get("ItemShop"))
    if not shops:
        return None
    return shops[0].get("qoh")


class LightspeedClient:
    """Client for the Lightspeed Retail account API (Bearer token, OAuth refresh)."""

    API_ROOT = "https://api.lightspeedapp.com/API/V3/Account"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.access_token = self._settings.lightspeed_access_token

    @property
    def base_url(self) -> str:
        return f"{self.API_ROOT}/{self._settings.lightspeed_account_id}"

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.lightspeed_account_id and self.access_token)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=30.0,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self.access_token}", "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        client = await self._get_client()
        response = await client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    async def refresh_access_token(self) -> str | None:
        """Exchange the refresh token for a new access token and update the auth header."""
        if not self._settings.lightspeed_refresh_token:
            return None
        try:
            client = await self._get_client()
            response = await client.post(
                TOKEN_URL,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self._settings.lightspeed_refresh_token,
                    "client_id": self._settings.lightspeed_client_id,
                    "client_secret": self._settings.lightspeed_client_secret,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed token refresh failed: {e}")
            return None

        self.access_token = response.json()["access_token"]
        client.headers["Authorization"] = f"Bearer {self.access_token}"
        logger.info("Lightspeed access token refreshed")
        return self.access_token

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await self._request("GET", "/Sale.json", params={"limit": 1})
            return True
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed connection failed: {e}")
            return False

    async def get_account_info(self) -> dict[str, Any] | None:
        await self.refresh_access_token()
        try:
            data = await self._request("GET", "/Account.json")
            return data.get("Account")
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error fetching account: {e}")
            return None

    # ---- Items -----------------------------------------------------------

    async def get_items(
        self, limit: int = 100, offset: int = 0, relations: tuple[str, ...] = ("ItemShops", "Prices", "Images")
    ) -> list[dict[str, Any]]:
        try:
            data = await self._request(
                "GET",
                "/Item.json",
                params={"limit": limit, "offset": offset, "load_relations": _relations(*relations)},
            )
            return ensure_list(data.get("Item"))
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error listing items: {e}")
            return []

    async def search_items(self, query: str) -> list[dict[str, Any]]:
        try:
            data = await self._request(
                "GET",
                "/Item.json",
                params={
                    "description": f"~,%{query}%",
                    "limit": 50,
                    "load_relations": _relations("ItemShops", "Prices"),
                },
            )
            return ensure_list(data.get("Item"))
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error searching items: {e}")
            return []

    async def get_item(self, item_id: str) -> dict[str, Any] | None:
        try:
            data = await self._request(
                "GET",
                f"/Item/{item_id}.json",
                params={"load_relations": _relations("ItemShops", "Prices", "Images", "Category", "Manufacturer")},
            )
            return data.get("Item")
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error fetching item {item_id}: {e}")
            return None

    async def update_item_quantity(self, item_id: str, shop_id: str, quantity: int) -> dict[str, Any] | None:
        try:
            data = await self._request(
                "PUT", f"/ItemShop/{item_id}/{shop_id}.json", json={"ItemShop": {"qoh": quantity}}
            )
            logger.info(f"Item {item_id} quantity set to {quantity}")
            return data.get("ItemShop")
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error updating quantity: {e}")
            return None

    async def create_item(
        self, name: str, price: float, cost: float | None = None, sku: str | None = None, taxable: bool = True
    ) -> dict[str, Any] | None:
        item: dict[str, Any] = {
            "description": name,
            "tax": taxable,
            "itemType": "default",
            "Prices": {"ItemPrice": [{"amount": price, "useType": "Default", "useTypeID": 1}]},
        }
        if sku:
            item["customSku"] = sku
        if cost is not None:
            item["defaultCost"] = cost
        try:
            data = await self._request("POST", "/Item.json", json={"Item": item})
            return data.get("Item")
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error creating item: {e}")
            return None

    # ---- Sales -----------------------------------------------------------

    async def fetch_sales(
        self,
        time_range: str | None = None,
        limit: int = 100,
        offset: int = 0,
        relations: tuple[str, ...] = ("Customer", "SaleLines"),
        completed_only: bool = False,
    ) -> list[dict[str, Any]]:
        """
        List sales in a timeStamp range, raising httpx.HTTPError on failure.

        Args:
            time_range: A "><,start,end" filter (see date_range); defaults to the last 30 days
        """
        if time_range is None:
            now = datetime.now(timezone.utc)
            time_range = date_range(now - timedelta(days=30), now)
        params: dict[str, Any] = {
            "limit": limit,
            "offset": offset,
            "timeStamp": time_range,
            "load_relations": _relations(*relations),
        }
        if completed_only:
            params["completed"] = "true"
        data = await self._request("GET", "/Sale.json", params=params)
        return ensure_list(data.get("Sale"))

    async def get_sales(self, time_range: str | None = None, **options: Any) -> list[dict[str, Any]]:
        try:
            return await self.fetch_sales(time_range, **options)
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error listing sales: {e}")
            return []

    async def get_sale(self, sale_id: str) -> dict[str, Any] | None:
        try:
            data = await self._request(
                "GET",
                f"/Sale/{sale_id}.json",
                params={"load_relations": _relations("Customer", "SaleLines", "SalePayments", "Employee")},
            )
            return data.get("Sale")
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error fetching sale {sale_id}: {e}")
            return None

    async def get_sales_analytics(self, start_date: str, end_date: str) -> dict[str, Any] | None:
        """Count, revenue and average sale between two YYYY-MM-DD dates (inclusive)."""
        try:
            data = await self._request(
                "GET",
                "/Sale.json",
                params={"timeStamp": f"><,{start_date}T00:00:00,{end_date}T23:59:59", "limit": 100},
            )
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error fetching sales analytics: {e}")
            return None

        sales = ensure_list(data.get("Sale"))
        revenue = sum(float(s.get("calcTotal") or 0) for s in sales)
        count = len(sales)
        return {
            "start_date": start_date,
            "end_date": end_date,
            "count": count,
            "revenue": round(revenue, 2),
            "average": round(revenue / count, 2) if count else 0.0,
        }

    # ---- Customers & catalog ---------------------------------------------

    async def get_customers(self, limit: int = 100, offset: int = 0, order_by: str = "lastName") -> list[dict[str, Any]]:
        try:
            data = await self._request(
                "GET", "/Customer.json", params={"limit": limit, "offset": offset, "orderby": order_by}
            )
            return ensure_list(data.get("Customer"))
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error listing customers: {e}")
            return []

    async def create_customer(
        self, first_name: str, last_name: str, email: str | None = None, phone: str | None = None
    ) -> dict[str, Any] | None:
        contact: dict[str, Any] = {}
        if email:
            contact["Emails"] = {"ContactEmail": {"address": email, "useType": "Primary"}}
        if phone:
            contact["Phones"] = {"ContactPhone": {"number": phone, "useType": "Mobile"}}
        try:
            data = await self._request(
                "POST",
                "/Customer.json",
                json={"Customer": {"firstName": first_name, "lastName": last_name, "Contact": contact}},
            )
            return data.get("Customer")
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error creating customer: {e}")
            return None

    async def get_categories(self) -> list[dict[str, Any]]:
        try:
            data = await self._request("GET", "/Category.json")
            return ensure_list(data.get("Category"))
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error listing categories: {e}")
            return []

    async def get_vendors(self) -> list[dict[str, Any]]:
        try:
            data = await self._request("GET", "/Manufacturer.json")
            return ensure_list(data.get("Manufacturer"))
        except httpx.HTTPError as e:
            logger.error(f"Lightspeed error listing vendors: {e}")
            return []

    # ---- Reports ---------------------------------------------------------

    async def get_low_stock_items(self, threshold: int = 10) -> list[dict[str, Any]]:
        items = await self.get_items(limit=200, relations=("ItemShops",))
        low = filter_low_stock(items, threshold, key=item_qoh)
        logger.info(f"{len(low)} items below {threshold} in stock")
        return low

    async def get_best_sellers(self, days: int = 30, top: int = 10) -> list[dict[str, Any]]:
        """Aggregate sale lines by item over the last N days, ordered by quantity sold."""
        now = datetime.now(timezone.utc)
        sales = await self.get_sales(
            time_range=date_range(now - timedelta(days=days), now), relations=("SaleLines.Item",)
        )

        totals: dict[str, dict[str, Any]] = {}
        for sale in sales:
            for line in ensure_list((sale.get("SaleLines") or {}).get("SaleLine")):
                item_id = line.get("itemID")
                if not item_id or item_id == "0":
                    continue
                entry = totals.setdefault(
                    item_id,
                    {
                        "item_id": item_id,
                        "description": (line.get("Item") or {}).get("description"),
                        "quantity": 0.0,
                        "revenue": 0.0,
                    },
                )
                entry["quantity"] += float(line.get("unitQuantity") or 0)
                entry["revenue"] += float(line.get("calcTotal") or 0)

        ranked = sorted(totals.values(), key=lambda e: e["quantity"], reverse=True)
        for entry in ranked:
            entry["revenue"] = round(entry["revenue"], 2)
        return ranked[:top]
