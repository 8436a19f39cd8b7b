"""Airtable client for the store's inventory, customer and sales bases.

pyairtable is synchronous, so every call runs in a worker thread.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Any

from pyairtable import Api
from requests import RequestException

from legacy_ops.config import get_settings
from legacy_ops.utils.helpers import build_airtable_filter

logger = logging.getLogger(__name__)

INVENTORY_TABLE = "Wine Inventory"
CUSTOMERS_TABLE = "Customers"
SALES_TABLE = "Sales"

AIRTABLE_ERRORS = (RequestException,)


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


class AirtableClient:
    def __init__(self, api: Api | None = None) -> None:
        self._settings = get_settings()
        self._api = api
        self.base_id = self._settings.airtable_base_id
        self.default_table = self._settings.airtable_default_table

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.airtable_api_key and self.base_id)

    @property
    def api(self) -> Api:
        if self._api is None:
            self._api = Api(self._settings.airtable_api_key)
        return self._api

    def table(self, table_name: str | None = None):
        return self.api.table(self.base_id, table_name or self.default_table)

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await asyncio.to_thread(self.table().first)
            return True
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable connection failed: {e}")
            return False

    # ---- Records ---------------------------------------------------------

    async def list_records(
        self,
        table_name: str | None = None,
        formula: str | None = None,
        sort: list[str] | None = None,
        fields: list[str] | None = None,
        max_records: int = 100,
    ) -> list[dict[str, Any]]:
        """List records; sort entries are field names, prefixed with "-" for descending."""
        options: dict[str, Any] = {"max_records": max_records, "sort": sort or ["Name"]}
        if formula:
            options["formula"] = formula
        if fields:
            options["fields"] = fields
        try:
            records = await asyncio.to_thread(self.table(table_name).all, **options)
            logger.info(f"Fetched {len(records)} records from {table_name or self.default_table}")
            return records
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error listing records: {e}")
            return []

    async def get_record(self, record_id: str, table_name: str | None = None) -> dict[str, Any] | None:
        try:
            return await asyncio.to_thread(self.table(table_name).get, record_id)
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error fetching record {record_id}: {e}")
            return None

    async def create_record(self, fields: dict[str, Any], table_name: str | None = None) -> dict[str, Any] | None:
        try:
            record = await asyncio.to_thread(self.table(table_name).create, _compact(fields), typecast=True)
            logger.info(f"Airtable record created: {record['id']}")
            return record
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error creating record: {e}")
            return None

    async def create_records(self, records: list[dict[str, Any]], table_name: str | None = None) -> list[dict[str, Any]]:
        try:
            return await asyncio.to_thread(
                self.table(table_name).batch_create, [_compact(r) for r in records], typecast=True
            )
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error creating records: {e}")
            return []

    async def update_record(
        self, record_id: str, fields: dict[str, Any], table_name: str | None = None
    ) -> dict[str, Any] | None:
        try:
            return await asyncio.to_thread(self.table(table_name).update, record_id, fields, typecast=True)
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error updating record {record_id}: {e}")
            return None

    async def update_records(self, updates: list[dict[str, Any]], table_name: str | None = None) -> list[dict[str, Any]]:
        """Batch update; each entry is {"id": ..., "fields": {...}}."""
        try:
            return await asyncio.to_thread(self.table(table_name).batch_update, updates, typecast=True)
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error updating records: {e}")
            return []

    async def delete_record(self, record_id: str, table_name: str | None = None) -> bool:
        try:
            await asyncio.to_thread(self.table(table_name).delete, record_id)
            return True
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error deleting record {record_id}: {e}")
            return False

    async def delete_records(self, record_ids: list[str], table_name: str | None = None) -> bool:
        try:
            await asyncio.to_thread(self.table(table_name).batch_delete, record_ids)
            return True
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error deleting records: {e}")
            return False

    async def search_records(self, term: str, field: str = "Name", table_name: str | None = None) -> list[dict[str, Any]]:
        escaped = term.lower().replace("\\", "\\\\").replace("'", "\\'")
        return await self.list_records(table_name, formula=f"SEARCH('{escaped}', LOWER({{{field}}}))")

    async def filter_records(
        self,
        table_name: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        category: str | None = None,
        in_stock: bool | None = None,
    ) -> list[dict[str, Any]]:
        formula = build_airtable_filter(min_price, max_price, category, in_stock)
        return await self.list_records(table_name, formula=formula or None)

    async def get_table_schema(self, table_name: str | None = None) -> dict[str, Any] | None:
        try:
            schema = await asyncio.to_thread(self.table(table_name).schema)
            return schema.model_dump()
        except AIRTABLE_ERRORS as e:
            logger.error(f"Airtable error fetching schema: {e}")
            return None

    # ---- Inventory -------------------------------------------------------

    async def add_wine_to_inventory(
        self,
        name: str,
        price: float,
        stock: int,
        wine_type: str | None = None,
        vintage: int | None = None,
        region: str | None = None,
        cost: float | None = None,
        sku: str | None = None,
        description: str | None = None,
        supplier: str | None = None,
        rating: float | None = None,
        image_url: str | None = None,
    ) -> dict[str, Any] | None:
        return await self.create_record(
            {
                "Name": name,
                "Type": wine_type,
                "Vintage": vintage,
                "Region": region,
                "Price": price,
                "Cost": cost,
                "Stock": stock,
                "SKU": sku,
                "Description": description,
                "Supplier": supplier,
                "Rating": rating,
                "Image": [{"url": image_url}] if image_url else None,
            },
            INVENTORY_TABLE,
        )

    async def update_stock(self, record_id: str, quantity: int, operation: str = "set") -> dict[str, Any] | None:
        """Set, add to or subtract from a record's Stock; stock never goes below zero."""
        if operation not in ("set", "add", "subtract"):
            raise ValueError(f"Unknown stock operation: {operation}")
        record = await self.get_record(record_id, INVENTORY_TABLE)
        if record is None:
            return None

        current = record["fields"].get("Stock") or 0
        if operation == "add":
            new_stock = current + quantity
        elif operation == "subtract":
            new_stock = max(0, current - quantity)
        else:
            new_stock = max(0, quantity)

        logger.info(f"Stock for {record_id}: {current} -> {new_stock}")
        return await self.update_record(
            record_id,
            {"Stock": new_stock, "Last Updated": datetime.now(timezone.utc).isoformat()},
            INVENTORY_TABLE,
        )

    async def get_low_stock_items(self, threshold: int = 10, table_name: str | None = None) -> list[dict[str, Any]]:
        return await self.list_records(
            table_name or INVENTORY_TABLE,
            formula=f"AND({{Stock}} > 0, {{Stock}} < {threshold})",
            sort=["Stock"],
        )

    # ---- CRM & sales -----------------------------------------------------

    async def add_customer(
        self,
        first_name: str,
        last_name: str,
        email: str | None = None,
        phone: str | None = None,
        tags: list[str] | None = None,
        **extra: Any,
    ) -> dict[str, Any] | None:
        fields = {
            "Name": f"{first_name} {last_name}",
            "Email": email,
            "Phone": phone,
            "Loyalty Points": 0,
            "Total Spent": 0,
            "Join Date": datetime.now(timezone.utc).isoformat(),
            "Tags": tags or [],
        }
        fields.update(extra)
        return await self.create_record(fields, CUSTOMERS_TABLE)

    async def record_sale(
        self,
        items: list[str],
        quantities: list[int],
        total: float,
        customer_id: str | None = None,
        subtotal: float | None = None,
        tax: float | None = None,
        payment_method: str | None = None,
        employee: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any] | None:
        """Create a Sales record linked to inventory items, then decrement each item's stock."""
        if len(items) != len(quantities):
            raise ValueError("items and quantities must have the same length")
        record = await self.create_record(
            {
                "Date": datetime.now(timezone.utc).isoformat(),
                "Customer": [customer_id] if customer_id else None,
                "Items": items,
                "Quantities": ", ".join(str(q) for q in quantities),
                "Subtotal": subtotal,
                "Tax": tax,
                "Total": total,
                "Payment Method": payment_method,
                "Employee": employee,
                "Notes": notes,
            },
            SALES_TABLE,
        )
        if record is None:
            return None
        for item_id, quantity in zip(items, quantities):
            await self.update_stock(item_id, quantity, "subtract")
        return record

    async def generate_sales_report(self, start_date: str, end_date: str) -> dict[str, Any]:
        """Totals, revenue per category and the top five products for a date window."""
        formula = f"AND(IS_AFTER({{Date}}, '{start_date}'), IS_BEFORE({{Date}}, '{end_date}'))"
        sales = await self.list_records(SALES_TABLE, formula=formula, sort=["Date"], max_records=1000)

        revenue = 0.0
        by_category: dict[str, float] = defaultdict(float)
        products: Counter = Counter()
        for sale in sales:
            fields = sale.get("fields", {})
            total = float(fields.get("Total") or 0)
            revenue += total
            by_category[fields.get("Category") or "Uncategorized"] += total
            for product in fields.get("Product Names") or fields.get("Items") or []:
                products[product] += 1

        count = len(sales)
        return {
            "period": {"start": start_date, "end": end_date},
            "total_sales": count,
            "revenue": round(revenue, 2),
            "average_sale": round(revenue / count, 2) if count else 0.0,
            "by_category": {k: round(v, 2) for k, v in by_category.items()},
            "top_products": [{"product": p, "sales": n} for p, n in products.most_common(5)],
        }
