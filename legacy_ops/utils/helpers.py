"""
Shared Utility Functions

Small pure helpers used by the integrations, the campaign services and the bot:
stock filters, post category detection, customer aggregation and CSV export.
"""

import csv
import io
import json
import re
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

WALK_IN_IDS = {"", "0", "walk-in"}

# Checked in order, first match wins
CATEGORY_KEYWORDS = [
    ("beer", ["beer", "craft"]),
    ("liquor", ["liquor", "vodka", "whiskey"]),
    ("cocktail", ["cocktail", "drink", "mix"]),
    ("store", ["store", "shop", "visit"]),
]
DEFAULT_CATEGORY = "wine"

CSV_HEADERS = [
    "Customer ID",
    "Name",
    "Email",
    "Visit Count",
    "Total Spent",
    "AOV",
    "Last Visit",
    "Days Since Last",
]


def ensure_list(value: Any) -> List[Any]:
    """
    Normalize a vendor payload that may be a single object, a list or missing.

    Lightspeed returns a bare object instead of a one-element list when a
    query matches exactly one record.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def filter_low_stock(
    items: List[Any],
    threshold: float,
    key: Optional[Callable[[Any], Optional[float]]] = None,
) -> List[Any]:
    """
    Return the items whose stock is strictly between 0 and threshold.

    Args:
        items: Records to filter, order is preserved
        threshold: Exclusive upper bound
        key: Extracts the stock level from a record (defaults to the record itself)

    Returns:
        Subset of items with 0 < stock < threshold
    """
    result = []
    for item in items:
        stock = key(item) if key else item
        if stock is None:
            continue
        try:
            stock = float(stock)
        except (TypeError, ValueError):
            logger.debug(f"Skipping item with non-numeric stock: {stock!r}")
            continue
        if 0 < stock < threshold:
            result.append(item)
    return result


def detect_category(text: str) -> str:
    """Classify post text into beer / liquor / cocktail / store, defaulting to wine."""
    lowered = (text or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 vendor timestamp; naive values are treated as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Unparseable timestamp: {value}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def customer_segment(visit_count: int) -> str:
    if visit_count >= 10:
        return "VIP"
    if visit_count >= 5:
        return "Frequent"
    if visit_count >= 3:
        return "Occasional"
    return "Two-time"


def aggregate_customers(
    sales: List[Dict[str, Any]], now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Group sale records by customer in a single pass.

    Walk-in sales (no customer id or id "0") are skipped. Each aggregated
    record carries visit_count, total_spent (sum of sale totals), the purchase
    list, last_visit, days_since_last, average_order_value and segment.

    Args:
        sales: Lightspeed-style Sale records (customerID, total, completeTime, Customer)
        now: Reference time for days_since_last (defaults to current UTC time)

    Returns:
        Aggregated customers sorted by total_spent, highest first
    """
    now = now or datetime.now(timezone.utc)
    customers: Dict[str, Dict[str, Any]] = {}

    for sale in sales:
        customer_id = str(sale.get("customerID") or "")
        if customer_id in WALK_IN_IDS:
            continue

        if customer_id not in customers:
            profile = sale.get("Customer") or {}
            name = " ".join(
                part for part in [profile.get("firstName"), profile.get("lastName")] if part
            )
            emails = ensure_list(
                ((profile.get("Contact") or {}).get("Emails") or {}).get("ContactEmail")
            )
            customers[customer_id] = {
                "customer_id": customer_id,
                "name": name or "Unknown",
                "email": emails[0].get("address", "") if emails else "",
                "purchases": [],
                "total_spent": 0.0,
                "visit_count": 0,
            }

        amount = _to_float(sale.get("total"))
        customer = customers[customer_id]
        customer["purchases"].append({"date": sale.get("completeTime"), "amount": amount})
        customer["total_spent"] += amount
        customer["visit_count"] += 1

    result = []
    for customer in customers.values():
        dated = []
        for purchase in customer["purchases"]:
            parsed = parse_timestamp(purchase["date"])
            if parsed:
                dated.append((parsed, purchase["date"]))

        if dated:
            last_dt, last_raw = max(dated, key=lambda pair: pair[0])
            customer["last_visit"] = last_raw
            customer["days_since_last"] = (now - last_dt).days
        else:
            customer["last_visit"] = None
            customer["days_since_last"] = None
        customer["total_spent"] = round(customer["total_spent"], 2)
        customer["average_order_value"] = round(
            customer["total_spent"] / customer["visit_count"], 2
        )
        customer["segment"] = customer_segment(customer["visit_count"])
        result.append(customer)

    result.sort(key=lambda c: c["total_spent"], reverse=True)
    return result


def customers_to_csv(customers: List[Dict[str, Any]]) -> str:
    """
    Render aggregated customers as CSV: one header line plus one line per customer.

    Every field is double-quoted and embedded quotes are doubled.
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for c in customers:
        writer.writerow(
            [
                c.get("customer_id", ""),
                c.get("name", ""),
                c.get("email", ""),
                c.get("visit_count", 0),
                f"{_to_float(c.get('total_spent')):.2f}",
                f"{_to_float(c.get('average_order_value')):.2f}",
                c.get("last_visit") or "",
                "" if c.get("days_since_last") is None else c["days_since_last"],
            ]
        )
    return output.getvalue()[:-1]


def offer_recommendation(customer: Dict[str, Any]) -> str:
    """Pick a win-back offer from lifetime value and visit count."""
    total_spent = _to_float(customer.get("total_spent"))
    if total_spent > 1000:
        return "VIP: 20% off next purchase + free delivery"
    if total_spent > 500:
        return "15% off + complimentary gift"
    if customer.get("visit_count", 0) >= 5:
        return "Loyalty: Buy 2 get 1 free on select items"
    return "10% off welcome back offer"


def build_airtable_filter(
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    category: Optional[str] = None,
    in_stock: Optional[bool] = None,
) -> str:
    """Build an Airtable formula from optional inventory filters."""
    conditions = []
    if min_price is not None:
        conditions.append(f"{{Price}} >= {min_price}")
    if max_price is not None:
        conditions.append(f"{{Price}} <= {max_price}")
    if category:
        escaped = category.replace("'", "\\'")
        conditions.append(f"{{Category}} = '{escaped}'")
    if in_stock:
        conditions.append("{Stock} > 0")

    if not conditions:
        return ""
    if len(conditions) == 1:
        return conditions[0]
    return f"AND({', '.join(conditions)})"


def extract_json(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull the first JSON object out of model output.

    Handles bare JSON, fenced ```json blocks and JSON embedded in prose.
    """
    if not text:
        return None

    cleaned = re.sub(r"^```(?:json)?\s*", "", text.strip())
    cleaned = re.sub(r"\s*```$", "", cleaned)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning("Model output contained no parseable JSON object")
        return None
    return parsed if isinstance(parsed, dict) else None


def strip_mentions(text: str) -> str:
    """Remove Slack user mentions like <@U123ABC> and trim whitespace."""
    return re.sub(r"<@[A-Z0-9]+>", "", text or "").strip()


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
