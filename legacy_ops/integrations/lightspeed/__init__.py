# Lightspeed Retail integration module
from legacy_ops.integrations.lightspeed.client import LightspeedClient, date_range, item_qoh

__all__ = ["LightspeedClient", "date_range", "item_qoh"]
