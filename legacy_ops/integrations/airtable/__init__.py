# Airtable integration module
from legacy_ops.integrations.airtable.client import AirtableClient

__all__ = ["AirtableClient"]
