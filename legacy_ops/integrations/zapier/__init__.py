# Zapier integration module
from legacy_ops.integrations.zapier.client import ZapierClient

__all__ = ["ZapierClient"]
