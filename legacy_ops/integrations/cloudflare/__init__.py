# Cloudflare integration module
from legacy_ops.integrations.cloudflare.client import CloudflareClient

__all__ = ["CloudflareClient"]
