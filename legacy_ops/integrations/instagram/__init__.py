# Instagram integration module
from legacy_ops.integrations.instagram.client import InstagramClient

__all__ = ["InstagramClient"]
