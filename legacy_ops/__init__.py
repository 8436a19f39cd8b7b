"""Legacy Wine & Liquor operations toolkit."""

__version__ = "0.1.0"
