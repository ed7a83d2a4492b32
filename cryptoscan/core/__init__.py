"""Core configuration for CryptoScan."""

from cryptoscan.core.config import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
