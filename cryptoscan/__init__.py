"""
CryptoScan Backend

Technical-indicator scanner for Binance USDT pairs.
"""

__version__ = "0.1.0"
