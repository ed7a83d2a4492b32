"""
Market Scanner Service

Single-symbol scans (fetch -> compute -> cache) and concurrent batch
scans across many pairs.
"""

from cryptoscan.services.scanner.scanner import (
    MarketScanner,
    high_potential_conditions,
    is_high_potential,
    is_tradeable_pair,
)
from cryptoscan.services.scanner.service import ScanService

__all__ = [
    "MarketScanner",
    "ScanService",
    "high_potential_conditions",
    "is_high_potential",
    "is_tradeable_pair",
]
