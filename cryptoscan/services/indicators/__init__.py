"""
Indicator Engine Service

CONTRACT:
    Input:  list[Candle] (oldest first)
    Output: ScanResult

RESPONSIBILITIES:
    - Calculate all technical indicators (RSI, MACD, EMA, ADX, ...)
    - Classify each indicator as bullish / bearish / neutral
    - Weight signals by tier and sum them into a composite score
    - Map the score to a five-level recommendation
    - Build the compact chart metrics payload

Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from cryptoscan.services.indicators.interface import IndicatorServiceInterface
from cryptoscan.services.indicators.metrics import compute_metrics
from cryptoscan.services.indicators.scoring import (
    DEFAULT_THRESHOLDS,
    RecommendationThresholds,
    recommend,
    total_score,
)
from cryptoscan.services.indicators.service import IndicatorService, compute_scan
from cryptoscan.services.indicators.signals import DEFAULT_TIERS

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "compute_scan",
    "compute_metrics",
    "DEFAULT_TIERS",
    "DEFAULT_THRESHOLDS",
    "RecommendationThresholds",
    "recommend",
    "total_score",
]
