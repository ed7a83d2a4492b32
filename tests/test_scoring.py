"""Composite score to recommendation mapping."""

import pytest

from cryptoscan.schemas.scan import IndicatorResult, Recommendation, Signal
from cryptoscan.services.indicators.scoring import (
    DEFAULT_THRESHOLDS,
    RecommendationThresholds,
    recommend,
    total_score,
)


@pytest.mark.parametrize(
    "total, expected",
    [
        (20, Recommendation.STRONG_BUY),
        (12, Recommendation.STRONG_BUY),
        (11, Recommendation.BUY),
        (6, Recommendation.BUY),
        (5, Recommendation.HOLD),
        (0, Recommendation.HOLD),
        (-5, Recommendation.HOLD),
        (-6, Recommendation.SELL),
        (-11, Recommendation.SELL),
        (-12, Recommendation.STRONG_SELL),
        (-30, Recommendation.STRONG_SELL),
    ],
)
def test_default_breakpoints(total, expected):
    assert recommend(total) == expected


def test_recommendation_is_monotonic_in_score():
    ranks = [recommend(total).rank for total in range(-30, 31)]
    assert ranks == sorted(ranks)


@pytest.mark.parametrize("strong, buy", [(6, 6), (5, 6), (12, 0)])
def test_thresholds_are_validated(strong, buy):
    with pytest.raises(ValueError):
        RecommendationThresholds(strong=strong, buy=buy)


def test_scaled_thresholds():
    scaled = DEFAULT_THRESHOLDS.scaled(2)
    assert (scaled.strong, scaled.buy) == (24, 12)
    assert scaled.classify(12) == Recommendation.BUY


def test_total_score_sums_indicator_scores():
    results = [
        IndicatorResult(name="macd", value=1.0, signal=Signal.BULLISH, score=3, tier=3),
        IndicatorResult(name="rsi", value=75.0, signal=Signal.BEARISH, score=-2, tier=2),
        IndicatorResult(name="atr", value=2.0, signal=Signal.NEUTRAL, score=0, tier=1),
    ]
    assert total_score(results) == 1
