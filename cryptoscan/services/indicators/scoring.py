"""
Composite Scorer

Sums the per-indicator scores and maps the total to a five-level
recommendation. Breakpoints are symmetric around zero:

    total >= strong          -> strong_buy
    buy <= total < strong    -> buy
    -buy < total < buy       -> hold
    -strong < total <= -buy  -> sell
    total <= -strong         -> strong_sell
"""

from dataclasses import dataclass
from typing import Iterable

from cryptoscan.schemas.scan import IndicatorResult, Recommendation


@dataclass(frozen=True)
class RecommendationThresholds:
    """Symmetric score breakpoints."""

    strong: int = 12
    buy: int = 6

    def __post_init__(self):
        if not 0 < self.buy < self.strong:
            raise ValueError(
                f"Thresholds must satisfy 0 < buy < strong (got buy={self.buy}, strong={self.strong})"
            )

    def scaled(self, factor: float) -> "RecommendationThresholds":
        """Same breakpoints for a score scale `factor` times larger."""
        return RecommendationThresholds(
            strong=round(self.strong * factor),
            buy=round(self.buy * factor),
        )

    def classify(self, total_score: float) -> Recommendation:
        if total_score >= self.strong:
            return Recommendation.STRONG_BUY
        if total_score >= self.buy:
            return Recommendation.BUY
        if total_score <= -self.strong:
            return Recommendation.STRONG_SELL
        if total_score <= -self.buy:
            return Recommendation.SELL
        return Recommendation.HOLD


DEFAULT_THRESHOLDS = RecommendationThresholds()


def total_score(indicators: Iterable[IndicatorResult]) -> int:
    return sum(result.score for result in indicators)


def recommend(
    total: float, thresholds: RecommendationThresholds = DEFAULT_THRESHOLDS
) -> Recommendation:
    return thresholds.classify(total)
