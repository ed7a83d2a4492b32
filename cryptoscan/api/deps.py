"""
Shared request dependencies.
"""

from typing import Optional

from fastapi import Request

from cryptoscan.schemas.market import Timeframe, normalize_symbol, parse_timeframe
from cryptoscan.services.base import ValidationError
from cryptoscan.services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def resolve_symbol(symbol: Optional[str], container: ServiceContainer) -> str:
    return normalize_symbol(symbol, default=container.settings.default_symbol)


def resolve_timeframe(value: Optional[str], default: str) -> Timeframe:
    """Parse a timeframe query value; raises ValidationError (-> 400) if unsupported."""
    timeframe = parse_timeframe(value or default)
    if timeframe is None:
        raise ValidationError(
            "Request",
            f"Unsupported timeframe: {value}",
            {"supported": [tf.value for tf in Timeframe]},
        )
    return timeframe


def cache_header(hit: bool) -> str:
    return "HIT" if hit else "MISS"
