"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "CryptoScan Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS (Frontend URL)
    frontend_url: str = "http://localhost:5173"
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Redis (optional second cache tier)
    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379"

    # Binance REST API
    binance_base_url: str = "https://api.binance.com"
    binance_timeout_seconds: float = 10.0

    # Cache TTLs (seconds)
    scan_cache_ttl: float = 90.0
    metrics_cache_ttl: float = 90.0
    candles_cache_ttl: float = 30.0

    # Candle limits per request
    scan_candle_limit: int = 200
    ohlcv_candle_limit: int = 500  # shared by ohlcv and metrics
    rsi_candle_limit: int = 50

    # Batch scanning
    scanner_concurrency: int = 10
    scanner_max_symbols: int = 15
    min_quote_volume: float = 1_000_000.0

    # Fallback when the exchange is unreachable
    synthetic_fallback: bool = True

    # Composite score thresholds
    strong_signal_threshold: int = 12
    signal_threshold: int = 6

    # Default symbol when a request omits one
    default_symbol: str = "BTCUSDT"
    default_timeframe: str = "1h"

    # Stablecoins skipped by the high-potential scan
    stablecoins: list[str] = ["USDT", "USDC", "BUSD", "DAI", "TUSD", "USDP", "FDUSD"]

    # Pairs scanned when the ticker list is unavailable
    fallback_pairs: list[str] = [
        "BTCUSDT", "ETHUSDT", "BNBUSDT", "ADAUSDT", "SOLUSDT",
        "DOTUSDT", "MATICUSDT", "AVAXUSDT", "LTCUSDT", "LINKUSDT",
        "ATOMUSDT", "ALGOUSDT", "XLMUSDT", "VETUSDT", "FILUSDT",
    ]

    # Optional path to a log file (stderr only when unset)
    log_file: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
