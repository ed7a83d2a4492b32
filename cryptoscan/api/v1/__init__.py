"""
API v1 Router

All API endpoints for the dashboard.
"""

from fastapi import APIRouter

from cryptoscan.api.v1.endpoints import market, scanner

router = APIRouter()

# Include all endpoint routers
router.include_router(market.router, prefix="/market", tags=["Market Data"])
router.include_router(scanner.router, prefix="/scanner", tags=["Market Scanner"])
