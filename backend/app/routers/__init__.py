# backend/app/routers/__init__.py
"""
API routers for the Trade Journal API.

Each router handles a specific domain:
- trades: Buy/sell trade records
- holdings: Open positions, unrealized P&L and portfolio metrics
- profit_loss: Realized P&L summaries and records
- market: Current price lookup
"""

from app.routers.holdings import router as holdings_router
from app.routers.market import router as market_router
from app.routers.profit_loss import router as profit_loss_router
from app.routers.trades import router as trades_router

__all__ = [
    "trades_router",
    "holdings_router",
    "profit_loss_router",
    "market_router",
]
