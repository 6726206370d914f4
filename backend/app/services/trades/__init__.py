# backend/app/services/trades/__init__.py
"""Trade write path (create / update / delete under per-symbol locks)."""

from app.services.trades.service import TradeService

__all__ = ["TradeService"]
