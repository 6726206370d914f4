#!/usr/bin/env python3
# backend/scripts/seed_sample_data.py
"""
Seed a demo user with a handful of trades.

Trades go through TradeService, so every Sell gets its realized
profit/loss record exactly as it would through the API. Prints an access
token for the demo user at the end.

    cd backend && python scripts/seed_sample_data.py
"""
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

# Setup path to import app modules
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import select

from app.database import SessionLocal, engine
from app.models import Base, TradeEntry, TransactionType, User
from app.services.auth import JWTHandler
from app.services.trades import TradeService
from app.utils import setup_logging

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.com"

# (symbol, type, quantity, price, trade date)
SAMPLE_TRADES = [
    ("AAPL", TransactionType.BUY, "10", "150.00", datetime(2024, 1, 5, tzinfo=timezone.utc)),
    ("AAPL", TransactionType.BUY, "10", "170.00", datetime(2024, 2, 12, tzinfo=timezone.utc)),
    ("AAPL", TransactionType.SELL, "5", "185.50", datetime(2024, 3, 1, tzinfo=timezone.utc)),
    ("MSFT", TransactionType.BUY, "4", "400.00", datetime(2024, 1, 20, tzinfo=timezone.utc)),
    ("MSFT", TransactionType.SELL, "2", "380.00", datetime(2024, 4, 2, tzinfo=timezone.utc)),
    ("NVDA", TransactionType.BUY, "3", "480.00", datetime(2024, 2, 1, tzinfo=timezone.utc)),
]


def seed() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    service = TradeService()
    try:
        logger.info("Starting database seeding")

        user = db.scalar(select(User).where(User.email == DEMO_EMAIL))
        if user is None:
            user = User(email=DEMO_EMAIL)
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"Created user {user.email}")
        else:
            logger.info(f"User exists: {user.email}")

        existing = db.scalar(select(TradeEntry.id).where(TradeEntry.user_id == user.id).limit(1))
        if existing is not None:
            logger.info("Trades already seeded, skipping")
        else:
            for symbol, tx_type, quantity, price, trade_date in SAMPLE_TRADES:
                service.create_trade(
                    db,
                    user_id=user.id,
                    stock_symbol=symbol,
                    transaction_type=tx_type,
                    quantity=Decimal(quantity),
                    price=Decimal(price),
                    trade_date=trade_date,
                )
            logger.info(f"Seeded {len(SAMPLE_TRADES)} trades")

        token = JWTHandler.create_access_token(user.id, user.email)
        logger.info(f"Access token for {user.email}: {token}")
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    seed()
