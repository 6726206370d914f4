"""Initial schema baseline

This migration creates the complete database schema for the Trade Journal.

Tables:
    - users: Accounts resolved from bearer tokens
    - trade_entries: Buy/sell trades of a user
    - profit_losses: Realized profit/loss, one row per sell trade

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # USERS
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # TRADE ENTRIES
    # ==========================================================================
    op.create_table(
        'trade_entries',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('stock_symbol', sa.String(), nullable=False, index=True),
        sa.Column('transaction_type', sa.Enum('Buy', 'Sell', name='transactiontype'), nullable=False),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('price', sa.Numeric(18, 8), nullable=False),
        sa.Column('trade_date', sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column('status', sa.Enum('Open', 'Closed', name='tradestatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_trade_quantity_positive'),
        sa.CheckConstraint('price > 0', name='ck_trade_price_positive'),
    )
    op.create_index(
        'ix_trade_entries_user_symbol',
        'trade_entries',
        ['user_id', 'stock_symbol'],
    )

    # ==========================================================================
    # PROFIT / LOSS
    # ==========================================================================
    op.create_table(
        'profit_losses',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('stock_symbol', sa.String(), nullable=False),
        sa.Column('sell_trade_id', sa.Integer(), sa.ForeignKey('trade_entries.id'), nullable=False, unique=True),
        sa.Column('sell_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sell_price', sa.Numeric(18, 8), nullable=False),
        sa.Column('sell_quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('average_purchase_price', sa.Numeric(18, 8), nullable=False),
        sa.Column('profit_or_loss', sa.Numeric(18, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        'ix_profit_losses_user_sell_date',
        'profit_losses',
        ['user_id', 'sell_date'],
    )
    op.create_index(
        'ix_profit_losses_user_symbol',
        'profit_losses',
        ['user_id', 'stock_symbol'],
    )


def downgrade() -> None:
    op.drop_index('ix_profit_losses_user_symbol', table_name='profit_losses')
    op.drop_index('ix_profit_losses_user_sell_date', table_name='profit_losses')
    op.drop_table('profit_losses')
    op.drop_index('ix_trade_entries_user_symbol', table_name='trade_entries')
    op.drop_table('trade_entries')
    op.drop_table('users')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS tradestatus')
    op.execute('DROP TYPE IF EXISTS transactiontype')
