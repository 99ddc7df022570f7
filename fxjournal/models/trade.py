"""
Trade model for journal trades.

Stores closed and open trades of a profile, whether entered manually or
imported from an MT5 trade-history report.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    TIMESTAMP,
    Date,
    Enum,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from fxjournal.lib.db import Base


class TradeSide(str, enum.Enum):
    """Direction of a trade."""

    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, enum.Enum):
    """Lifecycle status of a trade."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"  # Closed in profit
    LOSS = "LOSS"
    BREAKEVEN = "BREAKEVEN"


class Trade(Base):  # type: ignore[misc,valid-type]
    """
    Represents one trade in a profile's journal.

    Attributes:
        id: Unique identifier
        pair: Traded symbol (e.g. EURUSD)
        type: Trade direction (BUY/SELL)
        status: Lifecycle status derived from the result
        entry_price / exit_price: Open and close prices
        pips: Pip delta (rough heuristic for imported trades)
        profit: Monetary profit in account currency
        rr / risk: Risk metrics, zero until computed
        lot_size: Volume in lots
        result: Result used by statistics (equals profit for imports)
        trade_date / trade_time: Open date and time of day (HH:MM:SS)
        notes: Free-text notes

        # MT5 import fields
        source: Provenance tag (e.g. MT5_VIP)
        mt5_ticket_id: Broker ticket/deal id, unique per profile
        mt5_commission / mt5_swap: Broker charges
        open_time / close_time: Full broker timestamps
        sync_method: How the trade entered the journal (manual/api)
        imported_at: Import timestamp

        # Ownership
        profile_id: Owning profile
        user_id: Owning user
    """

    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Ownership
    profile_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Trade details
    pair: Mapped[str] = mapped_column(String(30), nullable=False)
    type: Mapped[TradeSide] = mapped_column(Enum(TradeSide), nullable=False)
    status: Mapped[TradeStatus] = mapped_column(
        Enum(TradeStatus),
        nullable=False,
        default=TradeStatus.OPEN,
        index=True,
    )
    entry_price: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False, default=0)
    exit_price: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False, default=0)
    pips: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    profit: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    rr: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    risk: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    lot_size: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    result: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    trade_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    trade_time: Mapped[str] = mapped_column(String(8), nullable=False, default="00:00:00")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # MT5 import tracking
    source: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    mt5_ticket_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    mt5_commission: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)
    mt5_swap: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)
    open_time: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    close_time: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    sync_method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    imported_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # Audit fields
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        # NULL tickets (manual trades) never collide
        UniqueConstraint("profile_id", "mt5_ticket_id", name="uq_trade_profile_ticket"),
    )

    def __repr__(self) -> str:
        """Return string representation of trade."""
        return (
            f"<Trade(id={self.id!r}, "
            f"pair={self.pair!r}, "
            f"type={self.type.value}, "
            f"status={self.status.value}, "
            f"profit={self.profit}, "
            f"ticket={self.mt5_ticket_id!r})>"
        )
