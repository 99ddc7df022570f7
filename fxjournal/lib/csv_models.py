"""Pydantic models for parsed MT5 report rows.

Every supported report layout is mapped into the same ParsedTradeRow before
validation and conversion into a Trade.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from fxjournal.models.trade import TradeSide


class ParsedTradeRow(BaseModel):
    """Unified trade row after parsing an MT5 CSV report.

    This model is layout-agnostic and used by ImportService. Values are
    taken as found; field checks happen in the validator.
    """

    ticket: str  # Broker ticket / deal id
    open_time: datetime | None  # None when the timestamp could not be parsed
    close_time: datetime
    side: TradeSide
    symbol: str

    volume: Decimal = Decimal("0")  # Lots
    open_price: Decimal = Decimal("0")
    close_price: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    swap: Decimal = Decimal("0")
    comment: str = ""

    # Import tracking
    line_number: int = 0  # 1-based line in the uploaded report

    class Config:
        """Pydantic configuration."""

        frozen = True
