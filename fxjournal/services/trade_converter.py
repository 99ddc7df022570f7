"""Conversion of parsed MT5 rows into journal trades."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from fxjournal.lib.config import PIPS_MULTIPLIER, SYNC_METHOD_MANUAL, TRADE_SOURCE_MT5_VIP
from fxjournal.lib.csv_models import ParsedTradeRow
from fxjournal.models import Trade, TradeStatus
from fxjournal.services.vip_config import ImportScope


def status_from_profit(profit: Decimal) -> TradeStatus:
    """Coarse lifecycle status from the sign of the profit."""
    if profit > 0:
        return TradeStatus.CLOSED
    if profit < 0:
        return TradeStatus.LOSS
    return TradeStatus.BREAKEVEN


def estimate_pips(profit: Decimal) -> int:
    """Approximate pip count from profit.

    Not pair aware: JPY pairs (2-decimal quotes) come out 100x too large.
    """
    return int((abs(profit) * PIPS_MULTIPLIER).to_integral_value(rounding=ROUND_HALF_UP))


class TradeConverter:
    """Builds Trade entities for one import scope."""

    def __init__(self, scope: ImportScope):
        self.scope = scope

    def convert(self, row: ParsedTradeRow, imported_at: datetime) -> Trade:
        """
        Map a validated row to a new Trade.

        Args:
            row: Validated row (open_time is set)
            imported_at: Timestamp of the import run

        Returns:
            Unsaved Trade owned by the converter's scope

        Raises:
            ValueError: Row has no open time
        """
        if row.open_time is None:
            raise ValueError(f"Trade {row.ticket} has no open time")

        return Trade(
            profile_id=self.scope.profile_id,
            user_id=self.scope.user_id,
            pair=row.symbol,
            type=row.side,
            status=status_from_profit(row.profit),
            entry_price=row.open_price,
            exit_price=row.close_price,
            pips=estimate_pips(row.profit),
            profit=row.profit,
            rr=Decimal("0"),
            risk=Decimal("0"),
            lot_size=row.volume,
            result=row.profit,
            trade_date=row.open_time.date(),
            trade_time=row.open_time.strftime("%H:%M:%S"),
            notes=row.comment,
            source=TRADE_SOURCE_MT5_VIP,
            mt5_ticket_id=row.ticket,
            mt5_commission=row.commission,
            mt5_swap=row.swap,
            open_time=row.open_time,
            close_time=row.close_time,
            sync_method=SYNC_METHOD_MANUAL,
            imported_at=imported_at,
        )
