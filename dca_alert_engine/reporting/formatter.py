from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from dca_alert_engine.analysis.schedule import format_dollar, format_eta
from dca_alert_engine.models import (
    ScheduleResult,
    SwapInstructionData,
    TradeClassification,
    TradeType,
)

ICONS = {TradeType.BUY: "🟩", TradeType.SELL: "🟥"}


def format_timestamp(ts: datetime) -> str:
    # RFC 1123, the same shape as an HTTP Date header
    return ts.astimezone(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S GMT")


@dataclass(frozen=True)
class ReportContext:
    user: str | None
    signature: str


class ReportFormatter:
    def header(self, trade: TradeClassification, schedule: ScheduleResult) -> str:
        symbol = trade.price_side.symbol
        verb = f"{trade.trade_type.value}ing"
        return f"${format_dollar(schedule.total_value)} {verb} {symbol} {ICONS[trade.trade_type]}"

    def render(
        self,
        swap: SwapInstructionData,
        trade: TradeClassification,
        schedule: ScheduleResult,
        ctx: ReportContext,
    ) -> str:
        token = trade.price_side
        lines = [
            self.header(trade, schedule),
            "",
            f"Frequency: ${format_dollar(schedule.frequency_value)} every "
            f"{format_eta(swap.cycle_frequency)} ({schedule.number_of_cycles} cycles)",
            f"ETA: {format_eta(schedule.eta_seconds)}",
            "",
            f"MC: {token.market_cap}",
        ]
        if token.volume_24h:
            lines.append(f"V24h: {token.volume_24h}")
        lines += [
            f"Price: {token.price:.4f}",
            f"CA: {token.contract_address}",
            "",
            f"User: {ctx.user}",
            f"TX: {ctx.signature}",
            "",
            f"Period: {format_timestamp(schedule.period_start)} - {format_timestamp(schedule.period_end)}",
        ]
        return "\n".join(lines)
