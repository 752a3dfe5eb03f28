from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from dca_alert_engine.exceptions import ScheduleError
from dca_alert_engine.models import ScheduleResult, SwapInstructionData, TokenMeta


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_cents(amount) -> str:
    # Half-up, like JavaScript toFixed on the displayed figures
    return f"{Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}"


def format_dollar(amount) -> str:
    amount = Decimal(str(amount))
    if amount >= 1000:
        return f"{to_cents(amount / 1000)}K"
    return to_cents(amount)


def format_eta(seconds: int) -> str:
    seconds = int(seconds)
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if not parts and secs > 0:
        parts.append(f"{secs}s")
    return " ".join(parts)


def to_tokens(raw: int, decimals: int) -> Decimal:
    return Decimal(raw) / (Decimal(10) ** decimals)


@dataclass
class ScheduleCalculator:
    clock: Callable[[], datetime] = field(default=utcnow)

    def compute(self, swap: SwapInstructionData, deposit: TokenMeta) -> ScheduleResult:
        if swap.in_amount_per_cycle <= 0:
            raise ScheduleError(f"in_amount_per_cycle must be positive, got {swap.in_amount_per_cycle}")
        total_value = to_tokens(swap.in_amount, deposit.decimals) * deposit.price
        frequency_value = to_tokens(swap.in_amount_per_cycle, deposit.decimals) * deposit.price
        cycles = swap.in_amount // swap.in_amount_per_cycle
        eta = cycles * swap.cycle_frequency
        start = self.clock()
        try:
            end = start + timedelta(seconds=eta)
        except OverflowError as e:
            raise ScheduleError(f"schedule of {eta}s is out of range") from e
        return ScheduleResult(
            number_of_cycles=cycles,
            eta_seconds=eta,
            period_start=start,
            period_end=end,
            total_value=total_value,
            frequency_value=frequency_value,
        )
