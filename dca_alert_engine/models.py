from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class SwapInstructionData:
    in_amount: int
    in_amount_per_cycle: int
    cycle_frequency: int
    # Remaining decoded args, kept as decimal strings (or None for empty options)
    extra: dict[str, str | None] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, fields: dict) -> SwapInstructionData:
        known = ("in_amount", "in_amount_per_cycle", "cycle_frequency")
        extra = {k: (None if v is None else str(v)) for k, v in fields.items() if k not in known}
        return cls(
            in_amount=int(fields["in_amount"]),
            in_amount_per_cycle=int(fields["in_amount_per_cycle"]),
            cycle_frequency=int(fields["cycle_frequency"]),
            extra=extra,
        )


@dataclass(frozen=True)
class TokenBalanceEntry:
    owner: str
    mint: str
    ui_amount: Decimal
    account_index: int | None = None

    @classmethod
    def from_rpc(cls, entry: dict) -> TokenBalanceEntry:
        ui = entry.get("uiTokenAmount") or {}
        raw = ui.get("uiAmountString")
        if raw in (None, ""):
            raw = ui.get("uiAmount")
        return cls(
            owner=entry.get("owner") or "",
            mint=entry.get("mint") or "",
            ui_amount=Decimal(str(raw)) if raw is not None else Decimal(0),
            account_index=entry.get("accountIndex"),
        )


@dataclass(frozen=True)
class TokenMeta:
    symbol: str
    price: Decimal
    market_cap: str
    volume_24h: str
    contract_address: str
    decimals: int

    @classmethod
    def placeholder(cls, mint: str) -> TokenMeta:
        return cls(
            symbol=mint,
            price=Decimal(0),
            market_cap="",
            volume_24h="",
            contract_address=mint,
            decimals=6,
        )


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class TradeClassification:
    trade_type: TradeType
    deposit_token: TokenMeta
    target_token: TokenMeta

    @property
    def price_side(self) -> TokenMeta:
        # The non-stable token: bought on buy, deposited on sell
        if self.trade_type is TradeType.SELL:
            return self.deposit_token
        return self.target_token


@dataclass(frozen=True)
class ScheduleResult:
    number_of_cycles: int
    eta_seconds: int
    period_start: datetime
    period_end: datetime
    total_value: Decimal
    frequency_value: Decimal


@dataclass(frozen=True)
class RawInstruction:
    program_id: str
    data: bytes


@dataclass
class TransactionView:
    signature: str
    log_messages: list[str]
    post_token_balances: list[TokenBalanceEntry]
    instructions: list[RawInstruction]
    account_keys: list[str]

    @property
    def user(self) -> str | None:
        return self.account_keys[0] if self.account_keys else None
