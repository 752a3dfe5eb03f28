from __future__ import annotations

from dataclasses import dataclass

from dca_alert_engine.models import TokenBalanceEntry, TokenMeta, TradeClassification, TradeType


@dataclass
class TradeClassifier:
    stablecoins: frozenset[str]

    def is_stable(self, mint: str) -> bool:
        return mint in self.stablecoins

    def straddles(self, a: TokenBalanceEntry, b: TokenBalanceEntry) -> bool:
        return self.is_stable(a.mint) != self.is_stable(b.mint)

    def classify(
        self,
        a: TokenBalanceEntry,
        b: TokenBalanceEntry,
        meta_a: TokenMeta,
        meta_b: TokenMeta,
    ) -> TradeClassification | None:
        # Both or neither side stable: no reference currency to price against
        if not self.straddles(a, b):
            return None
        if self.is_stable(a.mint):
            stable, stable_meta, other_meta = a, meta_a, meta_b
        else:
            stable, stable_meta, other_meta = b, meta_b, meta_a
        # A positive stable residual means the account is still funding purchases
        if stable.ui_amount > 0:
            return TradeClassification(TradeType.BUY, deposit_token=stable_meta, target_token=other_meta)
        return TradeClassification(TradeType.SELL, deposit_token=other_meta, target_token=stable_meta)
