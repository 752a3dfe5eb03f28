from __future__ import annotations

from decimal import Decimal

import pytest

from tests.factories import ABC, USDC, USER, WSOL, XYZ


def _entry(mint, amount):
    from dca_alert_engine.models import TokenBalanceEntry

    return TokenBalanceEntry(owner=USER, mint=mint, ui_amount=Decimal(str(amount)))


def _meta(mint):
    from dca_alert_engine.models import TokenMeta

    return TokenMeta.placeholder(mint)


@pytest.fixture
def classifier():
    from dca_alert_engine.analysis.classifier import TradeClassifier

    return TradeClassifier(frozenset({USDC, WSOL}))


@pytest.mark.parametrize(
    "mint_a, bal_a, mint_b, bal_b, trade, deposit, target",
    [
        # stable on side A
        (USDC, 10, ABC, 0, "buy", USDC, ABC),
        (USDC, 0, ABC, 5, "sell", ABC, USDC),
        # stable on side B
        (ABC, 0, USDC, 10, "buy", USDC, ABC),
        (ABC, 5, USDC, 0, "sell", ABC, USDC),
    ],
)
def test_truth_table(classifier, mint_a, bal_a, mint_b, bal_b, trade, deposit, target):
    a, b = _entry(mint_a, bal_a), _entry(mint_b, bal_b)
    res = classifier.classify(a, b, _meta(mint_a), _meta(mint_b))
    assert res is not None
    assert res.trade_type.value == trade
    assert res.deposit_token.contract_address == deposit
    assert res.target_token.contract_address == target
    # The price-bearing side is always the non-stable token
    assert res.price_side.contract_address == ABC


def test_negative_stable_balance_reads_as_sell(classifier):
    a, b = _entry(USDC, -1), _entry(ABC, 3)
    res = classifier.classify(a, b, _meta(USDC), _meta(ABC))
    assert res.trade_type.value == "sell"


@pytest.mark.parametrize("mint_a, mint_b", [(USDC, WSOL), (ABC, XYZ)])
def test_both_or_neither_stable_is_skipped(classifier, mint_a, mint_b):
    a, b = _entry(mint_a, 1), _entry(mint_b, 1)
    assert not classifier.straddles(a, b)
    assert classifier.classify(a, b, _meta(mint_a), _meta(mint_b)) is None
