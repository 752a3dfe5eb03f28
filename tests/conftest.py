from __future__ import annotations

from decimal import Decimal

import pytest

from tests.factories import ABC, DCA_IDL, PROGRAM_ID, USDC


@pytest.fixture
def idl():
    from dca_alert_engine.decoding.idl import Idl

    return Idl.from_json(DCA_IDL)


@pytest.fixture
def decoder(idl):
    from dca_alert_engine.decoding.instruction import InstructionDecoder

    return InstructionDecoder(idl=idl, program_id=PROGRAM_ID)


@pytest.fixture
def token_metas():
    from dca_alert_engine.models import TokenMeta

    return {
        USDC: TokenMeta(
            symbol="USDC",
            price=Decimal("1.00"),
            market_cap="$34000.00M",
            volume_24h="$5000.00M",
            contract_address=USDC,
            decimals=6,
        ),
        ABC: TokenMeta(
            symbol="ABC",
            price=Decimal("0.1234"),
            market_cap="$120.34M",
            volume_24h="$4.56M",
            contract_address="ABC123...",
            decimals=9,
        ),
    }
