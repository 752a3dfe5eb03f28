from __future__ import annotations

import base64
import json
import struct
import zlib

import pytest
from solders.signature import Signature

from tests.factories import DCA_IDL, PROGRAM_ID, USER, USDC, rpc_tx


def test_parse_transaction_resolves_loaded_addresses():
    from dca_alert_engine.chains.solana import parse_transaction

    raw = rpc_tx()
    lookup_program = "LookupProgram111111111111111111111111111111"
    raw["transaction"]["message"]["accountKeys"] = [USER]
    raw["transaction"]["message"]["instructions"][0]["programIdIndex"] = 2
    raw["meta"]["loadedAddresses"] = {"writable": ["W1"], "readonly": [lookup_program]}

    tx = parse_transaction("sig", raw)
    assert tx.account_keys == [USER, "W1", lookup_program]
    assert tx.instructions[0].program_id == lookup_program
    assert tx.user == USER


def test_parse_transaction_missing_parts():
    from dca_alert_engine.chains.solana import parse_transaction

    assert parse_transaction("sig", None) is None
    raw = rpc_tx()
    del raw["meta"]["logMessages"]
    assert parse_transaction("sig", raw) is None


def test_parse_transaction_balances_and_parsed_keys():
    from dca_alert_engine.chains.solana import parse_transaction

    raw = rpc_tx()
    raw["transaction"]["message"]["accountKeys"] = [
        {"pubkey": USER, "signer": True},
        {"pubkey": PROGRAM_ID, "signer": False},
    ]
    tx = parse_transaction("sig", raw)
    assert tx.user == USER
    assert [b.mint for b in tx.post_token_balances][0] == USDC
    assert str(tx.post_token_balances[0].ui_amount) == "100.5"


def test_as_dict_accepts_objects_with_to_json():
    from dca_alert_engine.chains.solana import as_dict
    from dca_alert_engine.exceptions import RpcError

    class Resp:
        def to_json(self):
            return json.dumps({"result": [1]})

    assert as_dict({"result": []}) == {"result": []}
    assert as_dict(Resp()) == {"result": [1]}
    with pytest.raises(RpcError):
        as_dict(42)


def test_rpc_adapter_with_fake_client():
    from dca_alert_engine.chains.solana import SolanaRpc

    sig = str(Signature.default())
    blob = zlib.compress(json.dumps(DCA_IDL).encode())
    account = bytes(40) + struct.pack("<I", len(blob)) + blob

    class FakeClient:
        def __init__(self):
            self.calls = []

        def get_signatures_for_address(self, addr, limit=100):
            self.calls.append(("sigs", str(addr), limit))
            return {"result": [{"signature": sig}, {"signature": None}]}

        def get_transaction(self, tx_sig, encoding="json", max_supported_transaction_version=None):
            self.calls.append(("tx", str(tx_sig), encoding))
            return {"result": rpc_tx()}

        def get_account_info(self, pubkey):
            self.calls.append(("acct", str(pubkey)))
            return {"result": {"value": {"data": [base64.b64encode(account).decode(), "base64"]}}}

    client = FakeClient()
    rpc = SolanaRpc(client=client)
    assert rpc.recent_signatures(PROGRAM_ID, limit=1000) == [sig]
    assert client.calls[0] == ("sigs", PROGRAM_ID, 1000)

    tx = rpc.fetch_transaction(sig)
    assert tx.signature == sig
    assert client.calls[1] == ("tx", sig, "json")

    idl = rpc.fetch_idl(PROGRAM_ID)
    assert idl.find("OpenDcaV2") is not None


def test_rpc_adapter_rejects_bad_payloads():
    from dca_alert_engine.chains.solana import SolanaRpc
    from dca_alert_engine.exceptions import IdlError, RpcError

    class FakeClient:
        def get_signatures_for_address(self, addr, limit=100):
            return {"error": {"code": -32005}}

        def get_account_info(self, pubkey):
            return {"result": {"value": None}}

    rpc = SolanaRpc(client=FakeClient())
    with pytest.raises(RpcError):
        rpc.recent_signatures(PROGRAM_ID)
    with pytest.raises(IdlError):
        rpc.fetch_idl(PROGRAM_ID)
