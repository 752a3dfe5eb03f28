from __future__ import annotations

import base64
import json
import struct
import zlib
from dataclasses import dataclass
from typing import Any

import base58
from loguru import logger
from solana.rpc.api import Client
from solders.pubkey import Pubkey
from solders.signature import Signature

from dca_alert_engine.config import AppSettings
from dca_alert_engine.decoding.idl import Idl
from dca_alert_engine.exceptions import IdlError, RpcError
from dca_alert_engine.models import RawInstruction, TokenBalanceEntry, TransactionView

IDL_SEED = "anchor:idl"
# 8-byte account discriminator + 32-byte authority + u32 payload length
IDL_HEADER_LEN = 44


def as_dict(resp: Any) -> dict:
    # solana-py returns solders response objects; older versions and fakes return dicts
    if isinstance(resp, dict):
        return resp
    if hasattr(resp, "to_json"):
        return json.loads(resp.to_json())
    raise RpcError(f"Unexpected RPC response type: {type(resp).__name__}")


def _key_str(k: Any) -> str:
    return k.get("pubkey") if isinstance(k, dict) else str(k)


def parse_transaction(signature: str, res: dict | None) -> TransactionView | None:
    if not res:
        return None
    meta = res.get("meta") or {}
    logs = meta.get("logMessages")
    if logs is None:
        return None
    message = (res.get("transaction") or {}).get("message") or {}
    keys = [_key_str(k) for k in message.get("accountKeys") or []]
    loaded = meta.get("loadedAddresses") or {}
    keys += list(loaded.get("writable") or []) + list(loaded.get("readonly") or [])

    instructions: list[RawInstruction] = []
    for ix in message.get("instructions") or []:
        program_id = ix.get("programId")
        if program_id is None:
            idx = ix.get("programIdIndex")
            if idx is None or idx >= len(keys):
                continue
            program_id = keys[idx]
        data = ix.get("data")
        if not data:
            # jsonParsed instructions carry no raw payload
            continue
        try:
            raw = base58.b58decode(data)
        except ValueError:
            logger.debug("Skipping non-base58 instruction data in {}", signature)
            continue
        instructions.append(RawInstruction(program_id=str(program_id), data=raw))

    balances = [TokenBalanceEntry.from_rpc(b) for b in meta.get("postTokenBalances") or []]
    return TransactionView(
        signature=signature,
        log_messages=list(logs),
        post_token_balances=balances,
        instructions=instructions,
        account_keys=keys,
    )


def idl_address(program_id: str) -> Pubkey:
    pid = Pubkey.from_string(program_id)
    base, _ = Pubkey.find_program_address([], pid)
    return Pubkey.create_with_seed(base, IDL_SEED, pid)


def decode_idl_account(data: bytes) -> Idl:
    if len(data) < IDL_HEADER_LEN:
        raise IdlError("IDL account is too short")
    (length,) = struct.unpack("<I", data[40:IDL_HEADER_LEN])
    try:
        raw = zlib.decompress(data[IDL_HEADER_LEN : IDL_HEADER_LEN + length])
        return Idl.from_json(json.loads(raw))
    except (zlib.error, json.JSONDecodeError) as e:
        raise IdlError(f"IDL account payload is unreadable: {e}") from e


@dataclass
class SolanaRpc:
    client: Client

    @classmethod
    def create(cls, settings: AppSettings) -> SolanaRpc:
        return cls(client=Client(settings.sol_rpc_url, timeout=settings.rpc_timeout_sec))

    def recent_signatures(self, address: str, limit: int = 1000) -> list[str]:
        resp = as_dict(self.client.get_signatures_for_address(Pubkey.from_string(address), limit=limit))
        sigs = resp.get("result")
        if not isinstance(sigs, list):
            raise RpcError(f"Unexpected signatures payload for {address}: {sigs}")
        return [s["signature"] for s in sigs if s.get("signature")]

    def fetch_transaction(self, signature: str) -> TransactionView | None:
        resp = as_dict(
            self.client.get_transaction(
                Signature.from_string(signature),
                encoding="json",
                max_supported_transaction_version=0,
            )
        )
        return parse_transaction(signature, resp.get("result"))

    def fetch_idl(self, program_id: str) -> Idl:
        address = idl_address(program_id)
        resp = as_dict(self.client.get_account_info(address))
        value = (resp.get("result") or {}).get("value")
        if not value:
            raise IdlError(f"No IDL account found for program {program_id}")
        data = value.get("data")
        if isinstance(data, list):
            data = base64.b64decode(data[0])
        elif isinstance(data, str):
            data = base64.b64decode(data)
        return decode_idl_account(bytes(data))
