from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import requests
from loguru import logger

from dca_alert_engine.analysis.schedule import to_cents
from dca_alert_engine.config import AppSettings
from dca_alert_engine.models import TokenMeta


def format_millions(value) -> str:
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise InvalidOperation(f"non-finite amount {value!r}")
    return f"${to_cents(amount / Decimal(1_000_000))}M"


def _decimal(value, default: Decimal) -> Decimal:
    try:
        parsed = Decimal(str(value)) if value else default
    except InvalidOperation:
        return default
    return parsed if parsed.is_finite() else default


@dataclass
class SolscanMetadataSource:
    api_url: str = "https://pro-api.solscan.io/v2.0/token/meta"
    api_key: str | None = None
    timeout: float = 10.0

    @classmethod
    def create(cls, settings: AppSettings) -> SolscanMetadataSource:
        return cls(
            api_url=settings.solscan_api_url,
            api_key=settings.solscan_api_key,
            timeout=settings.http_timeout_sec,
        )

    def token_meta(self, mint: str) -> TokenMeta:
        """Fetch symbol, price and market stats for a mint.

        Any failure falls back to ``TokenMeta.placeholder(mint)``; partial
        payloads fill in only the fields they carry.
        """
        meta = TokenMeta.placeholder(mint)
        headers = {"token": self.api_key} if self.api_key else {}
        try:
            r = requests.get(self.api_url, headers=headers, params={"address": mint}, timeout=self.timeout)
            if not r.ok:
                logger.warning("Solscan error for {}: {}", mint, r.text)
                return meta
            payload = r.json() or {}
        except Exception as e:
            logger.warning("Solscan request failed for {}: {}; using placeholder values", mint, e)
            return meta

        if not isinstance(payload, dict):
            payload = {}
        data = payload.get("data")
        if not payload.get("success") or not data or not isinstance(data, dict):
            logger.warning("No meta data found for token {}. Using placeholder values.", mint)
            return meta

        try:
            decimals = data.get("decimals")
            return TokenMeta(
                symbol=str(data.get("symbol") or meta.symbol),
                price=_decimal(data.get("price"), meta.price),
                market_cap=format_millions(data["market_cap"]) if data.get("market_cap") else "",
                volume_24h=format_millions(data["volume_24h"]) if data.get("volume_24h") else "",
                contract_address=str(data.get("address") or mint),
                decimals=int(decimals) if decimals is not None else meta.decimals,
            )
        except (InvalidOperation, ValueError, TypeError) as e:
            logger.warning("Malformed Solscan meta for {}: {}; using placeholder values", mint, e)
            return meta
