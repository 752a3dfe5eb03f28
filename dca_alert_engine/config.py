import json
from typing import Annotated, Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class KnownMints(BaseModel):
    # Reference mints treated as price-stable (wrapped SOL included)
    stablecoins: list[str] = [
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",  # USDC
        "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",  # USDT
        "So11111111111111111111111111111111111111112",  # WSOL
    ]


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="DAE_", extra="allow")

    # Solana
    sol_rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout_sec: float = 30.0
    target_program_id: str = "DCA265Vj8a9CEuX1eb1LWRnDT7uK6q1xMipnNyatn23M"  # Jupiter DCA
    target_instruction: str = "OpenDcaV2"
    idl_path: str | None = None  # local Anchor IDL JSON; fetched on-chain when unset

    # Polling
    signature_limit: int = 1000
    poll_interval_sec: float = 5.0

    # Classification (comma-separated env value accepted)
    stablecoins: Annotated[list[str], NoDecode] = KnownMints().stablecoins

    # Dedup store
    database_url: str = "sqlite+pysqlite:///dca_alerts.db"
    redis_url: str | None = None  # takes precedence over database_url when set
    redis_key_prefix: str = "dca:sig:"
    dedup_ttl_sec: int | None = None  # None means claims never expire
    claim_policy: Literal["at_most_once", "at_least_once"] = "at_most_once"

    # Token metadata
    solscan_api_url: str = "https://pro-api.solscan.io/v2.0/token/meta"
    solscan_api_key: str | None = None
    http_timeout_sec: float = 10.0

    # Notifications
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    telegram_parse_mode: str = "Markdown"

    # Logging
    log_level: str = "INFO"

    # --- Validators to coerce empty strings in optional envs to None ---
    @field_validator(
        "idl_path",
        "redis_url",
        "dedup_ttl_sec",
        "solscan_api_key",
        "telegram_bot_token",
        "telegram_chat_id",
        mode="before",
    )
    @classmethod
    def _empty_str_to_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("stablecoins", mode="before")
    @classmethod
    def _split_csv(cls, v):
        # Accept either a JSON array or plain CSV from the environment
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [x.strip() for x in v.split(",") if x.strip()]
        return v

    def stablecoin_set(self) -> frozenset[str]:
        return frozenset(self.stablecoins)

    def notifications_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)
