"""Signature claim stores.

A claim is an atomic set-if-absent: ``claim`` returns True only for the caller
that recorded the signature first, so several workers sharing one store never
process the same transaction twice. Claims do not expire unless a TTL is
configured on the Redis backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from dca_alert_engine.config import AppSettings
from dca_alert_engine.db import ProcessedSignature, make_session_factory, session_scope


class DedupStore(Protocol):
    def exists(self, signature: str) -> bool: ...

    def claim(self, signature: str) -> bool: ...


@dataclass
class SqlDedupStore:
    SessionFactory: object

    def exists(self, signature: str) -> bool:
        with session_scope(self.SessionFactory) as s:
            row = s.scalar(
                select(ProcessedSignature.signature).where(
                    ProcessedSignature.signature == signature
                )
            )
            return row is not None

    def claim(self, signature: str) -> bool:
        try:
            with session_scope(self.SessionFactory) as s:
                s.add(ProcessedSignature(signature=signature))
        except IntegrityError:
            return False
        return True


@dataclass
class RedisDedupStore:
    client: object  # redis.Redis
    prefix: str = "dca:sig:"
    ttl_sec: int | None = None

    def _key(self, signature: str) -> str:
        return f"{self.prefix}{signature}"

    def exists(self, signature: str) -> bool:
        return bool(self.client.exists(self._key(signature)))

    def claim(self, signature: str) -> bool:
        return bool(self.client.set(self._key(signature), "1", nx=True, ex=self.ttl_sec))


def make_dedup_store(settings: AppSettings) -> DedupStore:
    if settings.redis_url:
        import redis

        logger.info("Using Redis dedup store")
        client = redis.Redis.from_url(settings.redis_url)
        return RedisDedupStore(
            client=client, prefix=settings.redis_key_prefix, ttl_sec=settings.dedup_ttl_sec
        )
    logger.info("Using SQL dedup store: {}", settings.database_url)
    create = settings.database_url.startswith("sqlite")
    return SqlDedupStore(make_session_factory(settings.database_url, create_tables=create))
