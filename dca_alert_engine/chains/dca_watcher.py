from __future__ import annotations

import threading
from dataclasses import dataclass, field

from loguru import logger

from dca_alert_engine.analysis.balances import first_owner_pair
from dca_alert_engine.analysis.classifier import TradeClassifier
from dca_alert_engine.analysis.schedule import ScheduleCalculator
from dca_alert_engine.chains.solana import SolanaRpc
from dca_alert_engine.config import AppSettings
from dca_alert_engine.decoding.idl import load_idl
from dca_alert_engine.decoding.instruction import (
    NO_LOG_MARKER,
    InstructionDecoder,
    OpenDcaV2,
)
from dca_alert_engine.dedup import DedupStore, make_dedup_store
from dca_alert_engine.exceptions import ScheduleError
from dca_alert_engine.models import TransactionView
from dca_alert_engine.notify.telegram import LogNotifier, Notifier, make_notifier
from dca_alert_engine.providers.solscan import SolscanMetadataSource
from dca_alert_engine.reporting.formatter import ReportContext, ReportFormatter


@dataclass
class DcaWatcher:
    settings: AppSettings
    rpc: SolanaRpc
    decoder: InstructionDecoder
    dedup: DedupStore | None
    metadata: SolscanMetadataSource
    notifier: Notifier
    classifier: TradeClassifier
    schedule: ScheduleCalculator = field(default_factory=ScheduleCalculator)
    formatter: ReportFormatter = field(default_factory=ReportFormatter)

    @classmethod
    def create(cls, settings: AppSettings, render_only: bool = False) -> DcaWatcher:
        """Wire the pipeline from settings.

        With ``render_only`` no dedup store is opened and the notifier only logs;
        such a watcher is for ``build_report`` and must not be ``run``.
        """
        rpc = SolanaRpc.create(settings)
        if settings.idl_path:
            idl = load_idl(settings.idl_path)
        else:
            idl = rpc.fetch_idl(settings.target_program_id)
        logger.info("Loaded IDL {} with {} instructions", idl.name, len(idl.instructions))
        decoder = InstructionDecoder(
            idl=idl,
            program_id=settings.target_program_id,
            instruction_name=settings.target_instruction,
        )
        return cls(
            settings=settings,
            rpc=rpc,
            decoder=decoder,
            dedup=None if render_only else make_dedup_store(settings),
            metadata=SolscanMetadataSource.create(settings),
            notifier=LogNotifier() if render_only else make_notifier(settings),
            classifier=TradeClassifier(settings.stablecoin_set()),
        )

    @property
    def at_least_once(self) -> bool:
        return self.settings.claim_policy == "at_least_once"

    def run(self, stop: threading.Event | None = None):
        stop = stop or threading.Event()
        logger.info(
            "Starting DCA watcher: program={} rpc={} interval={}s policy={}",
            self.settings.target_program_id,
            self.settings.sol_rpc_url,
            self.settings.poll_interval_sec,
            self.settings.claim_policy,
        )
        while not stop.is_set():
            try:
                sent = self.poll_once(stop)
                if sent:
                    logger.info("Poll finished: {} alert(s) sent", sent)
            except KeyboardInterrupt:
                logger.info("DCA watcher interrupted; shutting down.")
                break
            except Exception as e:
                logger.exception("DCA watcher poll error: {}", e)
            stop.wait(self.settings.poll_interval_sec)
        logger.info("DCA watcher stopped")

    def poll_once(self, stop: threading.Event | None = None) -> int:
        sigs = self.rpc.recent_signatures(
            self.settings.target_program_id, limit=self.settings.signature_limit
        )
        sent = 0
        for sig in sigs:
            if stop is not None and stop.is_set():
                break
            try:
                if self.process_signature(sig) is not None:
                    sent += 1
            except Exception as e:
                logger.exception("Failed to process {}: {}", sig, e)
        return sent

    def process_signature(self, sig: str) -> str | None:
        """Run one signature through the pipeline; returns the alert text if one was sent."""
        if self.at_least_once:
            if self.dedup.exists(sig):
                return None
        elif not self.dedup.claim(sig):
            return None

        tx = self.rpc.fetch_transaction(sig)
        report = self.build_report(tx) if tx is not None else None
        delivered = report is not None and self.notifier.send(report)
        if report is not None:
            logger.info("Alert for {} {}", sig, "sent" if delivered else "not delivered")

        # Undelivered alerts stay unclaimed under at-least-once and are retried next poll
        if self.at_least_once and (report is None or delivered):
            self.dedup.claim(sig)
        return report if delivered else None

    def build_report(self, tx: TransactionView) -> str | None:
        decoded = self.decoder.decode(tx)
        if not isinstance(decoded, OpenDcaV2):
            if decoded.reason != NO_LOG_MARKER:
                logger.warning("Swap data not found in transaction {} ({})", tx.signature, decoded.reason)
            return None
        logger.debug("Decoded swap instruction data for tx {}: {}", tx.signature, decoded.fields)

        pair = first_owner_pair(tx.post_token_balances)
        if pair is None:
            logger.warning("Could not determine user token pair in tx {}", tx.signature)
            return None
        a, b = pair
        if not self.classifier.straddles(a, b):
            logger.debug("Pair {} / {} in {} is not stable-vs-token; skipping", a.mint, b.mint, tx.signature)
            return None

        meta_a = self.metadata.token_meta(a.mint)
        meta_b = self.metadata.token_meta(b.mint)
        trade = self.classifier.classify(a, b, meta_a, meta_b)
        if trade is None:
            return None

        try:
            schedule = self.schedule.compute(decoded.data, trade.deposit_token)
        except ScheduleError as e:
            logger.warning("Skipping {}: {}", tx.signature, e)
            return None

        ctx = ReportContext(user=tx.user, signature=tx.signature)
        return self.formatter.render(decoded.data, trade, schedule, ctx)
