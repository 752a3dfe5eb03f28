import importlib.util
import sys
from pathlib import Path

from loguru import logger


def load_module(path: Path):
    spec = importlib.util.spec_from_file_location("render_tx", str(path))
    assert spec and spec.loader, "Failed to load module spec"
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)  # type: ignore[assignment]
    return mod


def test_parse_signatures():
    mod = load_module(Path("scripts/render_tx.py"))
    assert mod.parse_signatures("a, b\nc  ") == ["a", "b", "c"]
    assert mod.parse_signatures("") == []


def test_main_renders_without_sending(monkeypatch, capsys, decoder, token_metas):
    from dca_alert_engine.chains import dca_watcher
    from tests.factories import rpc_tx

    mod = load_module(Path("scripts/render_tx.py"))

    class FakeRpc:
        def fetch_transaction(self, sig):
            from dca_alert_engine.chains.solana import parse_transaction

            return parse_transaction(sig, rpc_tx() if sig == "good" else None)

    class FakeMetadata:
        def token_meta(self, mint):
            return token_metas[mint]

    class FakeNotifier:
        sent = []

        def send(self, text):
            self.sent.append(text)
            return True

    def fake_create(settings, render_only=False):
        assert render_only, "rendering must not open the dedup store"
        from dca_alert_engine.analysis.classifier import TradeClassifier

        return dca_watcher.DcaWatcher(
            settings=settings,
            rpc=FakeRpc(),
            decoder=decoder,
            dedup=None,
            metadata=FakeMetadata(),
            notifier=FakeNotifier(),
            classifier=TradeClassifier(settings.stablecoin_set()),
        )

    monkeypatch.setattr(dca_watcher.DcaWatcher, "create", staticmethod(fake_create))
    monkeypatch.setattr(sys, "argv", ["render_tx.py", "good", "missing"])
    try:
        assert mod.main() == 0
    finally:
        # main() rebinds loguru to the captured stderr
        logger.remove()
    out = capsys.readouterr()
    assert out.out.startswith("$250.00 buying ABC 🟩")
    assert "missing: no alert" in out.err
    assert FakeNotifier.sent == []
