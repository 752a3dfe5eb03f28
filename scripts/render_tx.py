from __future__ import annotations

import argparse
import sys

from loguru import logger

from dca_alert_engine.config import AppSettings


def parse_signatures(raw: str) -> list[str]:
    # Accept whitespace- or comma-separated signatures
    return [s for s in raw.replace(",", " ").split() if s]


def main() -> int:
    p = argparse.ArgumentParser(description="Render the DCA alert for transactions without notifying")
    p.add_argument("signatures", nargs="*", help="Transaction signatures. If omitted, reads stdin.")
    p.add_argument("--idl", help="Path to the program IDL JSON (default: DAE_IDL_PATH or on-chain)")
    p.add_argument("--send", action="store_true", help="Also dispatch the rendered alert")
    args = p.parse_args()

    sigs = args.signatures or parse_signatures(sys.stdin.read())
    if not sigs:
        print("No signatures given", file=sys.stderr)
        return 1

    overrides = {"idl_path": args.idl} if args.idl else {}
    settings = AppSettings(**overrides)
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    from dca_alert_engine.chains.dca_watcher import DcaWatcher
    from dca_alert_engine.notify.telegram import make_notifier

    watcher = DcaWatcher.create(settings, render_only=True)
    notifier = make_notifier(settings) if args.send else None
    rendered = 0
    for sig in sigs:
        tx = watcher.rpc.fetch_transaction(sig)
        report = watcher.build_report(tx) if tx is not None else None
        if report is None:
            print(f"{sig}: no alert", file=sys.stderr)
            continue
        rendered += 1
        print(report)
        print()
        if notifier is not None:
            notifier.send(report)
    return 0 if rendered else 2


if __name__ == "__main__":
    raise SystemExit(main())
