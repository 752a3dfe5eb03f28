import signal
import sys
import threading

from loguru import logger

from dca_alert_engine.chains.dca_watcher import DcaWatcher
from dca_alert_engine.config import AppSettings
from dca_alert_engine.exceptions import IdlError, RpcError


def main():
    settings = AppSettings()
    logger.remove()
    logger.add(lambda msg: print(msg, end=""), level=settings.log_level)

    try:
        watcher = DcaWatcher.create(settings)
    except (IdlError, RpcError) as e:
        logger.error("Cannot start DCA watcher: {}", e)
        sys.exit(1)
    except Exception as e:
        logger.exception("Cannot reach Solana RPC {}: {}", settings.sol_rpc_url, e)
        sys.exit(1)

    stop = threading.Event()

    def _shutdown(signum, _frame):
        logger.info("Received signal {}; stopping after the current transaction", signum)
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)
    watcher.run(stop)


if __name__ == "__main__":
    main()
