"""
Scheduler entry point — run once per deployment as its own process.

Boots the daily report scheduler and blocks until SIGTERM / SIGINT.
"""
import logging
import signal
import threading

from app.config import TELEGRAM_REPORT_CHAT_ID
from app.logging_config import configure_logging

logger = logging.getLogger('run_scheduler')


def main():
    configure_logging()

    if not TELEGRAM_REPORT_CHAT_ID:
        logger.warning("TELEGRAM_REPORT_CHAT_ID not set — scheduled reports disabled")
        return

    from app.extensions import redis_client
    from app.services.circuit_breaker import init_breakers
    from app.pipeline.report import send_report
    from app.pipeline.scheduler import ReportScheduler

    init_breakers(redis_client)

    scheduler = ReportScheduler(lambda: send_report(TELEGRAM_REPORT_CHAT_ID))
    shutdown = threading.Event()

    def _handle_signal(signum, frame):
        logger.info("Signal %s received — shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)

    scheduler.start()
    try:
        shutdown.wait()
    finally:
        scheduler.stop()


if __name__ == '__main__':
    main()
