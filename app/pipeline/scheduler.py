"""
Report scheduler — fires a job once a day at a fixed local time.

Owns a single threading.Timer. start() arms it for the next occurrence,
each fire re-arms it, stop() cancels it. run_now() is the manual trigger
and runs the same job synchronously on the caller's thread.
"""
import logging
import threading
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from app.config import REPORT_HOUR, REPORT_MINUTE, REPORT_TIMEZONE

logger = logging.getLogger('pipeline.scheduler')


def next_run_at(now: datetime, hour: int, minute: int, tz: ZoneInfo) -> datetime:
    """Next local hour:minute strictly after `now` (aware datetime)."""
    local_now = now.astimezone(tz)
    candidate = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= local_now:
        candidate = (candidate + timedelta(days=1)).replace(hour=hour, minute=minute)
    return candidate


class ReportScheduler:
    """Daily timer for one job callable."""

    def __init__(self, job, hour=REPORT_HOUR, minute=REPORT_MINUTE, tz=REPORT_TIMEZONE, clock=None):
        self.job = job
        self.hour = hour
        self.minute = minute
        self.tz = ZoneInfo(tz)
        self._clock = clock or (lambda: datetime.now(self.tz))
        self._timer = None
        self._lock = threading.Lock()
        self._running = False
        # Bumped by start() and stop(); a fire from an older generation never re-arms
        self._generation = 0

    @property
    def running(self):
        return self._running

    def start(self):
        """Arm the timer. Calling start() on a running scheduler is a no-op."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            self._arm()

    def stop(self):
        """Cancel the pending fire. Safe to call more than once."""
        with self._lock:
            self._running = False
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        logger.info("Report scheduler stopped")

    def run_now(self):
        """Run the job immediately on this thread. Errors propagate to the caller."""
        logger.info("Manual report run requested")
        return self.job()

    def _arm(self):
        now = self._clock()
        fire_at = next_run_at(now, self.hour, self.minute, self.tz)
        delay = (fire_at - now).total_seconds()
        self._timer = threading.Timer(delay, self._fire, args=(self._generation,))
        self._timer.daemon = True
        self._timer.start()
        logger.info("Next report scheduled for %s (in %.0fs)", fire_at.isoformat(), delay)

    def _fire(self, generation):
        try:
            self.job()
        except Exception:
            logger.error("Scheduled report job failed", exc_info=True)
        with self._lock:
            if self._running and generation == self._generation:
                self._arm()
