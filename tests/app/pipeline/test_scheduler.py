"""Tests for app.pipeline.scheduler — daily timer."""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from unittest.mock import MagicMock, patch

from app.pipeline.scheduler import ReportScheduler, next_run_at

BANGKOK = ZoneInfo('Asia/Bangkok')


class TestNextRunAt:

    def test_later_today(self):
        now = datetime(2026, 3, 1, 5, 30, tzinfo=BANGKOK)
        assert next_run_at(now, 7, 0, BANGKOK) == datetime(2026, 3, 1, 7, 0, tzinfo=BANGKOK)

    def test_after_fire_time_rolls_to_tomorrow(self):
        now = datetime(2026, 3, 1, 7, 0, 1, tzinfo=BANGKOK)
        assert next_run_at(now, 7, 0, BANGKOK) == datetime(2026, 3, 2, 7, 0, tzinfo=BANGKOK)

    def test_exactly_at_fire_time_rolls_to_tomorrow(self):
        now = datetime(2026, 3, 1, 7, 0, tzinfo=BANGKOK)
        assert next_run_at(now, 7, 0, BANGKOK).day == 2

    def test_converts_from_utc(self):
        # 23:30 UTC is 06:30 next day in Bangkok
        now = datetime(2026, 3, 1, 23, 30, tzinfo=ZoneInfo('UTC'))
        assert next_run_at(now, 7, 0, BANGKOK) == datetime(2026, 3, 2, 7, 0, tzinfo=BANGKOK)


@pytest.fixture
def timer_cls():
    with patch('app.pipeline.scheduler.threading.Timer') as mock:
        yield mock


def _fire_last_armed(timer_cls):
    """Invoke the callback handed to the most recent Timer, as the timer thread would."""
    call = timer_cls.call_args
    _delay, callback = call.args
    callback(*call.kwargs['args'])


def _scheduler(job, hour=7):
    clock = lambda: datetime(2026, 3, 1, 6, 0, tzinfo=BANGKOK)
    return ReportScheduler(job, hour=hour, minute=0, tz='Asia/Bangkok', clock=clock)


class TestReportScheduler:

    def test_start_arms_timer_for_next_run(self, timer_cls):
        scheduler = _scheduler(MagicMock())
        scheduler.start()
        delay, callback = timer_cls.call_args.args
        assert delay == 3600
        assert callback == scheduler._fire
        assert timer_cls.call_args.kwargs['args'] == (1,)
        timer_cls.return_value.start.assert_called_once()
        assert timer_cls.return_value.daemon is True
        assert scheduler.running

    def test_start_is_idempotent(self, timer_cls):
        scheduler = _scheduler(MagicMock())
        scheduler.start()
        scheduler.start()
        assert timer_cls.call_count == 1

    def test_stop_cancels_timer(self, timer_cls):
        scheduler = _scheduler(MagicMock())
        scheduler.start()
        scheduler.stop()
        timer_cls.return_value.cancel.assert_called_once()
        assert not scheduler.running

    def test_stop_without_start(self, timer_cls):
        _scheduler(MagicMock()).stop()
        timer_cls.assert_not_called()

    def test_fire_runs_job_and_rearms(self, timer_cls):
        job = MagicMock()
        scheduler = _scheduler(job)
        scheduler.start()
        _fire_last_armed(timer_cls)
        job.assert_called_once()
        assert timer_cls.call_count == 2

    def test_fire_survives_job_failure(self, timer_cls):
        job = MagicMock(side_effect=RuntimeError('db down'))
        scheduler = _scheduler(job)
        scheduler.start()
        _fire_last_armed(timer_cls)
        assert timer_cls.call_count == 2

    def test_fire_after_stop_does_not_rearm(self, timer_cls):
        scheduler = _scheduler(MagicMock())
        scheduler.start()
        scheduler.stop()
        _fire_last_armed(timer_cls)
        assert timer_cls.call_count == 1

    def test_run_now_returns_job_result_and_propagates(self, timer_cls):
        assert _scheduler(MagicMock(return_value=True)).run_now() is True
        with pytest.raises(RuntimeError):
            _scheduler(MagicMock(side_effect=RuntimeError('x'))).run_now()
        timer_cls.assert_not_called()

    def test_restart_during_fire_keeps_a_single_timer(self, timer_cls):
        scheduler = _scheduler(MagicMock())
        scheduler.start()
        stale = timer_cls.call_args

        # stop() + start() while the first fire's job is still running
        scheduler.stop()
        scheduler.start()
        assert timer_cls.call_count == 2

        stale.args[1](*stale.kwargs['args'])
        assert timer_cls.call_count == 2
        assert scheduler.running

        # The current generation still re-arms normally
        _fire_last_armed(timer_cls)
        assert timer_cls.call_count == 3
