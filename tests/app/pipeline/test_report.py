"""Tests for app.pipeline.report — daily report generation and delivery."""
from datetime import timedelta

import pytest
from unittest.mock import MagicMock, patch

from app.errors import GenerationError
from app.pipeline import report as report_mod
from app.pipeline.report import generate_report, select_for_approaches, send_report


def _script(text, script_id='s-1'):
    script = MagicMock()
    script.id = script_id
    script.text = text
    return script


@pytest.fixture
def ai_on():
    with patch('app.pipeline.report.ai_client.is_configured', return_value=True):
        yield


@pytest.fixture
def ai_off():
    with patch('app.pipeline.report.ai_client.is_configured', return_value=False):
        yield


class TestSelectForApproaches:

    def test_threshold_is_inclusive_at_70(self):
        prospects = [MagicMock(score=s) for s in (95, 70, 69)]
        assert [p.score for p in select_for_approaches(prospects)] == [95, 70]

    def test_capped_at_three(self):
        prospects = [MagicMock(score=s) for s in (99, 90, 85, 80, 75)]
        assert [p.score for p in select_for_approaches(prospects)] == [99, 90, 85]


class TestGenerateReport:

    def test_empty_window(self, make_prospect, ai_on):
        make_prospect(score=90, age=timedelta(hours=48))
        with patch('app.pipeline.report.generate_script') as gen:
            report = generate_report()
        gen.assert_not_called()
        assert report.prospects_count == 0
        assert 'No new prospects in the last 24 hours' in report.text
        assert 'Pipeline: 1 total | 1 qualified' in report.text

    def test_lists_prospects_highest_score_first(self, make_prospect, ai_off):
        make_prospect(name='Low', score=40, signal='x' * 300)
        make_prospect(name='High', score=88)
        report = generate_report()
        assert report.text.index('High') < report.text.index('Low')
        assert '🔥' in report.text
        assert 'x' * 150 in report.text
        assert 'x' * 151 not in report.text
        assert 'Suggested Approaches' not in report.text

    def test_one_failed_approach_is_skipped(self, make_prospect, ai_on):
        a = make_prospect(name='Anan', score=95)
        b = make_prospect(name='Bua', score=85)
        c = make_prospect(name='Chai', score=75)

        def fake_generate(prospect_id, script_type, brief=False):
            if prospect_id == b.id:
                raise GenerationError('timeout')
            return _script(f'Hello from {prospect_id}', script_id=f'script-{prospect_id}')

        with patch('app.pipeline.report.generate_script', side_effect=fake_generate) as gen:
            report = generate_report()

        assert gen.call_count == 3
        assert all(call.kwargs['brief'] for call in gen.call_args_list)
        assert [name for name, _, _ in report.approaches] == ['Anan', 'Chai']
        assert len(report.errors) == 1
        assert 'Bua' in report.errors[0]
        assert f'Hello from {a.id}' in report.text
        assert f'Hello from {c.id}' in report.text
        # Bua still appears in the prospect summary
        assert '*2. Bua*' in report.text

    def test_all_approaches_failing_still_produces_report(self, make_prospect, ai_on):
        make_prospect(name='Anan', score=95)
        with patch('app.pipeline.report.generate_script', side_effect=GenerationError('down')):
            report = generate_report()
        assert report.approaches == []
        assert 'Suggested Approaches' not in report.text
        assert 'Anan' in report.text

    def test_only_top_three_qualified_get_approaches(self, make_prospect, ai_on):
        for i, score in enumerate((99, 90, 85, 80, 65)):
            make_prospect(name=f'p{i}', score=score)
        with patch('app.pipeline.report.generate_script', return_value=_script('hi')) as gen:
            report = generate_report()
        assert gen.call_count == 3
        assert report.prospects_count == 5
        assert 'Pipeline: 5 total | 4 qualified' in report.text

    def test_fetch_failure_propagates(self):
        with patch('app.pipeline.report.list_since', side_effect=RuntimeError('db down')):
            with pytest.raises(RuntimeError, match='db down'):
                generate_report()


class TestSendReport:

    def test_delivers_report(self, make_prospect, ai_off):
        make_prospect(name='Nok', score=50)
        with patch('app.pipeline.report.deliver', return_value=True) as deliver:
            assert send_report('chat-1') is True
        chat_id, text = deliver.call_args.args
        assert chat_id == 'chat-1'
        assert 'Nok' in text

    def test_no_chat_configured(self, ai_off):
        with patch('app.pipeline.report.TELEGRAM_REPORT_CHAT_ID', None), \
             patch('app.pipeline.report.deliver') as deliver:
            assert send_report() is False
        deliver.assert_not_called()

    def test_generation_failure_alerts_and_raises(self):
        with patch('app.pipeline.report.list_since', side_effect=RuntimeError('db down')), \
             patch('app.pipeline.report.notify_report_failed') as notify, \
             patch('app.pipeline.report.deliver') as deliver:
            with pytest.raises(RuntimeError):
                send_report('chat-1')
        notify.assert_called_once()
        deliver.assert_not_called()

    def test_delivery_failure_returns_false(self, ai_off):
        with patch('app.pipeline.report.deliver', return_value=False):
            assert send_report('chat-1') is False


def test_report_emoji_heads_text(ai_off):
    assert generate_report().text.startswith(report_mod.REPORT_EMOJI)
