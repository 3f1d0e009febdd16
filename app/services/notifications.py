"""
Delivery — push finished report / script text to an external channel.

Telegram carries the reports; Slack gets an alert when a scheduled report
could not be built. Delivery failure never propagates into the pipeline:
every function here logs and returns.
"""
import logging
import requests

from app.config import SLACK_WEBHOOK_URL, TELEGRAM_API_URL, TELEGRAM_BOT_TOKEN

logger = logging.getLogger('services.notifications')

# Telegram rejects messages longer than this
TELEGRAM_MAX_LENGTH = 4096


def _post_telegram(chat_id, text):
    resp = requests.post(
        f"{TELEGRAM_API_URL}/bot{TELEGRAM_BOT_TOKEN}/sendMessage",
        json={
            'chat_id': chat_id,
            'text': text[:TELEGRAM_MAX_LENGTH],
            'parse_mode': 'Markdown',
        },
        timeout=10,
    )
    resp.raise_for_status()
    return resp


def deliver(chat_id, text) -> bool:
    """Send text to a Telegram chat. Returns True on success."""
    if not TELEGRAM_BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN not set — delivery to %s skipped", chat_id)
        return False

    try:
        from app.services.circuit_breaker import get_breaker
        get_breaker('telegram').call(_post_telegram, chat_id, text)
        logger.info("Delivered %d chars to chat %s", len(text), chat_id, extra={'chat_id': chat_id})
        return True
    except Exception:
        logger.error("Failed to deliver message to chat %s", chat_id, exc_info=True,
                     extra={'chat_id': chat_id})
        return False


def notify_report_failed(error):
    """Post a report failure alert to Slack."""
    if not SLACK_WEBHOOK_URL:
        return

    try:
        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Daily Prospect Report FAILED"},
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Error:* ```{str(error)[:500]}```"},
            },
        ]
        requests.post(SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)
        logger.info("Report failure notification sent")
    except Exception:
        logger.error("Failed to send report failure notification", exc_info=True)
