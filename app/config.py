"""
Centralized configuration — all env vars, constants, funnel definitions.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Anthropic ─────────────────────────────────────────────────────────────────
ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY')
ANTHROPIC_MODEL = os.getenv('ANTHROPIC_MODEL', 'claude-sonnet-4-20250514')

# ── OpenAI (fallback text generation) ────────────────────────────────────────
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

# Per-call timeout for any AI request, in seconds
AI_TIMEOUT_SECONDS = float(os.getenv('AI_TIMEOUT_SECONDS', '30'))

# ── Telegram delivery ────────────────────────────────────────────────────────
TELEGRAM_BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN')
TELEGRAM_REPORT_CHAT_ID = os.getenv('TELEGRAM_REPORT_CHAT_ID')
TELEGRAM_API_URL = 'https://api.telegram.org'

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Tenancy ──────────────────────────────────────────────────────────────────
DEFAULT_TENANT_ID = os.getenv('DEFAULT_TENANT_ID', 'default')

# ── Daily report schedule (7 AM Bangkok by default) ──────────────────────────
REPORT_TIMEZONE = os.getenv('REPORT_TIMEZONE', 'Asia/Bangkok')
REPORT_HOUR = int(os.getenv('REPORT_HOUR', '7'))
REPORT_MINUTE = int(os.getenv('REPORT_MINUTE', '0'))
REPORT_LOOKBACK_HOURS = 24
REPORT_MAX_APPROACHES = 3
REPORT_SIGNAL_PREVIEW = 150

# ── Prospect funnel ──────────────────────────────────────────────────────────
PROSPECT_STATUSES = [
    'new',
    'contacted',
    'qualified',
    'converted',
    'lost',
]

# Minimum score for a prospect to count as qualified / get a suggested approach
QUALIFIED_SCORE = 70

# ── Scripts & feedback ───────────────────────────────────────────────────────
SCRIPT_TYPES = [
    'approach',
    'follow_up',
    'objection',
]

FEEDBACK_VALUES = [
    'no_response',
    'got_reply',
    'converted',
]

# Feedback that folds a script into the hive
POSITIVE_FEEDBACK = {'got_reply', 'converted'}

LEADERBOARD_SIZE = 10
