"""
Shared client instances — Redis, Anthropic, OpenAI.

Importing this module never opens a connection. AI clients stay None when
their API key is not set.
"""
import logging
import redis

from app.config import (
    REDIS_URL,
    ANTHROPIC_API_KEY, OPENAI_API_KEY,
    AI_TIMEOUT_SECONDS,
)

logger = logging.getLogger('app.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# ── Anthropic ────────────────────────────────────────────────────────────────
anthropic_client = None
if ANTHROPIC_API_KEY:
    try:
        from anthropic import Anthropic
        anthropic_client = Anthropic(api_key=ANTHROPIC_API_KEY, timeout=AI_TIMEOUT_SECONDS, max_retries=0)
        logger.info("Anthropic client initialized successfully")
    except Exception as e:
        logger.error("Error initializing Anthropic client: %s", e)
else:
    logger.warning("ANTHROPIC_API_KEY not set")

# ── OpenAI ────────────────────────────────────────────────────────────────────
openai_client = None
if OPENAI_API_KEY:
    try:
        from openai import OpenAI
        openai_client = OpenAI(api_key=OPENAI_API_KEY, timeout=AI_TIMEOUT_SECONDS, max_retries=0)
        logger.info("OpenAI client initialized successfully")
    except Exception as e:
        logger.error("Error initializing OpenAI client: %s", e)
