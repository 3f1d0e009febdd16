"""
Text generation — one prompt in, one block of text out.

Anthropic Messages API is the primary provider; OpenAI chat completions is
used when only OPENAI_API_KEY is configured. Every call goes through the
provider's circuit breaker and carries the client-level timeout. Any
provider error, timeout, open circuit, or empty completion surfaces as
GenerationError. No retries: a failed call is simply a failed call.
"""
import logging

from app.config import ANTHROPIC_MODEL, OPENAI_MODEL
from app.errors import GenerationError

logger = logging.getLogger('services.ai_client')

SYSTEM_PROMPT = (
    "You are an expert network marketing recruiter. Messages must feel like they "
    "come from a real person, not a bot: warm, conversational, never salesy."
)


def is_configured():
    """True when at least one text-generation provider is available."""
    from app import extensions
    return bool(extensions.anthropic_client or extensions.openai_client)


def _call_anthropic(client, prompt, max_tokens):
    from app.services.circuit_breaker import get_breaker
    cb = get_breaker('anthropic')
    response = cb.call(
        client.messages.create,
        model=ANTHROPIC_MODEL,
        max_tokens=max_tokens,
        system=SYSTEM_PROMPT,
        messages=[{"role": "user", "content": prompt}],
    )
    parts = [block.text for block in (response.content or []) if getattr(block, 'type', None) == 'text']
    return ''.join(parts)


def _call_openai(client, prompt, max_tokens):
    from app.services.circuit_breaker import get_breaker
    cb = get_breaker('openai')
    response = cb.call(
        client.chat.completions.create,
        model=OPENAI_MODEL,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        max_tokens=max_tokens,
        temperature=0.7,
    )
    return response.choices[0].message.content or ''


def generate_text(prompt: str, max_tokens: int = 500) -> str:
    """Generate a completion for `prompt`. Raises GenerationError on any failure."""
    from app import extensions

    if extensions.anthropic_client:
        provider, call, client = 'anthropic', _call_anthropic, extensions.anthropic_client
    elif extensions.openai_client:
        provider, call, client = 'openai', _call_openai, extensions.openai_client
    else:
        raise GenerationError("No text-generation provider configured")

    try:
        text = call(client, prompt, max_tokens)
    except Exception as e:
        logger.warning("%s generation failed: %s", provider, e)
        raise GenerationError(f"{provider} generation failed: {e}") from e

    text = (text or '').strip()
    if not text:
        raise GenerationError(f"{provider} returned an empty completion")
    logger.debug("%s generated %d chars", provider, len(text))
    return text
