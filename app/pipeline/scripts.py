"""
Script lifecycle — generate an outreach script for a prospect, then record
how it landed.

    generate_script()  → Script in Pending state (one AI call, no row on failure)
    submit_feedback()  → Script in Resolved state; positive outcomes are folded
                         into the hive after the feedback commit

Feedback and hive aggregation commit independently. A hive failure is logged
as AggregationFailure and never undoes or fails the feedback write.
"""
import logging

from app.config import DEFAULT_TENANT_ID, FEEDBACK_VALUES, POSITIVE_FEEDBACK, SCRIPT_TYPES
from app.database import get_session
from app.errors import AggregationFailure, InvalidFeedback, NotFound
from app.models.prospect import Prospect
from app.models.script import Script
from app.services import hive
from app.services.ai_client import generate_text
from app.services.prospects import find_by_id

logger = logging.getLogger('pipeline.scripts')

FULL_MAX_TOKENS = 500
BRIEF_MAX_TOKENS = 150


# ── Prompts ──────────────────────────────────────────────────────────────────

def _prospect_block(prospect):
    return (
        f"Prospect: {prospect.name}\n"
        f"Source: {prospect.source}\n"
        f"Signal/Notes: {prospect.signal or 'No specific signal'}\n"
        f"Score: {prospect.score}/100"
    )


_PROMPTS = {
    'approach': """Generate a personalized approach message for this prospect.

{prospect}

Write:
1. A warm, natural opening message (2-3 sentences, like texting — not salesy)
2. A follow-up message if they respond positively
3. Top 2 likely objections and how to handle each

Keep it conversational and authentic.""",

    'follow_up': """This prospect replied to our first message. Write the next message.

{prospect}

Write one follow-up (2-4 sentences) that builds on their interest, asks one
open question, and suggests a low-pressure next step. Like texting a friend.""",

    'objection': """Anticipate the most likely objection from this prospect, given their signal.

{prospect}

Give a natural, empathetic response that:
1. Acknowledges the concern genuinely
2. Reframes it
3. Moves the conversation forward

Keep it to 2-4 sentences.""",
}


def build_prompt(prospect, script_type='approach', brief=False):
    """Prompt for one script. `brief` asks for a two-sentence opener (daily report)."""
    if brief:
        return (
            f"Write a 2-sentence casual, warm opening message to {prospect.name} "
            f"who was found on {prospect.source}. "
            f"Their signal: \"{prospect.signal or 'no specific signal'}\". "
            f"Like texting, not a sales pitch."
        )
    return _PROMPTS[script_type].format(prospect=_prospect_block(prospect))


# ── Generation ───────────────────────────────────────────────────────────────

def generate_script(prospect_id, script_type='approach', brief=False, tenant_id=None):
    """
    Generate and store a script for a prospect.

    Raises:
        ValueError       — unknown script_type
        NotFound         — prospect does not exist
        GenerationError  — provider failed / empty output (nothing is stored)
    """
    if script_type not in SCRIPT_TYPES:
        raise ValueError(f"Unknown script type '{script_type}'. Available: {SCRIPT_TYPES}")

    prospect = find_by_id(prospect_id)
    prompt = build_prompt(prospect, script_type, brief=brief)
    text = generate_text(prompt, max_tokens=BRIEF_MAX_TOKENS if brief else FULL_MAX_TOKENS)

    session = get_session()
    try:
        script = Script(
            prospect_id=prospect.id,
            tenant_id=tenant_id or DEFAULT_TENANT_ID,
            text=text,
            script_type=script_type,
        )
        session.add(script)
        session.commit()
        logger.info(
            "Script %s generated for prospect %s (%s)", script.id[:8], prospect.id[:8], script_type,
            extra={'script_id': script.id, 'prospect_id': prospect.id},
        )
        return script
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_script(script_id):
    session = get_session()
    try:
        script = session.get(Script, script_id)
        if script is None:
            raise NotFound('script', script_id)
        return script
    finally:
        session.close()


# ── Feedback ─────────────────────────────────────────────────────────────────

def submit_feedback(script_id, value):
    """
    Record the outcome of a delivered script.

    Resubmission overwrites the previous outcome. Positive outcomes
    (got_reply / converted) are folded into the hive after the commit.
    """
    if value not in FEEDBACK_VALUES:
        raise InvalidFeedback(value, FEEDBACK_VALUES)

    session = get_session()
    try:
        script = session.get(Script, script_id)
        if script is None:
            raise NotFound('script', script_id)
        script.resolve(value)

        prospect = session.get(Prospect, script.prospect_id) if script.prospect_id else None
        context = {
            'source': prospect.source if prospect else None,
            'signal': prospect.signal if prospect else None,
            'feedback': value,
        }
        session.commit()
        logger.info("Feedback '%s' recorded for script %s", value, script_id[:8],
                    extra={'script_id': script_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if value in POSITIVE_FEEDBACK:
        _aggregate(script, context)
    return script


def _aggregate(script, context):
    """Fold a winning script into the hive. Never raises."""
    try:
        hive.record_win(
            content=script.text,
            learning_type=f'winning_{script.script_type}',
            context=context,
        )
    except Exception as e:
        failure = AggregationFailure(f"hive upsert failed for script {script.id}: {e}")
        logger.error("%s", failure, exc_info=True, extra={'script_id': script.id})
