"""
Voice sale entry.

Turns a speech-to-text transcript such as "soap quantity 40 price 5
dollars" into a SaleDraft the owner confirms before it is recorded. The
model is asked for a bare JSON object; anything that does not parse into
a valid draft is reported as a failed AI request.
"""

import json
from datetime import date
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from biztrackr.connectors.text_generator import TextGenerator
from biztrackr.models import SaleDraft

from .aggregator import utc_today
from .errors import TextGenerationError, TextGenerationUnavailable, ValidationFailure

logger = structlog.get_logger()

PARSER_SYSTEM_PROMPT = (
    "You are a sales data parser. Extract structured data from voice transcripts "
    "and return only valid JSON."
)

PARSE_MAX_TOKENS = 200


def build_sale_parse_prompt(transcript: str, today: date) -> str:
    """Extraction prompt with two worked examples dated ``today``."""
    day = today.isoformat()
    return (
        "Extract structured sales data from this transcript:\n"
        f'"{transcript}"\n\n'
        "Return ONLY a JSON object with these exact fields:\n"
        "{\n"
        '  "item": string (product name),\n'
        '  "quantity": number (how many units),\n'
        '  "amount": number (unit price in dollars),\n'
        '  "date": "YYYY-MM-DD" (today\'s date if not specified)\n'
        "}\n\n"
        "If something is missing, use null.\n"
        f"Today's date: {day}\n\n"
        "Examples:\n"
        f'"Soap quantity 40 price 5 dollars" -> {{"item":"Soap","quantity":40,"amount":5,"date":"{day}"}}\n'
        f'"Sold 10 units of bread for 20 dollars" -> {{"item":"bread","quantity":10,"amount":2,"date":"{day}"}}\n\n'
        "Return ONLY the JSON object, no explanation."
    )


def _json_object(text: str) -> dict[str, Any]:
    """The outermost ``{...}`` in ``text``, tolerating code fences or prose."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("no JSON object in model output")
    value = json.loads(text[start : end + 1])
    if not isinstance(value, dict):
        raise ValueError("model output is not a JSON object")
    return value


def parse_sale_draft(text: str, today: date) -> SaleDraft:
    """
    Validate model output into a SaleDraft.

    Missing, null, zero or blank fields become None; a missing date becomes
    ``today``.

    Raises:
        TextGenerationError: If the output is not a JSON object or holds
            values of the wrong type
    """
    try:
        raw = _json_object(text)
    except ValueError as e:
        raise TextGenerationError(
            "Could not read a sale from the AI response", details={"reason": str(e)}
        ) from e

    item = raw.get("item")
    if isinstance(item, str):
        item = item.strip()

    try:
        return SaleDraft(
            item_name=item or None,
            quantity=raw.get("quantity") or None,
            unit_amount=raw.get("amount") or None,
            date=raw.get("date") or today,
        )
    except ValidationError as e:
        raise TextGenerationError(
            "Could not read a sale from the AI response",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


class VoiceSaleParser:
    """Reads sale drafts out of transcripts with a TextGenerator."""

    def __init__(self, generator: Optional[TextGenerator] = None):
        self.generator = generator

    def parse(self, transcript: str, today: Optional[date] = None) -> SaleDraft:
        """
        Raises:
            ValidationFailure: If the transcript is blank
            TextGenerationUnavailable: If no generator is configured
            TextGenerationError: If the generator fails or its output is unusable
        """
        transcript = (transcript or "").strip()
        if not transcript:
            raise ValidationFailure("No transcript provided", details={"field": "transcript"})
        if self.generator is None:
            raise TextGenerationUnavailable("AI assistant is not configured")

        today = today or utc_today()
        text = self.generator.generate(
            build_sale_parse_prompt(transcript, today),
            system=PARSER_SYSTEM_PROMPT,
            max_tokens=PARSE_MAX_TOKENS,
        )
        draft = parse_sale_draft(text, today)
        logger.info("voice_sale_parsed", complete=draft.complete, transcript_chars=len(transcript))
        return draft
