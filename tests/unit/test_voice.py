"""
Unit tests for voice sale entry.
"""

from datetime import date

import pytest

from biztrackr.engine.errors import (
    TextGenerationError,
    TextGenerationUnavailable,
    ValidationFailure,
)
from biztrackr.engine.voice import (
    PARSER_SYSTEM_PROMPT,
    VoiceSaleParser,
    build_sale_parse_prompt,
    parse_sale_draft,
)
from biztrackr.models import SaleCreate
from tests.conftest import TODAY, FakeTextGenerator


class TestParseSaleDraft:
    """Test validation of model output."""

    def test_full_object(self):
        draft = parse_sale_draft(
            '{"item": "Soap", "quantity": 40, "amount": 5, "date": "2024-01-15"}', TODAY
        )
        assert draft.item_name == "Soap"
        assert draft.quantity == 40
        assert draft.unit_amount == 5.0
        assert draft.date == date(2024, 1, 15)
        assert draft.complete is True

    def test_fenced_output(self):
        text = '```json\n{"item": "bread", "quantity": 10, "amount": 2, "date": null}\n```'
        draft = parse_sale_draft(text, TODAY)
        assert draft.item_name == "bread"
        assert draft.date == TODAY

    def test_missing_fields_are_none(self):
        draft = parse_sale_draft('{"item": "  ", "quantity": null, "amount": 0}', TODAY)
        assert draft.item_name is None
        assert draft.quantity is None
        assert draft.unit_amount is None
        assert draft.date == TODAY
        assert draft.complete is False

    def test_complete_draft_is_a_valid_sale(self):
        draft = parse_sale_draft('{"item": "Soap", "quantity": "3", "amount": 4.5}', TODAY)
        sale = SaleCreate(**draft.model_dump(exclude={"complete"}))
        assert sale.quantity == 3
        assert sale.date == TODAY

    @pytest.mark.parametrize(
        "text",
        [
            "I could not understand that.",
            "[1, 2, 3]",
            '{"item": "Soap", "quantity": 40',
            '{"item": "Soap", "quantity": -2, "amount": 5}',
            '{"item": "Soap", "quantity": 1, "amount": 5, "date": "next tuesday"}',
        ],
    )
    def test_unusable_output(self, text):
        with pytest.raises(TextGenerationError) as exc_info:
            parse_sale_draft(text, TODAY)
        assert exc_info.value.code == "AI_REQUEST_FAILED"
        assert exc_info.value.status_code == 502


class TestVoiceSaleParser:
    """Test the transcript-to-draft flow."""

    def test_prompt_carries_transcript_and_date(self):
        generator = FakeTextGenerator(reply='{"item": "Soap", "quantity": 40, "amount": 5}')
        draft = VoiceSaleParser(generator).parse("Soap quantity 40 price 5 dollars", today=TODAY)

        assert draft.complete is True
        call = generator.calls[0]
        assert '"Soap quantity 40 price 5 dollars"' in call["prompt"]
        assert "Today's date: 2024-01-31" in call["prompt"]
        assert call["system"] == PARSER_SYSTEM_PROMPT

    def test_prompt_examples_use_today(self):
        prompt = build_sale_parse_prompt("anything", date(2024, 3, 2))
        assert '"date":"2024-03-02"' in prompt

    def test_blank_transcript_rejected(self):
        generator = FakeTextGenerator()
        with pytest.raises(ValidationFailure) as exc_info:
            VoiceSaleParser(generator).parse("   ")
        assert exc_info.value.status_code == 400
        assert generator.calls == []

    def test_no_generator(self):
        with pytest.raises(TextGenerationUnavailable):
            VoiceSaleParser().parse("Soap quantity 40")

    def test_generator_error_propagates(self):
        with pytest.raises(TextGenerationError):
            VoiceSaleParser(FakeTextGenerator(error="boom")).parse("Soap quantity 40", today=TODAY)
