"""Tests for matching prompt construction and response parsing."""

import pytest

from discovery.core.exceptions import LLMResponseParseError
from discovery.llm.prompts.matching import get_matching_prompt, parse_matching_response


class TestGetMatchingPrompt:
    def test_numbered_questions_with_ids(self, questions):
        prompt = get_matching_prompt("testo", questions[:2], ["Marco Rossi"])

        assert "1. [ID:q-lead]" in prompt
        assert "2. [ID:q-timing]" in prompt
        assert '"testo"' in prompt
        assert "Marco Rossi" in prompt


class TestParseMatchingResponse:
    def test_json_inside_code_fence(self):
        parsed = parse_matching_response(
            '```json\n{"matched_question_id": "q-1", "extracted_answer": "sì",'
            ' "mentioned_names": ["Luca"], "confidence": 0.8, "reasoning": "ok"}\n```'
        )

        assert parsed.matched_question_id == "q-1"
        assert parsed.mentioned_names == ["Luca"]
        assert parsed.confidence == 0.8

    def test_null_string_id_is_none(self):
        parsed = parse_matching_response(
            '{"matched_question_id": "null", "mentioned_names": null, "confidence": null}'
        )

        assert parsed.matched_question_id is None
        assert parsed.mentioned_names == []
        assert parsed.confidence == 0.0

    def test_no_json_raises(self):
        with pytest.raises(LLMResponseParseError, match="No JSON"):
            parse_matching_response("nessuna corrispondenza")

    def test_invalid_json_raises(self):
        with pytest.raises(LLMResponseParseError, match="Invalid JSON"):
            parse_matching_response("{matched_question_id: q-1}")

    def test_confidence_out_of_range_raises(self):
        with pytest.raises(LLMResponseParseError):
            parse_matching_response('{"confidence": 1.5}')
