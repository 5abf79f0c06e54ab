"""
Prompts for matching transcript chunks to open discovery questions.

The model receives the chunk, the unanswered questions with their ids and
the team names to look for, and must answer with a single JSON object:

    {
      "matched_question_id": "<id or null>",
      "extracted_answer": "<relevant part of the text>",
      "mentioned_names": ["..."],
      "confidence": 0.0-1.0,
      "reasoning": "<short explanation>"
    }
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

from discovery.core.exceptions import LLMResponseParseError
from discovery.domain.models.question import Question

# First "{" through last "}" (greedy, spans newlines)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class MatchingResponse(BaseModel):
    """Validated shape of the model's JSON answer."""

    matched_question_id: Optional[str] = None
    extracted_answer: Optional[str] = None
    mentioned_names: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""

    @field_validator("matched_question_id", mode="before")
    @classmethod
    def null_string_is_none(cls, v: Any) -> Any:
        if v is None:
            return None
        v = str(v).strip()
        if not v or v.lower() in ("null", "none"):
            return None
        return v

    @field_validator("mentioned_names", mode="before")
    @classmethod
    def names_as_list(cls, v: Any) -> Any:
        if v is None:
            return []
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def confidence_default(cls, v: Any) -> Any:
        return 0.0 if v is None else v


def get_matching_prompt(
    text: str, unanswered: Iterable[Question], team_names: Iterable[str]
) -> str:
    """
    Build the matching prompt.

    Args:
        text: Transcript chunk
        unanswered: Open questions, listed with their ids
        team_names: Display names of team members to detect

    Returns:
        Prompt string
    """
    questions_block = "\n".join(
        f"{i}. [ID:{q.id}] {q.text}" for i, q in enumerate(unanswered, start=1)
    )
    names_block = ", ".join(team_names)

    return f"""Analizza questo testo trascritto da una call di discovery e:
1. Identifica quale domanda sta rispondendo (se presente)
2. Estrai i nomi del team menzionati
3. Valuta la confidenza (0-1)

TESTO TRASCRITTO:
"{text}"

DOMANDE NON ANCORA RISPOSTE:
{questions_block}

NOMI DEL TEAM DA RILEVARE:
{names_block}

Rispondi SOLO in JSON:
{{
  "matched_question_id": "ID della domanda o null",
  "extracted_answer": "la parte rilevante del testo come risposta",
  "mentioned_names": ["nome1", "nome2"],
  "confidence": 0.8,
  "reasoning": "breve spiegazione"
}}"""


def parse_matching_response(response_text: str) -> MatchingResponse:
    """
    Parse the first JSON-shaped substring of an LLM response.

    Args:
        response_text: Raw model output (may wrap the JSON in prose or fences)

    Returns:
        Validated MatchingResponse

    Raises:
        LLMResponseParseError: No JSON object, invalid JSON, or wrong shape
    """
    match = _JSON_OBJECT.search(response_text or "")
    if not match:
        raise LLMResponseParseError("No JSON object in matching response")

    try:
        data: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise LLMResponseParseError(f"Invalid JSON in matching response: {e}") from e

    if not isinstance(data, dict):
        raise LLMResponseParseError("Matching response must be a JSON object")

    try:
        return MatchingResponse.model_validate(data)
    except ValueError as e:
        raise LLMResponseParseError(f"Unexpected matching response shape: {e}") from e
