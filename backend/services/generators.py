"""
services/generators.py — Summary, concept explanation, flashcard and quiz
generation on top of the ModelGateway.

Model output is untrusted input. Flashcards and quizzes are pulled out of the
reply with ``extract_json_array`` (the model likes to wrap JSON in chatter)
and every item is shape-checked before it reaches the database.

Callers must make sure the document text is non-empty; generators do not
re-check it.
"""

import json
import re
from typing import Any, Dict, List

from errors import GenerationParseError
from logging_config import get_logger
from services import prompts
from services.model_gateway import ModelGateway, truncate_text

logger = get_logger(__name__)

_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)

QUIZ_OPTION_COUNT = 4


def extract_json_array(raw: str) -> List[Any]:
    """
    Return the JSON array embedded in *raw*.

    The span from the first ``[`` to the last ``]`` is parsed; if there is no
    such span the whole reply is tried. Raises GenerationParseError when no
    JSON array can be recovered.
    """
    match = _JSON_ARRAY_RE.search(raw or "")
    candidate = match.group() if match else (raw or "")
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, TypeError) as exc:
        raise GenerationParseError() from exc
    if not isinstance(data, list):
        raise GenerationParseError()
    return data


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _answer_index(item: Dict[str, Any]):
    for key in ("correctAnswer", "correctAnswerIndex", "correct_answer"):
        if key in item:
            value = item[key]
            if isinstance(value, bool):
                return None
            if isinstance(value, int):
                return value
            if isinstance(value, str) and value.strip().isdigit():
                return int(value.strip())
            return None
    return None


def validate_flashcards(items: List[Any], count: int) -> List[Dict[str, str]]:
    cards = []
    for item in items:
        if not isinstance(item, dict):
            continue
        question = _clean_str(item.get("question"))
        answer = _clean_str(item.get("answer"))
        if question and answer:
            cards.append({"question": question, "answer": answer})
    if len(cards) < len(items):
        logger.warning("flashcards.items_dropped", received=len(items), kept=len(cards))
    if not cards:
        raise GenerationParseError("Failed to parse flashcards from AI response. Please try again.")
    return cards[:count]


def validate_quiz_questions(items: List[Any], count: int) -> List[Dict[str, Any]]:
    questions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        question = _clean_str(item.get("question"))
        options = item.get("options")
        if not question or not isinstance(options, list) or len(options) != QUIZ_OPTION_COUNT:
            continue
        if not all(isinstance(o, str) and o.strip() for o in options):
            continue
        index = _answer_index(item)
        if index is None or not 0 <= index < QUIZ_OPTION_COUNT:
            continue
        questions.append({
            "question": question,
            "options": [o.strip() for o in options],
            "correct_answer": index,
            "explanation": _clean_str(item.get("explanation")),
        })
    if len(questions) < len(items):
        logger.warning("quiz.items_dropped", received=len(items), kept=len(questions))
    if not questions:
        raise GenerationParseError("Failed to parse quiz from AI response. Please try again.")
    return questions[:count]


class ArtifactGenerator:
    def __init__(self, gateway: ModelGateway, max_chars: int = 30000):
        self._gateway = gateway
        self._max_chars = max_chars

    def _doc(self, text: str) -> str:
        return truncate_text(text, self._max_chars)

    async def summarize(self, text: str) -> str:
        prompt = prompts.SUMMARY_PROMPT.format(text=self._doc(text))
        return await self._gateway.complete(prompt)

    async def explain_concept(self, text: str, question: str) -> str:
        prompt = prompts.EXPLAIN_PROMPT.format(text=self._doc(text), question=question)
        return await self._gateway.complete(prompt)

    async def generate_flashcards(self, text: str, count: int = 10) -> List[Dict[str, str]]:
        prompt = prompts.FLASHCARDS_PROMPT.format(count=count, text=self._doc(text))
        raw = await self._gateway.complete(prompt)
        try:
            return validate_flashcards(extract_json_array(raw), count)
        except GenerationParseError as exc:
            logger.warning("flashcards.parse_failed", preview=raw[:200])
            raise GenerationParseError(
                "Failed to parse flashcards from AI response. Please try again."
            ) from exc

    async def generate_quiz(self, text: str, count: int = 5) -> List[Dict[str, Any]]:
        prompt = prompts.QUIZ_PROMPT.format(count=count, text=self._doc(text))
        raw = await self._gateway.complete(prompt)
        try:
            return validate_quiz_questions(extract_json_array(raw), count)
        except GenerationParseError as exc:
            logger.warning("quiz.parse_failed", preview=raw[:200])
            raise GenerationParseError(
                "Failed to parse quiz from AI response. Please try again."
            ) from exc
