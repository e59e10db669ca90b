"""
Defensive decoding of model output into chat messages and quiz questions.

Model replies arrive as native lists, objects wrapping a list, JSON strings,
JSON buried in prose, or plain text. Decoding runs an ordered list of stages.
Every stage is total: it returns the raw element list it found, or ``None``
to hand over to the next stage. Nothing in this module raises on bad input.
"""

import json
import re
from collections.abc import Callable, Sequence
from typing import Any

from app.core.logging_config import get_logger
from app.schemas.study import ChatMessage, QuizQuestion

logger = get_logger(__name__)

QUIZ_WRAPPER_FIELDS = ("quiz", "questions", "data", "items")
CHAT_WRAPPER_FIELDS = ("messages", "history", "data")

PLACEHOLDER_OPTIONS = ["True", "False", "Option C", "Option D"]
FALLBACK_OPTIONS = ["A", "B", "C", "D"]
FALLBACK_EXPLANATION = "Fallback question: the quiz service returned an unexpected format."

QUESTION_TYPES = {"mcq", "true_false"}

_JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

Stage = Callable[[Any], list | None]


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences (```json ... ```) from AI responses."""
    stripped = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    stripped = re.sub(r"\n?```\s*$", "", stripped)
    return stripped.strip()


def _loads(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (TypeError, ValueError):
        return False, None


def _unwrap(value: Any, fields: Sequence[str]) -> list | None:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        for field in fields:
            if isinstance(value.get(field), list):
                return value[field]
    return None


# ── Decode stages ─────────────────────────────────────────────


def _native_list(raw: Any) -> list | None:
    return raw if isinstance(raw, list) else None


def _wrapped_list(fields: Sequence[str]) -> Stage:
    def stage(raw: Any) -> list | None:
        return _unwrap(raw, fields) if isinstance(raw, dict) else None
    return stage


def _json_string(fields: Sequence[str]) -> Stage:
    def stage(raw: Any) -> list | None:
        if not isinstance(raw, str):
            return None
        ok, parsed = _loads(strip_json_fences(raw))
        return _unwrap(parsed, fields) if ok else None
    return stage


def _embedded_json_array(raw: Any) -> list | None:
    """Greedy match from the first ``[`` to the last ``]``."""
    if not isinstance(raw, str):
        return None
    match = _JSON_ARRAY_PATTERN.search(raw)
    if not match:
        return None
    ok, parsed = _loads(match.group(0))
    return parsed if ok and isinstance(parsed, list) else None


def _fallback_question(raw: Any) -> list | None:
    if not isinstance(raw, str):
        return None
    lines = [line.strip() for line in raw.split("\n") if line.strip()]
    if not lines:
        return None
    logger.warning("Quiz output could not be parsed; using fallback question")
    return [{
        "question": " ".join(lines[:3]),
        "options": FALLBACK_OPTIONS,
        "correctAnswer": 0,
        "explanation": FALLBACK_EXPLANATION,
        "type": "mcq",
    }]


QUIZ_STAGES: tuple[Stage, ...] = (
    _native_list,
    _wrapped_list(QUIZ_WRAPPER_FIELDS),
    _json_string(QUIZ_WRAPPER_FIELDS),
    _embedded_json_array,
    _fallback_question,
)

CHAT_STAGES: tuple[Stage, ...] = (
    _native_list,
    _wrapped_list(CHAT_WRAPPER_FIELDS),
    _json_string(CHAT_WRAPPER_FIELDS),
    _embedded_json_array,
)


def decode(raw: Any, stages: Sequence[Stage]) -> list:
    """Run stages in order and return the first match, or an empty list."""
    for stage in stages:
        elements = stage(raw)
        if elements is not None:
            return elements
    return []


# ── Quiz ──────────────────────────────────────────────────────


def _first_present(item: dict, keys: Sequence[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None and value != "":
            return value
    return None


def _coerce_options(item: dict) -> list[str]:
    for key in ("options", "choices", "answers"):
        value = item.get(key)
        if isinstance(value, dict) and value:
            return [str(value[k]) for k in sorted(value, key=str)]
        if isinstance(value, list) and value:
            return [str(option) for option in value]
    return list(PLACEHOLDER_OPTIONS)


def _coerce_index(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        value = value.strip()
        if re.fullmatch(r"-?\d+", value):
            return int(value)
        if len(value) == 1 and value.isalpha():
            return ord(value.upper()) - ord("A")
    return 0


def normalize_question(item: Any) -> QuizQuestion | None:
    """One raw element to a QuizQuestion, or None when it has no question text."""
    if not isinstance(item, dict):
        return None
    question = _first_present(item, ("question", "prompt", "q"))
    if question is None:
        return None

    options = _coerce_options(item)
    index = _coerce_index(
        _first_present(item, ("correctAnswer", "correct_answer", "answerIndex", "answer_index"))
    )
    index = max(0, min(len(options) - 1, index))

    explanation = _first_present(item, ("explanation", "explain", "explanationText"))
    question_type = item.get("type")
    if not (isinstance(question_type, str) and question_type in QUESTION_TYPES):
        question_type = "true_false" if len(options) == 2 else "mcq"

    return QuizQuestion(
        question=str(question),
        options=options,
        correct_answer=index,
        explanation="" if explanation is None else str(explanation),
        type=question_type,
    )


def normalize_quiz(raw: Any) -> list[QuizQuestion]:
    questions = []
    for item in decode(raw, QUIZ_STAGES):
        question = normalize_question(item)
        if question is not None:
            questions.append(question)
    return questions


# ── Chat history ──────────────────────────────────────────────


def normalize_message(item: Any) -> ChatMessage:
    """Coerce one history element into a chat message. Never raises."""
    if isinstance(item, dict):
        if item.get("role") and item.get("content") is not None:
            role = "user" if item["role"] == "user" else "assistant"
            return ChatMessage(role=role, content=str(item["content"]))
        if item.get("q") and item.get("a"):
            # Legacy question/answer pair: the answer is the assistant's content.
            return ChatMessage(role="assistant", content=str(item["a"]))
    if isinstance(item, str):
        return ChatMessage(role="assistant", content=item)
    try:
        content = json.dumps(item)
    except (TypeError, ValueError):
        content = str(item)
    return ChatMessage(role="assistant", content=content)


def normalize_chat_history(raw: Any) -> list[ChatMessage]:
    return [normalize_message(item) for item in decode(raw, CHAT_STAGES)]
