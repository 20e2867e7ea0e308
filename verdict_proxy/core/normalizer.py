"""
Turns whatever the model backend returned into a Verdict.

Backends answer in several shapes (``response``, ``content``,
``message.content``, ``message`` or a bare object) and models often wrap
their JSON in a markdown fence or abandon JSON entirely. ``normalize_response``
walks those shapes in a fixed priority order, strips fences, tries a strict
JSON parse and finally falls back to per-field pattern extraction. It never
raises.
"""

from enum import Enum
import json
import logging
import math
import re
from typing import Any

from verdict_proxy.core.types import Verdict, VerdictLabel

logger = logging.getLogger(__name__)

DEFAULT_VERDICT = VerdictLabel.PASS.value
DEFAULT_RATING = 0

_FENCE_PATTERN = re.compile(r"^```json\s*([\s\S]*?)\s*```$")
_VERDICT_PATTERN = re.compile(r'"verdict"\s*:\s*"(.+?)"', re.IGNORECASE)
_RATING_PATTERN = re.compile(r'"rating"\s*:\s*([0-9]+)', re.IGNORECASE)
_EXPLANATION_PATTERN = re.compile(r'"explanation"\s*:\s*"([\s\S]+?)"', re.IGNORECASE)
_INTEGER_PATTERN = re.compile(r"-?[0-9]+")


class PayloadShape(str, Enum):
    """Known backend payload shapes, in lookup priority order"""

    RESPONSE = "response"
    CONTENT = "content"
    MESSAGE_CONTENT = "message.content"
    MESSAGE = "message"
    RAW = "raw"


def _present(value: Any) -> bool:
    # Empty strings, zero and null count as absent so the next shape is tried
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0
    return True


def extract_candidate(payload: Any) -> tuple[PayloadShape, Any]:
    """Pick the model output out of a backend payload"""
    if isinstance(payload, dict):
        if _present(payload.get("response")):
            return PayloadShape.RESPONSE, payload["response"]
        if _present(payload.get("content")):
            return PayloadShape.CONTENT, payload["content"]
        message = payload.get("message")
        if isinstance(message, dict) and _present(message.get("content")):
            return PayloadShape.MESSAGE_CONTENT, message["content"]
        if _present(message):
            return PayloadShape.MESSAGE, message
    return PayloadShape.RAW, payload


def strip_markdown_fence(text: str) -> str:
    """Remove a ```json ... ``` wrapper; other text is returned trimmed"""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    return match.group(1) if match else stripped


def _stringify(candidate: Any) -> str:
    if isinstance(candidate, str):
        return candidate
    try:
        return json.dumps(candidate, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError):
        return f"<unprintable {type(candidate).__name__}>"


def _coerce_rating(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value.strip()):
        return _to_int(value.strip())
    return None


def _to_int(digits: str) -> int | None:
    # Very long digit runs exceed the int conversion limit
    try:
        return int(digits)
    except ValueError:
        return None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} in model output")


class LenientVerdictParser:
    """Per-field extraction over free text; each lookup returns None when absent"""

    @staticmethod
    def verdict(text: str) -> str | None:
        match = _VERDICT_PATTERN.search(text)
        return match.group(1) if match else None

    @staticmethod
    def rating(text: str) -> int | None:
        match = _RATING_PATTERN.search(text)
        return _to_int(match.group(1)) if match else None

    @staticmethod
    def explanation(text: str) -> str | None:
        match = _EXPLANATION_PATTERN.search(text)
        return match.group(1) if match else None

    def parse(self, text: str) -> Verdict:
        verdict = self.verdict(text)
        rating = self.rating(text)
        explanation = self.explanation(text)
        return Verdict(
            verdict=verdict if verdict is not None else DEFAULT_VERDICT,
            rating=rating if rating is not None else DEFAULT_RATING,
            explanation=explanation if explanation is not None else text,
        )


def verdict_from_mapping(data: dict[str, Any]) -> Verdict:
    """Shape an already-structured object into a Verdict"""
    verdict = data.get("verdict")
    rating = _coerce_rating(data.get("rating"))
    explanation = data.get("explanation")
    return Verdict(
        verdict=_stringify(verdict) if _present(verdict) else DEFAULT_VERDICT,
        rating=rating if rating is not None else DEFAULT_RATING,
        explanation=explanation if isinstance(explanation, str) else _stringify(data),
    )


_fallback_parser = LenientVerdictParser()


def normalize_response(payload: Any) -> Verdict:
    shape, candidate = extract_candidate(payload)
    logger.debug("Normalizing backend payload of shape %s", shape.value)

    if isinstance(candidate, str):
        text = candidate
        if text.strip().startswith("```json"):
            text = strip_markdown_fence(text)
        try:
            parsed = json.loads(text, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            logger.warning("Model output is not valid JSON, falling back to field extraction")
            return _fallback_parser.parse(text)
        if isinstance(parsed, dict):
            return verdict_from_mapping(parsed)
        return _fallback_parser.parse(text)

    if isinstance(candidate, dict):
        return verdict_from_mapping(candidate)

    return _fallback_parser.parse(_stringify(candidate))
