"""Interpretation of free-form provider replies.

Providers answer with JSON arrays, JSON wrapped in code fences, numbered lists or
loose "Score: X / Feedback: Y" prose. Each parser tries strict JSON first and
falls back to line or regex extraction. A parser returns None (or an empty
list) when nothing usable was found; callers decide whether that is a failure.
"""
from __future__ import annotations

import json
import math
import re
from typing import Any, List, Optional

from .models import Evaluation, QuestionDraft

MIN_QUESTION_LENGTH = 10
MIN_LOOSE_QUESTION_LENGTH = 20
MIN_SUMMARY_LENGTH = 50
FEEDBACK_PREVIEW_CHARS = 200

_NUMBERED_LINE = re.compile(r"^\s*\d+\s*[.)]\s*(.+)$")
_SCORE_LABEL = re.compile(r"score[\s:*=]*(\d+(?:\.\d+)?)", re.IGNORECASE)
_FEEDBACK_LABEL = re.compile(r"feedback[\s:*=]*(.+?)(?:\n|$)", re.IGNORECASE)
_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code fence, with or without a language tag."""

    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        lines = lines[1:]
        while lines and lines[0].strip() == "":
            lines = lines[1:]
        while lines and lines[-1].strip() == "":
            lines = lines[:-1]
        if lines and lines[-1].strip().endswith("```"):
            last = lines[-1].rstrip()[:-3]
            lines = lines[:-1] + ([last] if last.strip() else [])
        text = "\n".join(lines).strip()
    return text


def _clean_question_text(raw: str) -> str:
    text = raw.strip().strip("*").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    return text


def _draft_from_item(item: Any) -> Optional[QuestionDraft]:
    if isinstance(item, str):
        return QuestionDraft(text=_clean_question_text(item))
    if isinstance(item, dict):
        for key in ("question", "text", "content"):
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                difficulty = item.get("difficulty")
                return QuestionDraft(
                    text=_clean_question_text(value),
                    difficulty=difficulty if isinstance(difficulty, str) else None,
                )
    return None


def _questions_from_json(text: str) -> Optional[List[QuestionDraft]]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    if isinstance(data, dict):
        for key in ("questions", "data", "items"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        return None
    drafts = [_draft_from_item(item) for item in data]
    return [draft for draft in drafts if draft is not None]


def _questions_from_lines(text: str) -> List[QuestionDraft]:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    numbered: List[QuestionDraft] = []
    for line in lines:
        match = _NUMBERED_LINE.match(line)
        if match:
            numbered.append(QuestionDraft(text=_clean_question_text(match.group(1))))
    if numbered:
        return numbered
    return [
        QuestionDraft(text=_clean_question_text(line))
        for line in lines
        if len(line) > MIN_LOOSE_QUESTION_LENGTH and "?" in line
    ]


def parse_question_batch(content: str) -> List[QuestionDraft]:
    """Extract question drafts from a provider reply, dropping fragments."""

    cleaned = strip_code_fences(content)
    drafts = _questions_from_json(cleaned)
    if drafts is None:
        drafts = _questions_from_lines(cleaned)
    return [draft for draft in drafts if len(draft.text) >= MIN_QUESTION_LENGTH]


def clamp_score(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def _coerce_score(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER.search(value)
        if not match:
            return None
        number = float(match.group(1))
    else:
        return None
    if not math.isfinite(number):
        return None
    return clamp_score(number)


def _load_json_object(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        pass
    match = _JSON_OBJECT.search(text)
    if match:
        try:
            return json.loads(match.group(0))
        except (json.JSONDecodeError, ValueError):
            return None
    return None


def parse_evaluation(content: str) -> Optional[Evaluation]:
    """Read a 0-10 score and feedback from structured or loose text."""

    cleaned = strip_code_fences(content)
    if not cleaned:
        return None

    data = _load_json_object(cleaned)
    if isinstance(data, dict) and "score" in data:
        score = _coerce_score(data.get("score"))
        if score is not None:
            feedback = data.get("feedback")
            text = feedback.strip() if isinstance(feedback, str) else ""
            return Evaluation(score=score, feedback=text or "No feedback provided.")

    labeled = _SCORE_LABEL.search(cleaned)
    if labeled:
        score = clamp_score(float(labeled.group(1)))
        feedback_match = _FEEDBACK_LABEL.search(cleaned)
        feedback = feedback_match.group(1).strip() if feedback_match else ""
        return Evaluation(score=score, feedback=feedback or cleaned[:FEEDBACK_PREVIEW_CHARS])

    number = _NUMBER.search(cleaned)
    if number:
        feedback = cleaned[:FEEDBACK_PREVIEW_CHARS] if len(cleaned) > 10 else "Unable to parse detailed feedback."
        return Evaluation(score=clamp_score(float(number.group(1))), feedback=feedback)
    return None


def parse_summary(content: str) -> Optional[str]:
    text = strip_code_fences(content)
    if len(text) <= MIN_SUMMARY_LENGTH:
        return None
    return text


__all__ = [
    "MIN_QUESTION_LENGTH",
    "MIN_SUMMARY_LENGTH",
    "clamp_score",
    "parse_evaluation",
    "parse_question_batch",
    "parse_summary",
    "strip_code_fences",
]
