"""Answer scoring with a deterministic local fallback."""
from __future__ import annotations

import logging
from typing import List, Tuple

from .chain import FallbackChain
from .models import Evaluation, Question

logger = logging.getLogger(__name__)

TECHNICAL_KEYWORDS: Tuple[str, ...] = (
    "function",
    "variable",
    "scope",
    "closure",
    "async",
    "promise",
    "component",
    "state",
    "props",
    "api",
    "database",
    "server",
    "client",
)

BASE_SCORE = 3
MAX_KEYWORD_BONUS = 3


def matched_keywords(answer: str) -> List[str]:
    lowered = answer.lower()
    return [keyword for keyword in TECHNICAL_KEYWORDS if keyword in lowered]


def heuristic_evaluation(answer: str) -> Evaluation:
    """Score an answer from its length and technical vocabulary alone."""

    keywords = matched_keywords(answer)
    score = BASE_SCORE
    if len(answer) > 50:
        score += 1
    if len(answer) > 100:
        score += 1
    score += min(len(keywords), MAX_KEYWORD_BONUS)
    score = max(0, min(10, score))

    if score >= 7:
        level = "good"
    elif score >= 5:
        level = "moderate"
    else:
        level = "limited"
    feedback = f"Basic evaluation: Answer shows {level} technical understanding."
    if keywords:
        feedback += f" Mentioned relevant concepts: {', '.join(keywords[:MAX_KEYWORD_BONUS])}."
    feedback += " Consider providing more detailed explanations."
    return Evaluation(score=score, feedback=feedback, heuristic=True)


class Evaluator:
    def __init__(self, chain: FallbackChain) -> None:
        self._chain = chain

    async def evaluate(self, question: Question, answer: str, role_context: str) -> Evaluation:
        """Return the provider verdict, or the heuristic one once every provider has failed."""

        result = await self._chain.evaluate(question, answer, role_context)
        if result is not None:
            return result
        logger.info("Evaluation fell back to heuristic scoring question=%s", question.id)
        return heuristic_evaluation(answer)


__all__ = ["Evaluator", "TECHNICAL_KEYWORDS", "heuristic_evaluation", "matched_keywords"]
