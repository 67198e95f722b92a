"""Final score and narrative summary for a finished interview."""
from __future__ import annotations

import logging
import math
from typing import Sequence

from pydantic import BaseModel, Field

from .chain import FallbackChain
from .models import QUESTION_COUNT, Answer, CandidateSession, Question

logger = logging.getLogger(__name__)


class Aggregate(BaseModel):
    score: int = Field(ge=0, le=100)
    summary: str = Field(min_length=1)
    templated: bool = False


def final_score(answers: Sequence[Answer]) -> int:
    """Scale the answer scores to 0-100; unanswered or unscored questions count as zero."""

    total = sum(answer.score or 0.0 for answer in answers)
    value = 10.0 * total / QUESTION_COUNT
    return max(0, min(100, int(math.floor(value + 0.5))))


def average_score(answers: Sequence[Answer]) -> float:
    if not answers:
        return 0.0
    return sum(answer.score or 0.0 for answer in answers) / len(answers)


def build_transcript(questions: Sequence[Question], answers: Sequence[Answer]) -> str:
    by_id = {question.id: question for question in questions}
    blocks = []
    for index, answer in enumerate(answers):
        question = by_id.get(answer.question_id)
        if question is None and index < len(questions):
            question = questions[index]
        difficulty = question.difficulty if question else "Unknown"
        text = question.text if question else "Unknown question"
        score = f"{answer.score:g}" if answer.score is not None else "N/A"
        blocks.append(
            f"Question {index + 1} ({difficulty}): {text}\n"
            f"Answer: {answer.text or 'No answer provided'}\n"
            f"Score: {score}/10\n"
            f"Feedback: {answer.feedback or 'No feedback'}"
        )
    return "\n\n".join(blocks)


def templated_summary(answers: Sequence[Answer], candidate_name: str = "") -> str:
    avg = average_score(answers)
    if avg >= 7:
        overview = "Strong performance with good technical understanding."
        recommendation = "Consider for next round"
    elif avg >= 5:
        overview = "Moderate performance with room for improvement."
        recommendation = "Requires further evaluation"
    else:
        overview = "Below average performance, significant gaps in technical knowledge."
        recommendation = "Not recommended at this time"
    return (
        f"Interview Summary for {candidate_name or 'Candidate'}\n\n"
        f"Technical Skills Assessment: The candidate completed {len(answers)} out of {QUESTION_COUNT} "
        f"interview questions with an average score of {avg:.1f}/10.\n\n"
        f"Performance Overview: {overview}\n\n"
        "Areas for Improvement: Based on the interview responses, the candidate would benefit from "
        "additional practice and study in the technical areas covered.\n\n"
        f"Recommendation: {recommendation} based on current technical assessment.\n\n"
        "Note: This is an automated summary. Manual review recommended for final hiring decisions."
    )


class Aggregator:
    def __init__(self, chain: FallbackChain) -> None:
        self._chain = chain

    async def finalize(self, session: CandidateSession) -> Aggregate:
        score = final_score(session.answers)
        transcript = build_transcript(session.questions, session.answers)
        summary = await self._chain.summarize(transcript, session.role_context, score, session.name)
        if summary:
            return Aggregate(score=score, summary=summary)
        logger.info("Summary fell back to template session=%s", session.id)
        return Aggregate(score=score, summary=templated_summary(session.answers, session.name), templated=True)


__all__ = [
    "Aggregate",
    "Aggregator",
    "average_score",
    "build_transcript",
    "final_score",
    "templated_summary",
]
