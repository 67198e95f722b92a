"""Prompt builders shared by every provider adapter.

Templates are dedented once at import time and filled afterwards, so multi-line
candidate text can never disturb the prompt layout.
"""
from __future__ import annotations

from textwrap import dedent
from typing import Dict, List, Sequence

Message = Dict[str, str]

QUESTION_BATCH_JSON = dedent(
    """
    Generate {count} technical interview questions for a {role_context} role.

    Constraints:
    - Output strictly as a JSON object: {{"questions": [ ... ]}} holding {count} items.
    - Schema for each item: {{"text": "<question>", "difficulty": "Easy|Medium|Hard"}}
    - Provide exactly: {plan} in that order.
    - Questions must be concise and self-contained; no numbering or extra commentary.
    """
).strip()

QUESTION_BATCH_NUMBERED = dedent(
    """
    Generate {count} technical interview questions for a {role_context} position,
    ordered by difficulty: {plan}.

    List them as:
    1. [question text]
    2. [question text]

    Focus on practical skills and real-world scenarios.
    """
).strip()

EVALUATION = dedent(
    """
    Evaluate this interview answer for a {role_context} position.

    Question: "{question}"

    Candidate's Answer: "{answer}"

    Scoring rubric (0-10):
    - 9-10: Correct, complete, precise, strong reasoning/examples
    - 7-8: Mostly correct, minor gaps
    - 5-6: Partial understanding, notable gaps
    - 3-4: Significant misunderstandings
    - 0-2: Incorrect or irrelevant

    Respond with JSON: {{"score": <0-10 integer>, "feedback": "<1-3 sentences>"}}
    If you cannot produce JSON, respond in this format:
    Score: [number]
    Feedback: [your feedback]
    """
).strip()

SUMMARY = dedent(
    """
    Write a brief interview summary for {candidate} applying for a {role_context} position.
    Final Score (0-100): {final_score}

    Interview Performance:
    {transcript}

    Requirements:
    - Start with a single-sentence overall verdict referencing the score.
    - List 2-4 strengths referencing topics from higher-scored answers.
    - List 2-4 areas for improvement referencing topics from lower-scored or missing answers.
    - End with a brief hiring recommendation.
    """
).strip()


def _plan_text(plan: Sequence[str]) -> str:
    counts: Dict[str, int] = {}
    for difficulty in plan:
        counts[difficulty] = counts.get(difficulty, 0) + 1
    return ", ".join(f"{count} {difficulty}" for difficulty, count in counts.items())


def question_batch_json(role_context: str, plan: Sequence[str]) -> List[Message]:
    task = QUESTION_BATCH_JSON.format(count=len(plan), role_context=role_context, plan=_plan_text(plan))
    return [
        {"role": "system", "content": "You are an expert technical interviewer. Return only valid JSON as specified."},
        {"role": "user", "content": task},
    ]


def question_batch_numbered(role_context: str, plan: Sequence[str]) -> List[Message]:
    task = QUESTION_BATCH_NUMBERED.format(count=len(plan), role_context=role_context, plan=_plan_text(plan))
    return [{"role": "user", "content": task}]


def evaluation(question: str, answer: str, role_context: str) -> List[Message]:
    task = EVALUATION.format(role_context=role_context, question=question, answer=answer)
    return [
        {"role": "system", "content": "You are an expert technical interviewer evaluating candidate responses."},
        {"role": "user", "content": task},
    ]


def summary(transcript: str, role_context: str, final_score: int, candidate_name: str) -> List[Message]:
    task = SUMMARY.format(
        candidate=candidate_name or "this candidate",
        role_context=role_context,
        final_score=final_score,
        transcript=transcript,
    )
    return [
        {"role": "system", "content": "You are an expert interviewer. Be concise and structured."},
        {"role": "user", "content": task},
    ]
