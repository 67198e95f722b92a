"""Session, question and answer records for the timed interview."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

Difficulty = Literal["Easy", "Medium", "Hard"]
SessionStatus = Literal["not_started", "in_progress", "completed"]

QUESTION_COUNT = 6
DIFFICULTY_PLAN: Tuple[Difficulty, ...] = ("Easy", "Easy", "Medium", "Medium", "Hard", "Hard")
TIME_LIMITS: Dict[str, int] = {"Easy": 20, "Medium": 60, "Hard": 120}

NO_ANSWER_TEXT = "No answer provided (time ran out)"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def time_limit_for(difficulty: str) -> int:
    return TIME_LIMITS.get(difficulty, TIME_LIMITS["Hard"])


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    difficulty: Difficulty
    time_limit: int = Field(gt=0)


class Answer(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    text: str
    score: Optional[float] = Field(default=None, ge=0, le=10)
    feedback: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now)


class Evaluation(BaseModel):
    score: float = Field(ge=0, le=10)
    feedback: str
    heuristic: bool = False


class QuestionDraft(BaseModel):
    text: str
    difficulty: Optional[str] = None


class CandidateSession(BaseModel):
    """One candidate's full interview record.

    The private attributes hold the per-session in-flight guards and are never
    serialized: a reloaded session always starts with its latches released.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = ""
    email: str = ""
    role_context: str = ""
    status: SessionStatus = "not_started"
    questions: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    current_question_index: int = Field(default=0, ge=0, le=QUESTION_COUNT)
    time_left: int = Field(default=0, ge=0)
    is_paused: bool = False
    score: Optional[int] = Field(default=None, ge=0, le=100)
    summary: Optional[str] = None
    notice: Optional[str] = None
    error: Optional[str] = None
    created_at: str = Field(default_factory=utc_now)
    completed_at: Optional[str] = None

    _generation: Optional[asyncio.Future] = PrivateAttr(default=None)
    _generation_token: Optional[str] = PrivateAttr(default=None)
    _aggregation: Optional[asyncio.Future] = PrivateAttr(default=None)
    _submission_token: Optional[str] = PrivateAttr(default=None)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    @property
    def awaiting_aggregation(self) -> bool:
        return (
            self.status == "in_progress"
            and self.current_question_index >= QUESTION_COUNT
            and self.score is None
        )

    @property
    def generation_in_flight(self) -> bool:
        return self._generation is not None

    @property
    def submission_in_flight(self) -> bool:
        return self._submission_token is not None

    def add_notice(self, text: str) -> None:
        if not self.notice:
            self.notice = text
        elif text not in self.notice:
            self.notice = f"{self.notice} {text}"
