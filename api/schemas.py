"""Pydantic schemas for the interview API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from interview import Answer, CandidateSession, Question


class CreateCandidateReq(BaseModel):
    name: str = Field(min_length=1)
    email: str = ""
    role: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class DraftReq(BaseModel):
    text: str = ""


class AnswerReq(BaseModel):
    text: Optional[str] = None


class CandidateSummary(BaseModel):
    id: str
    name: str
    email: str
    role_context: str
    status: str
    score: Optional[int] = None
    created_at: str
    completed_at: Optional[str] = None

    @classmethod
    def from_session(cls, session: CandidateSession) -> "CandidateSummary":
        return cls(
            id=session.id,
            name=session.name,
            email=session.email,
            role_context=session.role_context,
            status=session.status,
            score=session.score,
            created_at=session.created_at,
            completed_at=session.completed_at,
        )


class CandidateDetail(CandidateSummary):
    questions: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    current_question_index: int = 0
    summary: Optional[str] = None
    notice: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_session(cls, session: CandidateSession) -> "CandidateDetail":
        return cls(
            **CandidateSummary.from_session(session).model_dump(),
            questions=session.questions,
            answers=session.answers,
            current_question_index=session.current_question_index,
            summary=session.summary,
            notice=session.notice,
            error=session.error,
        )


class InterviewView(BaseModel):
    """What the interview screen renders for the active session."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(serialization_alias="sessionId")
    status: str
    question: Optional[Question] = None
    index: int
    total: int
    time_left: int = Field(serialization_alias="timeLeft")
    is_paused: bool = Field(serialization_alias="isPaused")
    notice: Optional[str] = None
    error: Optional[str] = None
    score: Optional[int] = None
    summary: Optional[str] = None
