"""Timed six-question technical interview: questions, scoring and the session state machine."""
from .models import (
    DIFFICULTY_PLAN,
    NO_ANSWER_TEXT,
    QUESTION_COUNT,
    TIME_LIMITS,
    Answer,
    CandidateSession,
    Evaluation,
    Question,
    QuestionDraft,
)
from .chain import FallbackChain
from .evaluator import Evaluator, heuristic_evaluation
from .aggregator import Aggregate, Aggregator, final_score, templated_summary
from .question_bank import DEFAULT_QUESTIONS, default_question_set
from .timer import QuestionTimer
from .orchestrator import InterviewOrchestrator, NoActiveSession, SessionNotFound, resolve_role_context

__all__ = [
    "DIFFICULTY_PLAN",
    "NO_ANSWER_TEXT",
    "QUESTION_COUNT",
    "TIME_LIMITS",
    "Answer",
    "CandidateSession",
    "Evaluation",
    "Question",
    "QuestionDraft",
    "FallbackChain",
    "Evaluator",
    "heuristic_evaluation",
    "Aggregate",
    "Aggregator",
    "final_score",
    "templated_summary",
    "DEFAULT_QUESTIONS",
    "default_question_set",
    "QuestionTimer",
    "InterviewOrchestrator",
    "NoActiveSession",
    "SessionNotFound",
    "resolve_role_context",
]
