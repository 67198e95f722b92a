"""Interview session state machine.

One orchestrator drives one active candidate session at a time:

    not_started -> in_progress (question index 0..5) -> awaiting aggregation (index 6) -> completed

Question generation and aggregation are each latched per session so repeated
triggers share the single outstanding request. Every transition is persisted
through the store as a full replace of all sessions. Provider trouble never
surfaces as an exception: the question bank, heuristic scoring and the
templated summary take over, and the session carries an advisory notice.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Set
from uuid import uuid4

from config import settings
from observability import log_event, span

from .aggregator import Aggregator
from .chain import FallbackChain
from .evaluator import Evaluator
from .models import (
    DIFFICULTY_PLAN,
    NO_ANSWER_TEXT,
    QUESTION_COUNT,
    Answer,
    CandidateSession,
    Question,
    QuestionDraft,
    time_limit_for,
    utc_now,
)
from .question_bank import default_question_set
from .timer import QuestionTimer

if TYPE_CHECKING:
    from storage import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS_NOTICE = "Using default questions."
DEFAULT_EVALUATION_NOTICE = "Using default evaluation."
DEFAULT_SUMMARY_NOTICE = "Using default summary."
GENERATION_STUCK_ERROR = "Question generation timed out. Please try again."


class SessionNotFound(KeyError):
    pass


class NoActiveSession(RuntimeError):
    pass


def resolve_role_context(role: Optional[str] = None, skills: Optional[Sequence[str]] = None) -> str:
    """Skills joined with commas win over an explicit role; the configured default fills the gap."""

    cleaned = [skill.strip() for skill in (skills or []) if skill and skill.strip()]
    if cleaned:
        return ", ".join(cleaned)
    if role and role.strip():
        return role.strip()
    return settings.DEFAULT_ROLE_CONTEXT


def snapshot(session: CandidateSession) -> CandidateSession:
    return CandidateSession.model_validate(session.model_dump())


def questions_from_drafts(drafts: Sequence[QuestionDraft]) -> List[Question]:
    batch = uuid4().hex[:8]
    return [
        Question(
            id=f"generated-{batch}-{index}",
            text=draft.text,
            difficulty=difficulty,
            time_limit=time_limit_for(difficulty),
        )
        for index, (draft, difficulty) in enumerate(zip(drafts, DIFFICULTY_PLAN))
    ]


class InterviewOrchestrator:
    def __init__(
        self,
        store: "SessionStore",
        chain: FallbackChain,
        *,
        tick_seconds: Optional[float] = None,
        guard_timeout: Optional[float] = None,
    ) -> None:
        self._store = store
        self._chain = chain
        self._evaluator = Evaluator(chain)
        self._aggregator = Aggregator(chain)
        self._timer = QuestionTimer(tick_seconds or settings.TICK_SECONDS)
        self._guard_timeout = guard_timeout
        self._sessions: Dict[str, CandidateSession] = {session.id: session for session in store.load()}
        self._active_id: Optional[str] = None
        self._draft = ""
        self._background: Set[asyncio.Task] = set()

    # -- session registry -------------------------------------------------

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def timer(self) -> QuestionTimer:
        return self._timer

    def get(self, session_id: str) -> CandidateSession:
        return snapshot(self._session(session_id))

    def list_sessions(self, search: Optional[str] = None) -> List[CandidateSession]:
        """Completed sessions first by score, then the rest newest first."""

        needle = (search or "").strip().lower()
        sessions = [
            session
            for session in self._sessions.values()
            if not needle or needle in session.name.lower() or needle in session.email.lower()
        ]
        completed = sorted(
            (s for s in sessions if s.status == "completed"), key=lambda s: s.score or 0, reverse=True
        )
        pending = sorted((s for s in sessions if s.status != "completed"), key=lambda s: s.created_at, reverse=True)
        return [snapshot(session) for session in completed + pending]

    def create_candidate(
        self,
        *,
        name: str,
        email: str = "",
        role: Optional[str] = None,
        skills: Optional[Sequence[str]] = None,
    ) -> CandidateSession:
        session = CandidateSession(name=name, email=email, role_context=resolve_role_context(role, skills))
        self._sessions[session.id] = session
        self._persist()
        log_event("candidate_created", session.id, status=session.status)
        return snapshot(session)

    async def activate(self, session_id: str) -> CandidateSession:
        session = self._session(session_id)
        if self._active_id != session_id:
            self._timer.cancel()
            self._draft = ""
            self._active_id = session_id
            log_event("session_activated", session_id, status=session.status)
        await self.sync()
        return snapshot(session)

    async def sync(self) -> None:
        """Re-check the active session and take whatever step its state calls for."""

        session = self._active()
        if session is None:
            return
        if session.status == "completed":
            self._timer.cancel()
            return
        if not session.questions:
            await self.generate(session.id)
            return
        self._heal(session)
        if session.awaiting_aggregation:
            await self.finalize(session.id)
            return
        self._rearm(session)

    # -- generation -------------------------------------------------------

    async def generate(self, session_id: Optional[str] = None) -> CandidateSession:
        session = self._resolve(session_id)
        if session.questions:
            return snapshot(session)
        if session._generation is None:
            token = session._generation_token or uuid4().hex
            session._generation_token = token
            session.error = None
            session._generation = asyncio.ensure_future(self._generate_questions(session, token))
        future = session._generation
        try:
            await asyncio.wait_for(asyncio.shield(future), self._guard_timeout or settings.GENERATION_GUARD_TIMEOUT_S)
        except asyncio.TimeoutError:
            if session._generation is future and not session.questions:
                session._generation = None
                session.error = GENERATION_STUCK_ERROR
                self._persist()
                log_event("generation_stuck", session.id, status=session.status)
        return snapshot(session)

    async def _generate_questions(self, session: CandidateSession, token: str) -> None:
        try:
            budget = self._chain.generation_budget
            with span("generate_questions", session.id):
                try:
                    drafts = await asyncio.wait_for(
                        self._chain.generate_question_set(session.role_context or settings.DEFAULT_ROLE_CONTEXT), budget
                    )
                except asyncio.TimeoutError:
                    logger.warning("Question generation exceeded %.1fs budget session=%s", budget, session.id)
                    drafts = None
            if session._generation_token != token or session.questions:
                logger.info("Ignoring late question batch session=%s", session.id)
                return
            if drafts is None:
                questions = default_question_set()
                session.add_notice(DEFAULT_QUESTIONS_NOTICE)
                source = "question_bank"
            else:
                questions = questions_from_drafts(drafts)
                source = "provider"
            session.questions = questions
            session.answers = []
            session.current_question_index = 0
            session.time_left = questions[0].time_limit
            session.is_paused = False
            session.status = "in_progress"
            session.error = None
            self._persist()
            log_event("questions_ready", session.id, status=session.status, source=source, time_left=session.time_left)
            self._rearm(session)
        finally:
            if session._generation_token == token:
                session._generation_token = None
            if session._generation is asyncio.current_task():
                session._generation = None

    # -- answering --------------------------------------------------------

    def update_draft(self, text: str) -> None:
        self._draft = text or ""

    async def submit_answer(self, text: Optional[str] = None) -> CandidateSession:
        """Record an answer for the current question; ``None`` submits the current draft."""

        session = self._require_active()
        if session.status != "in_progress" or session.submission_in_flight:
            return snapshot(session)
        self._heal(session)
        question = session.current_question
        if question is None:
            return snapshot(session)

        raw = self._draft if text is None else text
        answer_text = raw.strip() or NO_ANSWER_TEXT
        index = session.current_question_index

        token = uuid4().hex
        session._submission_token = token
        self._timer.cancel()
        try:
            with span("evaluate_answer", session.id):
                evaluation = await self._evaluator.evaluate(question, answer_text, session.role_context)
        finally:
            stale = session._submission_token != token
            if not stale:
                session._submission_token = None

        if stale or session.status != "in_progress" or session.current_question is not question:
            logger.info("Discarding evaluation for a question no longer current session=%s", session.id)
            self._rearm(session)
            return snapshot(session)

        next_index = index + 1
        next_question = session.questions[next_index] if next_index < len(session.questions) else None
        session.answers = [
            *session.answers,
            Answer(question_id=question.id, text=answer_text, score=evaluation.score, feedback=evaluation.feedback),
        ]
        session.current_question_index = next_index
        session.time_left = next_question.time_limit if next_question else 0
        session.is_paused = False
        if evaluation.heuristic:
            session.add_notice(DEFAULT_EVALUATION_NOTICE)
        if self._active_id == session.id:
            self._draft = ""
        self._persist()
        log_event(
            "answer_recorded",
            session.id,
            index=index,
            score=evaluation.score,
            source="heuristic" if evaluation.heuristic else "provider",
        )

        if session.awaiting_aggregation:
            await self.finalize(session.id)
        else:
            self._rearm(session)
        return snapshot(session)

    # -- aggregation ------------------------------------------------------

    async def finalize(self, session_id: Optional[str] = None) -> CandidateSession:
        session = self._resolve(session_id)
        if session.status == "completed" or not session.awaiting_aggregation:
            return snapshot(session)
        if session._aggregation is None:
            session._aggregation = asyncio.ensure_future(self._aggregate(session))
        await asyncio.shield(session._aggregation)
        return snapshot(session)

    async def _aggregate(self, session: CandidateSession) -> None:
        try:
            with span("aggregate", session.id):
                result = await self._aggregator.finalize(session)
            if not session.awaiting_aggregation:
                logger.info("Ignoring late aggregation session=%s", session.id)
                return
            session.score = result.score
            session.summary = result.summary
            session.status = "completed"
            session.completed_at = utc_now()
            session.time_left = 0
            session.is_paused = False
            if result.templated:
                session.add_notice(DEFAULT_SUMMARY_NOTICE)
            self._persist()
            if self._active_id == session.id:
                self._timer.cancel()
            log_event("interview_completed", session.id, status=session.status, score=session.score)
        finally:
            if session._aggregation is asyncio.current_task():
                session._aggregation = None

    # -- pause / resume / reset ------------------------------------------

    def pause(self) -> CandidateSession:
        session = self._require_active()
        if session.status == "in_progress" and session.current_question is not None and not session.is_paused:
            self._timer.cancel()
            session.is_paused = True
            self._persist()
            log_event("paused", session.id, index=session.current_question_index, time_left=session.time_left)
        return snapshot(session)

    def resume(self) -> CandidateSession:
        session = self._require_active()
        if session.is_paused:
            session.is_paused = False
            self._persist()
            log_event("resumed", session.id, index=session.current_question_index, time_left=session.time_left)
            self._rearm(session)
        return snapshot(session)

    def request_reset(self, session_id: Optional[str] = None) -> CandidateSession:
        session = self._resolve(session_id)
        if self._active_id == session.id:
            self._timer.cancel()
            self._draft = ""
        session._generation = None
        session._generation_token = None
        session._submission_token = None
        session._aggregation = None
        session.status = "not_started"
        session.questions = []
        session.answers = []
        session.current_question_index = 0
        session.time_left = 0
        session.is_paused = False
        session.score = None
        session.summary = None
        session.notice = None
        session.error = None
        session.completed_at = None
        self._persist()
        log_event("session_reset", session.id, status=session.status)
        return snapshot(session)

    # -- timer ------------------------------------------------------------

    async def tick(self) -> bool:
        """Advance the countdown by one step; False stops the timer loop."""

        session = self._active()
        if session is None or not self._should_tick(session):
            return False
        session.time_left = max(0, session.time_left - 1)
        if session.time_left > 0:
            return True
        log_event("time_expired", session.id, index=session.current_question_index)
        self._spawn(self._auto_submit(session.id, session.current_question_index))
        return False

    async def _auto_submit(self, session_id: str, index: int) -> None:
        session = self._sessions.get(session_id)
        if session is None or self._active_id != session_id:
            return
        if session.status != "in_progress" or session.current_question_index != index:
            return
        await self.submit_answer(None)

    def _should_tick(self, session: CandidateSession) -> bool:
        return (
            session.status == "in_progress"
            and session.current_question_index < QUESTION_COUNT
            and not session.is_paused
            and not session.submission_in_flight
            and session.current_question is not None
        )

    def _rearm(self, session: CandidateSession) -> None:
        if self._active_id != session.id:
            return
        self._timer.cancel()
        if not self._should_tick(session):
            return
        if session.time_left <= 0:
            session.time_left = session.current_question.time_limit
        self._timer.arm(self.tick)

    # -- views ------------------------------------------------------------

    def view(self) -> Dict[str, Any]:
        session = self._require_active()
        question = session.current_question
        return {
            "session_id": session.id,
            "status": session.status,
            "question": question.model_dump() if question else None,
            "index": session.current_question_index,
            "total": QUESTION_COUNT,
            "time_left": session.time_left,
            "is_paused": session.is_paused,
            "notice": session.notice,
            "error": session.error,
            "score": session.score,
            "summary": session.summary,
        }

    async def drain(self) -> None:
        """Wait for spawned auto-submissions to finish."""

        while self._background:
            await asyncio.gather(*list(self._background))

    async def shutdown(self) -> None:
        self._timer.cancel()
        pending = [task for task in self._background if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # -- internals --------------------------------------------------------

    def _session(self, session_id: str) -> CandidateSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def _active(self) -> Optional[CandidateSession]:
        if self._active_id is None:
            return None
        return self._sessions.get(self._active_id)

    def _require_active(self) -> CandidateSession:
        session = self._active()
        if session is None:
            raise NoActiveSession("No active interview session")
        return session

    def _resolve(self, session_id: Optional[str]) -> CandidateSession:
        if session_id is None:
            return self._require_active()
        return self._session(session_id)

    def _heal(self, session: CandidateSession) -> None:
        """Clamp an index left pointing past the stored questions by stale data."""

        if not session.questions or session.current_question_index >= QUESTION_COUNT:
            return
        last = len(session.questions) - 1
        if session.current_question_index <= last:
            return
        original = session.current_question_index
        session.current_question_index = last
        session.time_left = session.time_left or session.questions[last].time_limit
        self._persist()
        log_event("index_clamped", session.id, index=last, reason=f"index {original} beyond {last}")

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _persist(self) -> None:
        self._store.save(list(self._sessions.values()))


__all__ = [
    "DEFAULT_EVALUATION_NOTICE",
    "DEFAULT_QUESTIONS_NOTICE",
    "DEFAULT_SUMMARY_NOTICE",
    "GENERATION_STUCK_ERROR",
    "InterviewOrchestrator",
    "NoActiveSession",
    "SessionNotFound",
    "questions_from_drafts",
    "resolve_role_context",
    "snapshot",
]
