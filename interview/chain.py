"""Ordered provider fallback for the three interview operations."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from config import AppConfig, settings
from llm_gateway import HttpClient, ProviderAdapter, build_adapters

from .models import DIFFICULTY_PLAN, Evaluation, Question, QuestionDraft
from .parsing import parse_evaluation, parse_question_batch, parse_summary

logger = logging.getLogger(__name__)

T = TypeVar("T")

Candidate = Tuple[ProviderAdapter, str]


class FallbackChain:
    """Try each (provider, model) pair in priority order until one succeeds.

    Individual failures (timeouts, HTTP errors, malformed payloads) are logged
    and never leave this class. Exhaustion is reported as ``None``; so is a
    chain with no usable credential, in which case no request is made.
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        *,
        generation_timeout: Optional[float] = None,
        evaluation_timeout: Optional[float] = None,
        summary_timeout: Optional[float] = None,
    ) -> None:
        self._adapters = list(adapters)
        self._generation_timeout = generation_timeout
        self._evaluation_timeout = evaluation_timeout
        self._summary_timeout = summary_timeout

    @classmethod
    def from_config(cls, cfg: AppConfig, *, client: Optional[HttpClient] = None) -> "FallbackChain":
        return cls(build_adapters(cfg, client=client))

    def candidates(self) -> List[Candidate]:
        return [(adapter, model) for adapter in self._adapters if adapter.is_available() for model in adapter.models]

    def is_configured(self) -> bool:
        return any(adapter.is_available() for adapter in self._adapters)

    @property
    def generation_budget(self) -> float:
        """Time allowed for one whole question batch, across every candidate."""

        return self._timeout("generation")

    async def generate_question_set(
        self, role_context: str, plan: Sequence[str] = DIFFICULTY_PLAN
    ) -> Optional[List[QuestionDraft]]:
        def accept(raw: str) -> Optional[List[QuestionDraft]]:
            drafts = parse_question_batch(raw)
            if len(drafts) != len(plan):
                logger.warning("Question batch rejected: expected %d items, got %d", len(plan), len(drafts))
                return None
            return drafts

        return await self._run(
            "generate_questions",
            lambda adapter, model: adapter.generate_questions(model, role_context, plan, timeout=self._timeout("generation")),
            accept,
            self._timeout("generation"),
        )

    async def evaluate(self, question: Question, answer: str, role_context: str) -> Optional[Evaluation]:
        return await self._run(
            "evaluate_answer",
            lambda adapter, model: adapter.evaluate_answer(
                model, question.text, answer, role_context, timeout=self._timeout("evaluation")
            ),
            parse_evaluation,
            self._timeout("evaluation"),
        )

    async def summarize(
        self, transcript: str, role_context: str, final_score: int, candidate_name: str = ""
    ) -> Optional[str]:
        return await self._run(
            "generate_summary",
            lambda adapter, model: adapter.generate_summary(
                model, transcript, role_context, final_score, candidate_name, timeout=self._timeout("summary")
            ),
            parse_summary,
            self._timeout("summary"),
        )

    def _timeout(self, operation: str) -> float:
        if operation == "generation":
            return self._generation_timeout or settings.GENERATION_TIMEOUT_S
        if operation == "evaluation":
            return self._evaluation_timeout or settings.EVALUATION_TIMEOUT_S
        return self._summary_timeout or settings.SUMMARY_TIMEOUT_S

    async def _run(
        self,
        operation: str,
        call: Callable[[ProviderAdapter, str], Awaitable[str]],
        accept: Callable[[str], Optional[T]],
        timeout: float,
    ) -> Optional[T]:
        candidates = self.candidates()
        if not candidates:
            logger.info("No provider credential configured; skipping %s", operation)
            return None
        for adapter, model in candidates:
            logger.info("Chain attempt op=%s provider=%s model=%s", operation, adapter.name, model)
            try:
                raw = await asyncio.wait_for(call(adapter, model), timeout)
            except asyncio.TimeoutError:
                logger.warning("Chain timeout op=%s provider=%s model=%s after %.1fs", operation, adapter.name, model, timeout)
                continue
            except Exception as exc:  # noqa: BLE001
                logger.warning("Chain failure op=%s provider=%s model=%s error=%s", operation, adapter.name, model, exc)
                continue
            result = accept(raw) if isinstance(raw, str) and raw.strip() else None
            if result is None:
                logger.warning("Chain malformed payload op=%s provider=%s model=%s", operation, adapter.name, model)
                continue
            logger.info("Chain success op=%s provider=%s model=%s", operation, adapter.name, model)
            return result
        logger.error("Chain exhausted op=%s after %d candidates", operation, len(candidates))
        return None


__all__ = ["FallbackChain"]
