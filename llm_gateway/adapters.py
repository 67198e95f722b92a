"""Provider adapters exposing one uniform interface over each AI backend.

Every adapter knows how to reach one provider (endpoint, auth scheme, response
schema) and turns the three interview operations into prompts for it. Adapters
return raw response text; interpreting it belongs to the caller.
"""
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from config import AppConfig, ProviderRoute

from . import prompts
from .gateway import (
    HttpClient,
    ProviderUnavailable,
    extract_chat_content,
    extract_gemini_content,
    post_json,
    preview,
)


logger = logging.getLogger(__name__)

_PLACEHOLDER_MARKERS = ("your_",)


class ProviderAdapter(ABC):
    """Base adapter: credential checks plus the three interview operations."""

    def __init__(self, route: ProviderRoute, *, client: Optional[HttpClient] = None) -> None:
        self.route = route
        self._client = client

    @property
    def name(self) -> str:
        return self.route.name

    @property
    def models(self) -> List[str]:
        return list(self.route.models)

    def credential(self) -> Optional[str]:
        """Return the configured key, or None when it is missing or malformed."""

        raw = os.getenv(self.route.api_key_env)
        if raw is None:
            return None
        key = raw.strip()
        if not key or key == "undefined":
            return None
        if any(marker in key.lower() for marker in _PLACEHOLDER_MARKERS):
            return None
        if self.route.key_prefix and not key.startswith(self.route.key_prefix):
            logger.warning("Credential for %s lacks expected prefix", self.name)
            return None
        if len(key) < self.route.min_key_length:
            logger.warning("Credential for %s is too short", self.name)
            return None
        return key

    def is_available(self) -> bool:
        return self.credential() is not None

    def _require_credential(self) -> str:
        key = self.credential()
        if key is None:
            raise ProviderUnavailable(f"No usable credential for provider '{self.name}'")
        return key

    @abstractmethod
    async def complete(
        self,
        model: str,
        messages: Sequence[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        timeout: float,
        json_mode: bool = False,
    ) -> str:
        """Send one chat request and return the response text."""

    async def generate_questions(self, model: str, role_context: str, plan: Sequence[str], *, timeout: float) -> str:
        if self.route.question_format == "numbered":
            messages = prompts.question_batch_numbered(role_context, plan)
        else:
            messages = prompts.question_batch_json(role_context, plan)
        return await self.complete(model, messages, temperature=0.7, max_tokens=800, timeout=timeout, json_mode=True)

    async def evaluate_answer(self, model: str, question: str, answer: str, role_context: str, *, timeout: float) -> str:
        messages = prompts.evaluation(question, answer, role_context)
        return await self.complete(model, messages, temperature=0.2, max_tokens=300, timeout=timeout, json_mode=True)

    async def generate_summary(
        self,
        model: str,
        transcript: str,
        role_context: str,
        final_score: int,
        candidate_name: str,
        *,
        timeout: float,
    ) -> str:
        messages = prompts.summary(transcript, role_context, final_score, candidate_name)
        return await self.complete(model, messages, temperature=0.4, max_tokens=600, timeout=timeout)


class ChatCompletionsAdapter(ProviderAdapter):
    """OpenAI-compatible `/chat/completions` backends with bearer auth."""

    async def complete(
        self,
        model: str,
        messages: Sequence[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        timeout: float,
        json_mode: bool = False,
    ) -> str:
        key = self._require_credential()
        payload: Dict[str, Any] = {
            "model": model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode and self.route.response_format:
            payload["response_format"] = {"type": self.route.response_format}
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {key}"}
        headers.update(self.route.extra_headers)
        logger.info("LLM request send provider=%s model=%s preview=%s", self.name, model, _first_user_line(messages))
        data = await post_json(
            f"{self.route.base_url}{self.route.endpoint}",
            payload,
            headers=headers,
            timeout=timeout,
            client=self._client,
        )
        return extract_chat_content(data)


class GeminiAdapter(ProviderAdapter):
    """Google `generateContent` backend; the key travels as a query parameter."""

    async def complete(
        self,
        model: str,
        messages: Sequence[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        timeout: float,
        json_mode: bool = False,
    ) -> str:
        key = self._require_credential()
        text = "\n\n".join(message["content"] for message in messages if message.get("content"))
        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        headers = {"Content-Type": "application/json"}
        headers.update(self.route.extra_headers)
        endpoint = self.route.endpoint.format(model=model)
        logger.info("LLM request send provider=%s model=%s preview=%s", self.name, model, _first_user_line(messages))
        data = await post_json(
            f"{self.route.base_url}{endpoint}",
            payload,
            headers=headers,
            params={"key": key},
            timeout=timeout,
            client=self._client,
        )
        return extract_gemini_content(data)


def _first_user_line(messages: Sequence[Dict[str, str]]) -> str:
    for message in messages:
        if message.get("role") == "user":
            return preview(message.get("content", ""))
    return ""


_ADAPTERS = {
    "chat_completions": ChatCompletionsAdapter,
    "gemini": GeminiAdapter,
}


def build_adapter(route: ProviderRoute, *, client: Optional[HttpClient] = None) -> ProviderAdapter:
    return _ADAPTERS[route.kind](route, client=client)


def build_adapters(cfg: AppConfig, *, client: Optional[HttpClient] = None) -> List[ProviderAdapter]:
    return [build_adapter(route, client=client) for route in cfg.providers]
