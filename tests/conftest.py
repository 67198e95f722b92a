import asyncio
import json
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from config.providers import ProviderRoute, default_providers
from llm_gateway import LlmGatewayError, ProviderAdapter

PROVIDER_KEY_ENVS = [route.api_key_env for route in default_providers()]


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "PROVIDER_CONFIG_PATH", os.path.join(td.name, "missing.json"), raising=False)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def no_provider_keys(monkeypatch):
    for env in PROVIDER_KEY_ENVS:
        monkeypatch.delenv(env, raising=False)


class ScriptedAdapter(ProviderAdapter):
    """Provider double answering the three interview operations from canned replies."""

    def __init__(
        self,
        name="scripted",
        *,
        models=("m1",),
        questions=None,
        evaluation=None,
        summary=None,
        available=True,
        delay=0.0,
        gate=None,
    ):
        super().__init__(
            ProviderRoute(
                name=name,
                base_url="http://provider.test",
                endpoint="/chat/completions",
                models=list(models),
                api_key_env=f"{name.upper()}_TEST_KEY",
            )
        )
        self.replies = {"questions": questions, "evaluation": evaluation, "summary": summary}
        self._available = available
        self.delay = delay
        self.gate = gate
        self.calls = []

    def credential(self):
        return "test-credential" if self._available else None

    async def complete(self, model, messages, *, temperature, max_tokens, timeout, json_mode=False):
        raise NotImplementedError

    async def _reply(self, operation, model):
        self.calls.append((operation, model))
        gate = self.gate.get(operation) if isinstance(self.gate, dict) else self.gate
        if gate is not None:
            await gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies[operation]
        if callable(reply):
            reply = reply(model)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise LlmGatewayError(f"{self.name} has no {operation} reply")
        return reply

    async def generate_questions(self, model, role_context, plan, *, timeout):
        return await self._reply("questions", model)

    async def evaluate_answer(self, model, question, answer, role_context, *, timeout):
        return await self._reply("evaluation", model)

    async def generate_summary(self, model, transcript, role_context, final_score, candidate_name, *, timeout):
        return await self._reply("summary", model)

    def count(self, operation):
        return sum(1 for op, _ in self.calls if op == operation)


SIX_QUESTIONS_JSON = json.dumps(
    [
        {"question": "What does the event loop do in Node.js?", "difficulty": "Easy"},
        {"question": "How do you declare a constant in JavaScript?", "difficulty": "Easy"},
        {"question": "How would you structure error handling in an Express app?", "difficulty": "Medium"},
        {"question": "When would you reach for useMemo in a React component?", "difficulty": "Medium"},
        {"question": "Design a rate limiter for a public REST API.", "difficulty": "Hard"},
        {"question": "How would you shard a Postgres database behind a Node service?", "difficulty": "Hard"},
    ]
)

LONG_SUMMARY = (
    "The candidate showed solid grounding in JavaScript fundamentals and React, "
    "explained trade-offs clearly and would benefit from deeper systems design practice."
)


@pytest.fixture
def scripted_adapter():
    return ScriptedAdapter


@pytest.fixture
def provider_replies():
    return {
        "questions": SIX_QUESTIONS_JSON,
        "evaluation": json.dumps({"score": 8, "feedback": "Clear and correct."}),
        "summary": LONG_SUMMARY,
    }
