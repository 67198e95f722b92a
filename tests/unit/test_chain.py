import asyncio

from interview.chain import FallbackChain
from interview.question_bank import default_question_set
from llm_gateway import LlmGatewayError


QUESTION = default_question_set()[0]


def test_no_credentials_means_no_requests(scripted_adapter):
    adapter = scripted_adapter(available=False, evaluation='{"score": 5}')
    chain = FallbackChain([adapter])
    assert chain.is_configured() is False
    assert asyncio.run(chain.evaluate(QUESTION, "answer", "Backend")) is None
    assert adapter.calls == []


def test_failure_falls_through_in_priority_order(scripted_adapter):
    first = scripted_adapter("first", evaluation=LlmGatewayError("boom"))
    skipped = scripted_adapter("skipped", available=False, evaluation='{"score": 1}')
    second = scripted_adapter("second", evaluation='{"score": 9, "feedback": "ok"}')
    chain = FallbackChain([first, skipped, second])
    result = asyncio.run(chain.evaluate(QUESTION, "answer", "Backend"))
    assert result.score == 9
    assert first.calls == [("evaluation", "m1")]
    assert skipped.calls == []
    assert second.calls == [("evaluation", "m1")]


def test_malformed_payload_advances_to_next_model(scripted_adapter):
    adapter = scripted_adapter(
        models=("bad", "good"),
        evaluation=lambda model: "not gradeable" if model == "bad" else "Score: 4\nFeedback: thin",
    )
    result = asyncio.run(FallbackChain([adapter]).evaluate(QUESTION, "answer", "Backend"))
    assert result.score == 4
    assert [model for _, model in adapter.calls] == ["bad", "good"]


def test_timeout_advances(scripted_adapter):
    slow = scripted_adapter("slow", delay=1.0, summary="x" * 80)
    fast = scripted_adapter("fast", summary="y" * 80)
    chain = FallbackChain([slow, fast], summary_timeout=0.05)
    assert asyncio.run(chain.summarize("transcript", "Backend", 70)) == "y" * 80


def test_question_batch_requires_exact_count(scripted_adapter, provider_replies):
    short = scripted_adapter("short", questions='["Only one question here?"]')
    full = scripted_adapter("full", questions=provider_replies["questions"])
    drafts = asyncio.run(FallbackChain([short, full]).generate_question_set("Backend"))
    assert len(drafts) == 6
    assert short.count("questions") == 1


def test_exhaustion_returns_none(scripted_adapter):
    adapter = scripted_adapter(models=("a", "b"), summary="too short")
    assert asyncio.run(FallbackChain([adapter]).summarize("t", "Backend", 10)) is None
    assert len(adapter.calls) == 2
