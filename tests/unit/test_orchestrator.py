import asyncio

import pytest

import interview.orchestrator as orchestrator_module
from interview.chain import FallbackChain
from interview.models import NO_ANSWER_TEXT, Answer, CandidateSession
from interview.orchestrator import (
    DEFAULT_EVALUATION_NOTICE,
    DEFAULT_QUESTIONS_NOTICE,
    DEFAULT_SUMMARY_NOTICE,
    GENERATION_STUCK_ERROR,
    InterviewOrchestrator,
    NoActiveSession,
    SessionNotFound,
    resolve_role_context,
)
from interview.question_bank import default_question_set
from storage import MemorySessionStore, SqliteSessionStore


def _orchestrator(adapters=(), store=None, generation_timeout=None, **kwargs):
    kwargs.setdefault("tick_seconds", 3600)
    chain = FallbackChain(list(adapters), generation_timeout=generation_timeout)
    return InterviewOrchestrator(store or MemorySessionStore(), chain, **kwargs)


@pytest.fixture
def events(monkeypatch):
    recorded = []
    monkeypatch.setattr(orchestrator_module, "log_event", lambda kind, session_id, **fields: recorded.append(kind))
    return recorded


def test_role_context_resolution():
    assert resolve_role_context("Data Engineer", ["Python", " SQL ", ""]) == "Python, SQL"
    assert resolve_role_context("Data Engineer", []) == "Data Engineer"
    assert resolve_role_context(None, None) == "Full Stack Developer (React/Node.js)"


def test_missing_credentials_use_question_bank(events):
    async def scenario():
        orch = _orchestrator()
        created = orch.create_candidate(name="Ada", email="ada@example.com")
        await orch.activate(created.id)
        session = orch.get(created.id)
        await orch.shutdown()
        return session

    session = asyncio.run(scenario())
    assert session.status == "in_progress"
    assert session.questions == default_question_set()
    assert session.current_question_index == 0
    assert session.time_left == 20
    assert session.notice == DEFAULT_QUESTIONS_NOTICE
    assert "questions_ready" in events


def test_provider_questions_take_difficulty_from_position(scripted_adapter, provider_replies):
    adapter = scripted_adapter(questions=provider_replies["questions"])

    async def scenario():
        orch = _orchestrator([adapter])
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert [q.time_limit for q in session.questions] == [20, 20, 60, 60, 120, 120]
    assert session.questions[0].text == "What does the event loop do in Node.js?"
    assert session.notice is None


def test_concurrent_triggers_share_one_generation(scripted_adapter, provider_replies):
    adapter = scripted_adapter(questions=provider_replies["questions"], delay=0.05)

    async def scenario():
        orch = _orchestrator([adapter])
        created = orch.create_candidate(name="Ada")
        await asyncio.gather(orch.activate(created.id), orch.generate(created.id), orch.sync())
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert adapter.count("questions") == 1
    assert len(session.questions) == 6


def test_stuck_generation_releases_guard_and_accepts_late_reply(scripted_adapter, provider_replies, events):
    async def scenario():
        gate = asyncio.Event()
        adapter = scripted_adapter(questions=provider_replies["questions"], gate=gate)
        orch = _orchestrator([adapter], guard_timeout=0.05)
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        stuck = orch.get(created.id)

        gate.set()
        await asyncio.sleep(0.05)
        late = orch.get(created.id)

        await orch.generate(created.id)
        await orch.shutdown()
        return stuck, late, adapter

    stuck, late, adapter = asyncio.run(scenario())
    assert stuck.error == GENERATION_STUCK_ERROR
    assert stuck.questions == []
    assert "generation_stuck" in events
    assert len(late.questions) == 6
    assert late.status == "in_progress"
    assert late.error is None
    assert adapter.count("questions") == 1


def test_hanging_provider_falls_back_to_bank_before_guard(scripted_adapter, provider_replies, events):
    async def scenario():
        adapter = scripted_adapter(models=("m1", "m2", "m3"), questions=provider_replies["questions"], gate=asyncio.Event())
        orch = _orchestrator([adapter], generation_timeout=0.1, guard_timeout=0.25)
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert session.status == "in_progress"
    assert session.questions == default_question_set()
    assert session.notice == DEFAULT_QUESTIONS_NOTICE
    assert session.error is None
    assert "generation_stuck" not in events


def test_reset_during_evaluation_keeps_new_countdown(scripted_adapter, provider_replies):
    async def scenario():
        gate = asyncio.Event()
        adapter = scripted_adapter(**provider_replies, gate={"evaluation": gate})
        orch = _orchestrator([adapter])
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)

        pending = asyncio.ensure_future(orch.submit_answer("old answer"))
        await asyncio.sleep(0.01)
        orch.request_reset(created.id)
        await orch.activate(created.id)
        armed_after_reset = orch.timer.running

        gate.set()
        await pending
        after_discard = orch.get(created.id)
        running = orch.timer.running
        assert await orch.tick() is True

        await orch.submit_answer("new answer")
        answered = orch.get(created.id)
        await orch.shutdown()
        return armed_after_reset, after_discard, running, answered

    armed_after_reset, after_discard, running, answered = asyncio.run(scenario())
    assert armed_after_reset is True
    assert after_discard.answers == []
    assert after_discard.current_question_index == 0
    assert running is True
    assert [a.text for a in answered.answers] == ["new answer"]
    assert answered.current_question_index == 1


def test_time_expiry_auto_submits_sentinel():
    async def scenario():
        orch = _orchestrator()
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        for _ in range(19):
            assert await orch.tick() is True
        assert orch.get(created.id).time_left == 1
        assert await orch.tick() is False
        await orch.drain()
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert session.answers[0].text == NO_ANSWER_TEXT
    assert session.answers[0].score == 3
    assert session.current_question_index == 1
    assert session.time_left == 20


def test_full_run_without_providers_completes_with_defaults():
    async def scenario():
        orch = _orchestrator()
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        for i in range(6):
            orch.update_draft(f"answer {i}")
            await orch.submit_answer()
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert session.status == "completed"
    assert len(session.answers) == 6
    assert all(a.score == 3 for a in session.answers)
    assert session.score == 30
    assert "Interview Summary for Ada" in session.summary
    for notice in (DEFAULT_QUESTIONS_NOTICE, DEFAULT_EVALUATION_NOTICE, DEFAULT_SUMMARY_NOTICE):
        assert notice in session.notice
    assert session.completed_at is not None


def test_full_run_with_provider(scripted_adapter, provider_replies):
    adapter = scripted_adapter(**provider_replies)

    async def scenario():
        orch = _orchestrator([adapter])
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        for i in range(6):
            await orch.submit_answer(f"answer {i}")
        await orch.finalize(created.id)
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert session.score == 80
    assert session.summary == provider_replies["summary"]
    assert session.notice is None
    assert adapter.count("summary") == 1


def test_concurrent_submissions_record_one_answer(scripted_adapter, provider_replies):
    adapter = scripted_adapter(**provider_replies, delay=0.05)

    async def scenario():
        orch = _orchestrator([adapter])
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        await asyncio.gather(orch.submit_answer("first"), orch.submit_answer("second"))
        await orch.shutdown()
        return orch.get(created.id)

    session = asyncio.run(scenario())
    assert [a.text for a in session.answers] == ["first"]
    assert session.current_question_index == 1


def test_aggregation_runs_once(scripted_adapter, provider_replies):
    adapter = scripted_adapter(summary=provider_replies["summary"], delay=0.05)
    questions = default_question_set()
    session = CandidateSession(
        name="Ada",
        status="in_progress",
        questions=questions,
        answers=[Answer(question_id=q.id, text="a", score=6, feedback="ok") for q in questions],
        current_question_index=6,
    )

    async def scenario():
        orch = _orchestrator([adapter], store=MemorySessionStore([session]))
        await asyncio.gather(orch.activate(session.id), orch.finalize(session.id), orch.finalize(session.id))
        await orch.finalize(session.id)
        await orch.shutdown()
        return orch.get(session.id)

    done = asyncio.run(scenario())
    assert adapter.count("summary") == 1
    assert done.status == "completed"
    assert done.score == 60


def test_pause_freezes_countdown_and_resume_rearms():
    async def scenario():
        orch = _orchestrator()
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        await orch.tick()
        paused = orch.pause()
        assert orch.timer.running is False
        assert await orch.tick() is False
        frozen = orch.get(created.id)
        resumed = orch.resume()
        running = orch.timer.running
        await orch.shutdown()
        return paused, frozen, resumed, running

    paused, frozen, resumed, running = asyncio.run(scenario())
    assert paused.is_paused is True
    assert frozen.time_left == 19
    assert resumed.is_paused is False
    assert resumed.time_left == 19
    assert running is True


def test_switching_sessions_moves_the_timer():
    async def scenario():
        orch = _orchestrator()
        first = orch.create_candidate(name="Ada")
        second = orch.create_candidate(name="Grace")
        await orch.activate(first.id)
        await orch.tick()
        await orch.activate(second.id)
        await orch.tick()
        await orch.tick()
        await orch.shutdown()
        return orch.get(first.id), orch.get(second.id)

    first, second = asyncio.run(scenario())
    assert first.time_left == 19
    assert second.time_left == 18


def test_reset_clears_progress_and_regenerates(events):
    async def scenario():
        orch = _orchestrator()
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        await orch.submit_answer("closure over scope")
        reset = orch.request_reset(created.id)
        await orch.activate(created.id)
        again = orch.get(created.id)
        await orch.shutdown()
        return reset, again

    reset, again = asyncio.run(scenario())
    assert reset.status == "not_started"
    assert reset.questions == [] and reset.answers == []
    assert reset.score is None and reset.notice is None
    assert again.status == "in_progress"
    assert again.answers == []
    assert "session_reset" in events


def test_stale_index_is_clamped(events):
    questions = default_question_set()[:3]
    session = CandidateSession(name="Ada", status="in_progress", questions=questions, current_question_index=5)

    async def scenario():
        orch = _orchestrator(store=MemorySessionStore([session]))
        await orch.activate(session.id)
        await orch.shutdown()
        return orch.get(session.id)

    healed = asyncio.run(scenario())
    assert healed.current_question_index == 2
    assert healed.time_left == questions[2].time_limit
    assert "index_clamped" in events


def test_progress_survives_restart(tmp_db):
    async def first_run():
        orch = _orchestrator(store=SqliteSessionStore(tmp_db))
        created = orch.create_candidate(name="Ada")
        await orch.activate(created.id)
        await orch.submit_answer("my answer")
        await orch.shutdown()
        return created.id

    async def second_run(session_id):
        orch = _orchestrator(store=SqliteSessionStore(tmp_db))
        await orch.activate(session_id)
        await orch.shutdown()
        return orch.get(session_id)

    session_id = asyncio.run(first_run())
    session = asyncio.run(second_run(session_id))
    assert session.current_question_index == 1
    assert session.answers[0].text == "my answer"
    assert session.time_left == 20


def test_dashboard_ordering_and_search():
    sessions = [
        CandidateSession(name="Low", email="low@x.io", status="completed", score=40, created_at="2024-01-01T00:00:00+00:00"),
        CandidateSession(name="Old", email="old@x.io", created_at="2024-01-02T00:00:00+00:00"),
        CandidateSession(name="High", email="high@x.io", status="completed", score=90, created_at="2024-01-03T00:00:00+00:00"),
        CandidateSession(name="New", email="new@y.io", created_at="2024-01-04T00:00:00+00:00"),
    ]
    orch = _orchestrator(store=MemorySessionStore(sessions))
    assert [s.name for s in orch.list_sessions()] == ["High", "Low", "New", "Old"]
    assert [s.name for s in orch.list_sessions("y.io")] == ["New"]


def test_unknown_session_and_missing_active():
    orch = _orchestrator()
    with pytest.raises(SessionNotFound):
        orch.get("nope")
    with pytest.raises(NoActiveSession):
        orch.view()
