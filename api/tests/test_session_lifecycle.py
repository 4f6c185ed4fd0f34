import asyncio
import json
import re

from funnel.archetypes import get_archetype
from funnel.services.local_cache import ANSWERS_KEY, SESSION_KEY, STEP_KEY, USER_INFO_KEY, JsonFileCache, MemoryCache
from funnel.services.session_lifecycle import (
    PHASE_RESULTS,
    PHASE_SURVEY,
    PHASE_USER_INFO,
    PHASE_WELCOME,
    SessionManager,
    is_local_session_id,
)
from funnel.services.state_machine import SessionState

from fakes import SUMMARY, FakeStore


def _calls(store, name):
    return [c for c in store.calls if c[0] == name]


def test_initialize_creates_remote_session_and_caches_token():
    async def scenario():
        store = FakeStore()
        cache = MemoryCache()
        manager = SessionManager(store, cache, referrer_id="ref-1")
        session = await manager.initialize()
        assert session.session_id == "srv_1"
        assert cache.get(SESSION_KEY) == "srv_1"
        assert manager.state == SessionState.ACTIVE
        assert manager.resume_phase() == PHASE_WELCOME
        assert store.calls == [("create", "ref-1")]

    asyncio.run(scenario())


def test_concurrent_initialize_runs_once():
    async def scenario():
        store = FakeStore()
        manager = SessionManager(store, MemoryCache())
        first, second = await asyncio.gather(manager.initialize(), manager.initialize())
        assert first is second
        assert len(_calls(store, "create")) == 1
        await manager.initialize()
        assert len(_calls(store, "create")) == 1

    asyncio.run(scenario())


def test_offline_start_uses_local_token():
    async def scenario():
        manager = SessionManager(FakeStore(offline=True), MemoryCache())
        session = await manager.initialize()
        assert re.fullmatch(r"local_\d+_[0-9a-z]{8}", session.session_id)
        assert is_local_session_id(session.session_id)
        assert manager.state == SessionState.ACTIVE

    asyncio.run(scenario())


def test_restore_from_cache_when_remote_unreachable_never_claims_completion():
    async def scenario():
        cache = MemoryCache(
            {
                SESSION_KEY: "srv_9",
                ANSWERS_KEY: {"employment_status": "contracted"},
                STEP_KEY: 3,
                USER_INFO_KEY: {"name": "Ada", "email": None},
            }
        )
        manager = SessionManager(FakeStore(offline=True), cache)
        session = await manager.initialize()
        assert session.session_id == "srv_9"
        assert session.answers == {"employment_status": "contracted"}
        assert session.current_step == 3
        assert session.name == "Ada"
        assert session.is_completed is False
        assert manager.resume_phase() == PHASE_SURVEY

    asyncio.run(scenario())


def test_restore_from_cache_when_remote_record_missing():
    async def scenario():
        cache = MemoryCache({SESSION_KEY: "gone", ANSWERS_KEY: {"motivation": "purpose_impact"}, STEP_KEY: 4})
        store = FakeStore()
        manager = SessionManager(store, cache)
        session = await manager.initialize()
        assert session.session_id == "gone"
        assert session.answers == {"motivation": "purpose_impact"}
        assert _calls(store, "create") == []

    asyncio.run(scenario())


def test_restore_from_remote_hydrates_completed_session():
    async def scenario():
        store = FakeStore(
            {
                "srv_1": {
                    "session_id": "srv_1",
                    "name": "Grace",
                    "answers": {"considering_business": "operating_growing"},
                    "current_step": 14,
                    "is_completed": True,
                    "archetype_result": "emerging_founder",
                    "promo_code": "NF-AAAAA-BBBBB",
                    "ai_summary": json.dumps(SUMMARY),
                    "certificate_url": "https://res.cloudinary.com/demo/c/sample",
                }
            }
        )
        manager = SessionManager(store, MemoryCache({SESSION_KEY: "srv_1"}))
        session = await manager.initialize()
        assert session.is_completed is True
        assert session.ai_summary == SUMMARY
        assert session.promo_code == "NF-AAAAA-BBBBB"
        assert manager.state == SessionState.COMPLETED
        assert manager.resume_phase() == PHASE_RESULTS

    asyncio.run(scenario())


def test_save_progress_writes_cache_first_and_tolerates_remote_failure():
    async def scenario():
        store = FakeStore()
        cache = MemoryCache()
        manager = SessionManager(store, cache)
        await manager.initialize()
        store.offline = True
        manager.save_progress({"employment_status": "contracted"}, 1)
        manager.save_user_info("Ada", "ada@example.com")
        assert cache.get(ANSWERS_KEY) == {"employment_status": "contracted"}
        assert cache.get(STEP_KEY) == 1
        assert cache.get(USER_INFO_KEY) == {"name": "Ada", "email": "ada@example.com"}
        await manager.drain()
        assert ("answers", "srv_1", 1) in store.calls

    asyncio.run(scenario())


def test_complete_survey_once_per_session():
    async def scenario():
        store = FakeStore()
        manager = SessionManager(store, MemoryCache())
        await manager.initialize()
        archetype = get_archetype("pivoting_professional")
        code = await manager.complete_survey(archetype)
        again = await manager.complete_survey(archetype)
        assert code and code == again
        assert len(_calls(store, "complete")) == 1
        assert manager.state == SessionState.COMPLETED
        assert manager.session.archetype_result == "pivoting_professional"

    asyncio.run(scenario())


def test_complete_survey_offline_completes_locally_without_promo():
    async def scenario():
        store = FakeStore()
        manager = SessionManager(store, MemoryCache())
        await manager.initialize()
        store.offline = True
        code = await manager.complete_survey(get_archetype("curious_explorer"))
        assert code is None
        assert manager.session.is_completed is True
        assert manager.session.archetype_result == "curious_explorer"
        assert manager.state == SessionState.COMPLETED

    asyncio.run(scenario())


def test_generate_results_is_idempotent():
    async def scenario():
        store = FakeStore()
        manager = SessionManager(store, MemoryCache())
        await manager.initialize()
        assert await manager.generate_results() is None
        await manager.complete_survey(get_archetype("emerging_founder"))
        first = await manager.generate_results()
        second = await manager.generate_results()
        assert first == second
        assert first["ai_summary"] == SUMMARY
        assert len(_calls(store, "results")) == 1

    asyncio.run(scenario())


def test_retake_wipes_everything_and_marks_next_completion_as_retake():
    async def scenario():
        store = FakeStore()
        cache = MemoryCache()
        manager = SessionManager(store, cache)
        await manager.initialize()
        manager.save_progress({"employment_status": "contracted"}, 1)
        await manager.complete_survey(get_archetype("curious_explorer"))
        manager.retake()
        assert manager.session is None
        assert manager.state == SessionState.UNINITIALIZED
        assert cache.snapshot() == {}

        session = await manager.initialize()
        assert session.session_id == "srv_2"
        assert session.answers == {}
        await manager.complete_survey(get_archetype("curious_explorer"))
        assert _calls(store, "complete")[-1] == ("complete", "srv_2", "curious_explorer", True)
        await manager.drain()

    asyncio.run(scenario())


def test_enrichment_response_after_retake_is_discarded():
    async def scenario():
        store = FakeStore()
        manager = SessionManager(store, MemoryCache())
        await manager.initialize()
        await manager.complete_survey(get_archetype("emerging_founder"))
        store.results_gate = asyncio.Event()
        pending = asyncio.ensure_future(manager.generate_results())
        await asyncio.sleep(0)
        manager.retake()
        store.results_gate.set()
        assert await pending is None
        assert manager.session is None

    asyncio.run(scenario())


def test_json_file_cache_survives_reload(tmp_path):
    path = tmp_path / "state" / "cache.json"
    cache = JsonFileCache(path)
    cache.set(SESSION_KEY, "srv_1")
    cache.set(STEP_KEY, 2)
    cache.remove(STEP_KEY)
    reloaded = JsonFileCache(path)
    assert reloaded.get(SESSION_KEY) == "srv_1"
    assert reloaded.get(STEP_KEY) is None


def test_json_file_cache_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileCache(path).snapshot() == {}


def test_resume_phase_needs_both_answers_and_step():
    async def scenario():
        unnamed = SessionManager(FakeStore(offline=True), MemoryCache({SESSION_KEY: "s1", ANSWERS_KEY: {"motivation": "purpose_impact"}, STEP_KEY: 2}))
        await unnamed.initialize()
        assert unnamed.resume_phase() == PHASE_USER_INFO

        answers_only = SessionManager(FakeStore(offline=True), MemoryCache({SESSION_KEY: "s2", ANSWERS_KEY: {"motivation": "purpose_impact"}}))
        await answers_only.initialize()
        assert answers_only.resume_phase() == PHASE_WELCOME

        step_only = SessionManager(FakeStore(offline=True), MemoryCache({SESSION_KEY: "s3", STEP_KEY: 3}))
        await step_only.initialize()
        assert step_only.resume_phase() == PHASE_WELCOME

    asyncio.run(scenario())


def test_retake_during_initialization_resets_state():
    async def scenario():
        store = FakeStore()
        manager = SessionManager(store, MemoryCache())
        pending = asyncio.ensure_future(manager.initialize())
        for _ in range(10):
            if manager.state == SessionState.RESTORING:
                break
            await asyncio.sleep(0)
        assert manager.state == SessionState.RESTORING
        manager.retake()
        assert manager.state == SessionState.UNINITIALIZED
        assert await pending is None
        assert manager.state == SessionState.UNINITIALIZED

    asyncio.run(scenario())
