"""Tests for the unified chat dispatcher."""

import asyncio
import gc

import pytest

from conftest import question
from salamat.categories import build_default_registry
from salamat.exceptions import SessionNotFoundError, UnsupportedActionError
from salamat.models.intent import ClassificationMethod, MedicalIntent
from salamat.models.messages import NextAction
from salamat.models.session import CategorySession, TriageSession
from salamat.services.chat_service import (
    EMERGENCY_FALLBACK_HINT,
    FALLBACK_MESSAGE,
    UnifiedChatService,
)
from salamat.services.session_store import InMemorySessionStore


@pytest.fixture
def service(provider):
    return UnifiedChatService(
        build_default_registry(provider),
        InMemorySessionStore(),
        api_key="test-key",
        model_provider=provider,
    )


def _run(coro):
    return asyncio.run(coro)


class TestChat:
    """Routing messages to category modules."""

    def test_create_session(self, service):
        session = _run(service.create_session())
        assert session.session_id.startswith("unified_")
        assert _run(service.store.get(session.session_id)) == session

    def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            _run(service.chat("unified_missing", "سردرد دارم"))

    def test_symptom_message_starts_triage(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", question("از کی شروع شده؟", ["امروز", "دیروز"]))

        response = _run(service.chat(session_id, "سردرد دارم"))

        assert response.category == MedicalIntent.SYMPTOM_REPORTING
        assert response.message == "از کی شروع شده؟"
        assert response.options == ["امروز", "دیروز"]
        assert response.category_switch is True
        assert "بررسی علائم" in response.category_notification.message
        assert response.classification.method == ClassificationMethod.RULE_BASED
        assert response.metadata["total_messages"] == 1
        # confident rule match, so no classifier call
        assert provider.call_count("classifier") == 0

        stored = _run(service.store.get(session_id))
        assert stored.current_category == MedicalIntent.SYMPTOM_REPORTING
        assert isinstance(stored.category_session, TriageSession)
        assert stored.category_session.questions_asked == 1
        assert len(stored.classifications) == 1
        assert len(stored.conversation_history) == 1

    def test_follow_up_stays_in_the_same_interview(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", question("از کی؟"), question("تب دارید؟"))

        _run(service.chat(session_id, "سردرد دارم"))
        response = _run(service.chat(session_id, "از دیروز", MedicalIntent.SYMPTOM_REPORTING))

        assert response.category_switch is False
        assert response.category_notification is None
        assert response.classification is None
        stored = _run(service.store.get(session_id))
        assert stored.category_session.questions_asked == 2
        assert len(stored.classifications) == 1

    def test_forced_category_switch(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", question("از کی؟"))
        _run(service.chat(session_id, "سردرد دارم"))

        response = _run(
            service.chat(session_id, "برای سلامتی چه کنم", MedicalIntent.PREVENTIVE_CARE_WELLNESS)
        )

        assert response.category == MedicalIntent.PREVENTIVE_CARE_WELLNESS
        assert response.category_switch is True
        assert response.category_notification is None
        stored = _run(service.store.get(session_id))
        assert isinstance(stored.category_session, CategorySession)
        assert stored.category_session.intent == MedicalIntent.PREVENTIVE_CARE_WELLNESS
        assert len(stored.conversation_history) == 2

    def test_completed_interview_restarts(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", {"type": "classification", "category": "SELF_CARE"})
        provider.queue("triage_final", {"comprehensive_assessment": "استراحت"})
        provider.queue("triage", question("علامت جدید از کی؟"))

        first = _run(service.chat(session_id, "سردرد دارم"))
        second = _run(service.chat(session_id, "سردرد دارم"))

        assert first.is_complete is True
        assert second.message == "علامت جدید از کی؟"
        stored = _run(service.store.get(session_id))
        assert not stored.category_session.is_complete
        assert stored.category_session.questions_asked == 1

    def test_unexpected_failure_returns_fallback(self, service, monkeypatch):
        session_id = _run(service.create_session()).session_id
        module = service.registry.get(MedicalIntent.CHRONIC_DISEASE_MANAGEMENT)

        async def explode(session, message, api_key):
            raise RuntimeError("boom")

        monkeypatch.setattr(module, "process_message", explode)

        response = _run(
            service.chat(session_id, "دیابت دارم", MedicalIntent.CHRONIC_DISEASE_MANAGEMENT)
        )

        assert response.message == FALLBACK_MESSAGE
        assert response.error == "Processing failed"
        assert response.fallback_response == EMERGENCY_FALLBACK_HINT
        assert response.next_action == NextAction.CONTINUE
        stored = _run(service.store.get(session_id))
        assert stored.conversation_history == []
        assert stored.current_category is None


class TestSessionLocks:
    """Per-session serialization of turns."""

    def test_concurrent_turns_are_both_recorded(self, service, monkeypatch):
        session_id = _run(service.create_session()).session_id
        module = service.registry.get(MedicalIntent.PREVENTIVE_CARE_WELLNESS)
        process = module.process_message

        async def slow_process(session, message, api_key):
            await asyncio.sleep(0)
            return await process(session, message, api_key)

        monkeypatch.setattr(module, "process_message", slow_process)

        async def two_turns():
            await asyncio.gather(
                service.chat(session_id, "سوال اول", MedicalIntent.PREVENTIVE_CARE_WELLNESS),
                service.chat(session_id, "سوال دوم", MedicalIntent.PREVENTIVE_CARE_WELLNESS),
            )

        _run(two_turns())

        stored = _run(service.store.get(session_id))
        assert [turn.message for turn in stored.conversation_history] == ["سوال اول", "سوال دوم"]

    def test_locks_do_not_outlive_turns(self, service):
        for i in range(100):
            try:
                _run(service.chat(f"unified_bogus_{i}", "سردرد دارم"))
            except SessionNotFoundError:
                pass
        gc.collect()

        assert len(service._locks) == 0


class TestSpecialActions:
    def test_action_in_active_category(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", question("از کی؟"))
        _run(service.chat(session_id, "سردرد دارم"))

        response = _run(service.special_action(session_id, "find_hospital"))

        assert response.next_action == NextAction.ESCALATE
        stored = _run(service.store.get(session_id))
        assert stored.category_session.metadata["special_actions_used"] == ["find_hospital"]
        assert stored.conversation_history[-1].message == "Special action: find_hospital"

    def test_undeclared_action(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", question("از کی؟"))
        _run(service.chat(session_id, "سردرد دارم"))

        with pytest.raises(UnsupportedActionError):
            _run(service.special_action(session_id, "poison_center"))

    def test_no_active_category(self, service):
        session_id = _run(service.create_session()).session_id
        with pytest.raises(UnsupportedActionError):
            _run(service.special_action(session_id, "call_ambulance"))

    def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            _run(service.special_action("unified_missing", "call_ambulance"))


class TestInfoAndDelete:
    def test_global_info(self, service):
        _run(service.create_session())
        info = _run(service.info())
        assert info["total_sessions"] == 1
        assert len(info["available_categories"]) == 6
        assert info["system_status"] == {"llm_configured": True, "registered_modules": 6}

    def test_session_info(self, service, provider):
        session_id = _run(service.create_session()).session_id
        provider.queue("triage", question("از کی؟"))
        _run(service.chat(session_id, "سردرد دارم"))

        info = _run(service.info(session_id))
        assert info["exists"] is True
        assert info["current_category"] == MedicalIntent.SYMPTOM_REPORTING
        assert info["message_count"] == 1
        assert info["classifications"][0]["classification"]["intent"] == "symptom_reporting"

        missing = _run(service.info("unified_missing"))
        assert missing["exists"] is False
        assert missing["message_count"] == 0

    def test_delete(self, service):
        session_id = _run(service.create_session()).session_id
        assert _run(service.delete_session(session_id)) is True
        assert _run(service.delete_session(session_id)) is False
        with pytest.raises(SessionNotFoundError):
            _run(service.chat(session_id, "سردرد دارم"))
