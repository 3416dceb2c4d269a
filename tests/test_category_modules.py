"""Tests for the category modules and the registry."""

import asyncio

import pytest

from salamat.categories import (
    ChronicDiseaseManagementModule,
    DiagnosticResultInterpretationModule,
    InformationSeekingModule,
    MedicationQueriesModule,
    PreventiveCareWellnessModule,
    SymptomReportingModule,
    build_default_registry,
)
from salamat.categories.base import (
    MEDICAL_DISCLAIMER,
    CategoryRegistry,
    add_medical_disclaimer,
    format_medical_response,
    keyword_validation,
)
from salamat.categories.information_seeking import (
    EDUCATIONAL_DISCLAIMER,
    analyze_information_request,
)
from salamat.categories.medication_queries import (
    POISON_CENTER_PHONE,
    analyze_medication_query,
    check_medication_safety,
)
from salamat.exceptions import UnsupportedActionError
from salamat.models.intent import MedicalIntent
from salamat.models.messages import NextAction
from salamat.models.session import CategorySession, MessageRole


def _start(module):
    return asyncio.run(module.initialize_session("cat-1"))


def _turn(module, session, message):
    return asyncio.run(module.process_message(session, message, "test-key"))


class TestSharedHelpers:
    def test_disclaimer_is_appended(self):
        assert add_medical_disclaimer("پاسخ") == f"پاسخ\n\n{MEDICAL_DISCLAIMER}"

    def test_sentences_get_their_own_paragraph(self):
        assert format_medical_response("جمله اول. جمله دوم\n\n\n\nپایان") == (
            "جمله اول.\n\nجمله دوم\n\nپایان"
        )

    def test_keyword_validation(self):
        result = keyword_validation("سردرد و تب دارم", ("درد", "تب", "سرفه"), 0.3)
        assert result.is_valid
        assert abs(result.confidence - 0.6) < 1e-9
        assert result.suggestions is None

    def test_keyword_validation_is_capped(self):
        keywords = ("الف", "ب", "پ", "ت")
        result = keyword_validation("الف ب پ ت", keywords, 0.3)
        assert result.confidence == 0.9

    def test_no_match_returns_suggestions(self):
        result = keyword_validation("سلام", ("درد",), 0.3, ("علائم را بگویید",))
        assert not result.is_valid
        assert result.confidence == 0.0
        assert result.suggestions == ["علائم را بگویید"]


class TestMedicationQueries:
    """Pharmacist-style answers."""

    def test_analysis(self):
        analysis = analyze_medication_query("عوارض استامینوفن و ایبوپروفن چیست")
        assert analysis["type"] == "side_effects"
        assert analysis["medications"] == ["استامینوفن", "ایبوپروفن"]
        assert analysis["complexity"] == "complex"

    def test_safety_check(self):
        assert check_medication_safety("قرص را با الکل بخورم؟")["requires_urgent_attention"]
        assert not check_medication_safety("دوز استامینوفن چقدر است")["requires_urgent_attention"]

    def test_high_risk_question_skips_the_model(self, provider):
        module = MedicationQueriesModule(provider)
        session = _start(module)

        response = _turn(module, session, "اگر دوز اضافی بخورم چه می‌شود؟")

        assert response.next_action == NextAction.ESCALATE
        assert response.special_features.visual_elements.type == "warning"
        phones = [a.phone for a in response.special_features.quick_actions]
        assert POISON_CENTER_PHONE in phones
        assert provider.requested == []
        assert session.metadata["requires_pharmacist_consult"] is True
        assert session.metadata["safety_warnings_given"] == ["دوز اضافی"]

    def test_answer_is_formatted_and_committed(self, provider):
        module = MedicationQueriesModule(provider)
        session = _start(module)
        provider.queue("medication", "استامینوفن معمولاً خوب تحمل می‌شود. در صورت مشکل به پزشک بگویید.")

        response = _turn(module, session, "عوارض استامینوفن چیست")

        assert response.message.endswith(MEDICAL_DISCLAIMER)
        assert "تحمل می‌شود.\n\nدر صورت" in response.message
        assert [a.action for a in response.special_features.quick_actions] == [
            "manage_side_effects",
            "contact_doctor",
        ]
        assert provider.requested == [("medication", "test-key")]
        assert [m.role for m in session.conversation] == [
            MessageRole.SYSTEM,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert session.metadata["medications_discussed"] == ["استامینوفن"]
        assert session.metadata["message_count"] == 1

    def test_upstream_failure_is_not_committed(self, provider):
        module = MedicationQueriesModule(provider)
        session = _start(module)
        provider.fail("medication", ConnectionError("down"))

        response = _turn(module, session, "دوز متفورمین چقدر است")

        assert response.metadata["error"] == "upstream_unavailable"
        assert response.special_features.quick_actions[0].action == "consult_pharmacist"
        assert len(session.conversation) == 1

    def test_poison_center_action(self, provider):
        module = MedicationQueriesModule(provider)
        session = _start(module)
        response = asyncio.run(module.handle_special_action(session, "poison_center"))
        assert POISON_CENTER_PHONE in response.message

    def test_validation_weight(self, provider):
        result = MedicationQueriesModule(provider).validate_message("دوز این قرص")
        assert abs(result.confidence - 0.5) < 1e-9


class TestInformationSeeking:
    def test_topic_analysis(self):
        analysis = analyze_information_request("بیماری دیابت چیست")
        assert analysis["type"] == "disease_information"
        assert analysis["main_topic"] == "دیابت"
        assert analyze_information_request("سلام")["type"] == "general"

    def test_answer_has_educational_disclaimer(self, provider):
        module = InformationSeekingModule(provider)
        session = _start(module)
        provider.queue("information", "دیابت بیماری مزمن قند خون است.")

        response = _turn(module, session, "بیماری دیابت چیست")

        assert response.message.endswith(EDUCATIONAL_DISCLAIMER)
        assert response.metadata["main_topic"] == "دیابت"
        assert "symptoms_info" in [a.action for a in response.special_features.quick_actions]
        assert session.metadata["topics_discussed"] == ["دیابت"]
        assert provider.requested == [("information", "test-key")]


class TestPlaceholders:
    @pytest.mark.parametrize(
        "module_class",
        [
            ChronicDiseaseManagementModule,
            DiagnosticResultInterpretationModule,
            PreventiveCareWellnessModule,
        ],
    )
    def test_fixed_reply_without_model_call(self, provider, module_class):
        module = module_class(provider)
        session = _start(module)

        response = _turn(module, session, "سوال من")

        assert response.message == module.reply
        assert response.next_action == NextAction.CONTINUE
        assert response.metadata["placeholder"] is True
        assert provider.requested == []
        assert session.conversation[-1].content == module.reply
        assert session.conversation[0].content == module.get_system_prompt()

    def test_diagnostic_reply_carries_a_warning(self, provider):
        module = DiagnosticResultInterpretationModule(provider)
        response = _turn(module, _start(module), "جواب آزمایش خون")
        assert response.special_features.visual_elements.type == "warning"

    def test_placeholders_have_no_special_actions(self, provider):
        module = ChronicDiseaseManagementModule(provider)
        with pytest.raises(UnsupportedActionError):
            asyncio.run(module.handle_special_action(_start(module), "call_ambulance"))


class TestRegistry:
    def test_default_registry_covers_every_intent(self, provider):
        registry = build_default_registry(provider)
        assert len(registry) == len(MedicalIntent)
        for intent in MedicalIntent:
            assert registry.is_registered(intent)
            assert registry.get(intent).intent == intent
            assert registry.get(intent).get_category_info().name

    def test_register_rejects_mismatched_intent(self, provider):
        registry = CategoryRegistry()
        with pytest.raises(ValueError):
            registry.register(MedicalIntent.MEDICATION_QUERIES, SymptomReportingModule(provider))

    def test_get_all_returns_a_copy(self, provider):
        registry = CategoryRegistry()
        registry.register(MedicalIntent.SYMPTOM_REPORTING, SymptomReportingModule(provider))
        registry.get_all().clear()
        assert registry.is_registered(MedicalIntent.SYMPTOM_REPORTING)
        assert registry.get(MedicalIntent.MEDICATION_QUERIES) is None

    def test_general_sessions_use_the_general_kind(self, provider):
        session = _start(InformationSeekingModule(provider))
        assert isinstance(session, CategorySession)
        assert session.metadata["intent"] == MedicalIntent.INFORMATION_SEEKING.value
