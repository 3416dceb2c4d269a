"""Symptom reporting: the bounded triage interview.

One user turn runs the triage workflow (salamat.triage.graph). Session state is
only committed once the turn succeeds, so an upstream failure leaves the
session exactly as it was and the same message can be retried.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from salamat.categories.base import CategoryModule, detect_emergency_keywords
from salamat.config.llm_config import ModelProvider, get_chat_model
from salamat.config.settings import settings
from salamat.exceptions import TemplateNotFoundError, UpstreamUnavailableError
from salamat.models.intent import MedicalIntent
from salamat.models.messages import (
    CategoryInfo,
    CategoryResponse,
    EmergencyAssessment,
    NextAction,
    QuickAction,
    SpecialFeatures,
    VisualElement,
)
from salamat.models.session import (
    BaseCategorySession,
    ConversationMessage,
    MessageRole,
    TriageSession,
)
from salamat.models.triage import TriageCategory, TriageStage
from salamat.triage.formatting import (
    build_special_features,
    format_final_response,
    format_template_response,
)
from salamat.triage.graph import get_triage_graph
from salamat.triage.parsing import TriageClassificationReply, TriageQuestion, UnparsedReply
from salamat.triage.prompts import (
    ASSESSMENT_COMPLETED_MESSAGE,
    GENERIC_ERROR_MESSAGE,
    TRIAGE_SYSTEM_PROMPT,
    UPSTREAM_UNAVAILABLE_MESSAGE,
)
from salamat.utils.red_flags import (
    contains_emergency_keywords,
    detect_red_flags,
    get_red_flag_description,
)

logger = logging.getLogger(__name__)

EMERGENCY_PHONE = "115"

# previous user turns included in the emergency screen
EMERGENCY_CONTEXT_TURNS = 2


class SymptomReportingModule(CategoryModule):
    """Triage interview for users describing symptoms."""

    intent = MedicalIntent.SYMPTOM_REPORTING
    system_prompt = TRIAGE_SYSTEM_PROMPT

    validation_keywords = (
        "درد", "ناراحتی", "علامت", "احساس", "مشکل",
        "تب", "سردرد", "سرفه", "خستگی", "تهوع",
    )
    validation_weight = 0.3
    validation_suggestions = (
        "علائم خود را شرح دهید",
        "نوع درد یا ناراحتی را توضیح دهید",
        "زمان شروع مشکل را بیان کنید",
    )

    special_actions = frozenset(
        {"call_emergency", "call_ambulance", "find_hospital", "find_doctor", "care_tips"}
    )

    def __init__(
        self,
        model_provider: ModelProvider = get_chat_model,
        question_ceiling: Optional[int] = None,
        max_questions: Optional[int] = None,
    ):
        super().__init__(model_provider)
        self.question_ceiling = question_ceiling or settings.triage_question_ceiling
        self.max_questions = max_questions or settings.triage_max_questions

    def new_session(self, session_id: str) -> TriageSession:
        return TriageSession(
            session_id=session_id,
            intent=self.intent,
            max_questions=self.max_questions,
        )

    def initial_metadata(self) -> Dict[str, Any]:
        return {
            "triage_stage": TriageStage.ASSESSMENT.value,
            "symptoms_reported": [],
            "emergency_checked": False,
        }

    # ==========================================================================
    # TURN PROCESSING
    # ==========================================================================

    async def process_message(
        self, session: BaseCategorySession, message: str, api_key: str
    ) -> CategoryResponse:
        """
        Process one user answer in the triage interview.

        Args:
            session: TriageSession owned by the caller
            message: User message
            api_key: Provider key forwarded to the model calls

        Returns:
            CategoryResponse: a question (continue), a completed classification
            (complete/escalate), or a Persian error reply with nothing committed
        """
        if not isinstance(session, TriageSession):
            raise TypeError(f"Expected TriageSession, got {type(session).__name__}")

        if session.is_complete:
            logger.info(f"Rejecting message for completed triage session {session.session_id}")
            return CategoryResponse(
                message=ASSESSMENT_COMPLETED_MESSAGE,
                is_complete=True,
                next_action=NextAction.COMPLETE,
                metadata={
                    "stage": TriageStage.COMPLETED.value,
                    "classification": session.final_classification.value
                    if session.final_classification
                    else None,
                },
            )

        emergency = self.detect_emergency(message, session.conversation)
        provisional = self.provisional_conversation(session, message)
        questions_asked = session.questions_asked + 1

        try:
            result = await get_triage_graph().ainvoke(
                {
                    "session_id": session.session_id,
                    "conversation": provisional,
                    "questions_asked": questions_asked,
                    "question_ceiling": self.question_ceiling,
                },
                config={
                    "configurable": {
                        "api_key": api_key,
                        "model_provider": self.model_provider,
                    }
                },
            )
        except UpstreamUnavailableError as e:
            logger.error(f"Triage turn failed upstream for session {session.session_id}: {e}")
            return CategoryResponse(
                message=UPSTREAM_UNAVAILABLE_MESSAGE,
                next_action=NextAction.CONTINUE,
                metadata={**self._progress(session), "error": "upstream_unavailable"},
            )
        except TemplateNotFoundError as e:
            logger.error(f"Triage template missing for session {session.session_id}: {e}")
            return CategoryResponse(
                message=GENERIC_ERROR_MESSAGE,
                next_action=NextAction.CONTINUE,
                metadata={**self._progress(session), "error": "template_not_found"},
            )

        # Commit the turn
        self.commit_turn(session, message, result["raw_reply"])
        session.questions_asked = questions_asked
        session.metadata["symptoms_reported"].append(message)
        session.metadata["emergency_checked"] = True
        if emergency.is_emergency:
            session.metadata["emergency_detected"] = True

        reply = result["reply"]
        if isinstance(reply, TriageClassificationReply):
            response = self._complete(session, result)
        elif isinstance(reply, TriageQuestion):
            response = CategoryResponse(
                message=reply.message,
                options=list(reply.options),
                next_action=NextAction.CONTINUE,
                metadata=self._progress(session),
            )
        elif isinstance(reply, UnparsedReply):
            response = CategoryResponse(
                message=reply.raw,
                options=[],
                next_action=NextAction.CONTINUE,
                metadata=self._progress(session),
            )
        else:
            raise TypeError(f"Unhandled triage reply: {type(reply).__name__}")

        if emergency.is_emergency:
            self._attach_emergency_warning(response, emergency)

        return response

    def _progress(self, session: TriageSession) -> Dict[str, Any]:
        return {
            "stage": session.stage.value,
            "questions_asked": session.questions_asked,
            "max_questions": session.max_questions,
        }

    def _complete(self, session: TriageSession, result: Dict[str, Any]) -> CategoryResponse:
        """Close the session and render the final result."""
        template = result["template"]
        category = template.category
        session.mark_completed(category)

        final_content = result.get("final_content")
        if result.get("template_only") or final_content is None:
            message = format_template_response(template)
            final_content = None
        else:
            message = format_final_response(final_content, template)

        logger.info(
            f"✅ Triage completed for session {session.session_id}: {category.value}"
            + (" (forced)" if result.get("forced") else "")
        )

        return CategoryResponse(
            message=message,
            is_complete=True,
            next_action=NextAction.ESCALATE
            if category == TriageCategory.EMERGENCY
            else NextAction.COMPLETE,
            metadata={
                **self._progress(session),
                "classification": category.value,
                "final_response": final_content,
                "forced_classification": bool(result.get("forced")),
                "template_only": final_content is None,
            },
            special_features=build_special_features(template),
        )

    @staticmethod
    def _attach_emergency_warning(
        response: CategoryResponse, emergency: EmergencyAssessment
    ) -> None:
        features = response.special_features or SpecialFeatures()
        features.visual_elements = VisualElement(type="warning", content=emergency.recommendation)
        if not any(action.phone == EMERGENCY_PHONE for action in features.quick_actions):
            features.quick_actions.insert(
                0,
                QuickAction(
                    label="📞 تماس فوری با اورژانس (115)",
                    action="call_emergency",
                    type="emergency",
                    phone=EMERGENCY_PHONE,
                ),
            )
        response.special_features = features
        response.metadata["emergency_detected"] = True
        response.metadata["red_flags"] = list(emergency.red_flags)

    # ==========================================================================
    # EMERGENCY SCREEN
    # ==========================================================================

    def detect_emergency(
        self, message: str, conversation: Sequence[ConversationMessage]
    ) -> EmergencyAssessment:
        """
        Screen the message (and the last few user turns) for emergency signs.

        Levels: critical for red-flag patterns, high for emergency keywords,
        medium for general severity words, low otherwise.
        """
        recent = [m.content for m in conversation if m.role == MessageRole.USER]
        text = " ".join(recent[-EMERGENCY_CONTEXT_TURNS:] + [message])

        has_flags, flags = detect_red_flags(text)
        if has_flags:
            descriptions = "، ".join(get_red_flag_description(flag) for flag in flags)
            logger.warning(f"🚨 Red flags detected: {flags}")
            return EmergencyAssessment(
                is_emergency=True,
                level="critical",
                recommendation=f"علائم هشدار ({descriptions}) دیده شد. فوراً با اورژانس ۱۱۵ تماس بگیرید.",
                red_flags=flags,
            )

        if contains_emergency_keywords(message):
            return EmergencyAssessment(
                is_emergency=True,
                level="high",
                recommendation="علائم شما ممکن است جدی باشد. در صورت تشدید فوراً با ۱۱۵ تماس بگیرید.",
            )

        if detect_emergency_keywords(message):
            return EmergencyAssessment(
                is_emergency=False,
                level="medium",
                recommendation="علائم را به دقت زیر نظر داشته باشید و در صورت بدتر شدن به پزشک مراجعه کنید.",
            )

        return EmergencyAssessment(
            is_emergency=False,
            level="low",
            recommendation="ارزیابی را ادامه دهید.",
        )

    # ==========================================================================
    # SPECIAL ACTIONS
    # ==========================================================================

    def special_action_response(
        self, session: BaseCategorySession, action: str, data: Dict[str, Any]
    ) -> CategoryResponse:
        if action in ("call_emergency", "call_ambulance"):
            return CategoryResponse(
                message=(
                    f"🚨 **تماس فوری با اورژانس**: {EMERGENCY_PHONE}\n\n"
                    "آرام بمانید، نشانی دقیق و علائم بیمار را به اپراتور بگویید "
                    "و تا رسیدن آمبولانس تلفن را قطع نکنید."
                ),
                next_action=NextAction.ESCALATE,
                special_features=SpecialFeatures(
                    quick_actions=[
                        QuickAction(
                            label="🚨 تماس با آمبولانس",
                            action="call_ambulance",
                            type="emergency",
                            phone=EMERGENCY_PHONE,
                        )
                    ]
                ),
                metadata={"action": action},
            )

        if action == "find_hospital":
            return CategoryResponse(
                message=(
                    "🏥 برای یافتن نزدیک‌ترین بیمارستان دارای اورژانس، از نقشه تلفن همراه "
                    "خود استفاده کنید. اگر حال بیمار وخیم است، به جای مراجعه شخصی با "
                    f"{EMERGENCY_PHONE} تماس بگیرید."
                ),
                next_action=NextAction.ESCALATE,
                metadata={"action": action},
            )

        if action == "find_doctor":
            return CategoryResponse(
                message=(
                    "🩺 برای مراجعه به پزشک، نزدیک‌ترین درمانگاه یا مطب پزشک عمومی را انتخاب کنید "
                    "و خلاصه علائم، زمان شروع و داروهای مصرفی خود را همراه داشته باشید."
                ),
                next_action=NextAction.CONTINUE,
                metadata={"action": action},
            )

        if action == "care_tips":
            return CategoryResponse(
                message=(
                    "📋 **نکات مراقبتی**\n\n"
                    "• استراحت کافی داشته باشید و مایعات فراوان بنوشید\n"
                    "• علائم و تغییرات آن را یادداشت کنید\n"
                    "• بدون مشورت پزشک داروی جدید مصرف نکنید\n"
                    f"• در صورت بدتر شدن علائم فوراً با {EMERGENCY_PHONE} تماس بگیرید"
                ),
                next_action=NextAction.CONTINUE,
                metadata={"action": action},
            )

        return super().special_action_response(session, action, data)

    def get_category_info(self) -> CategoryInfo:
        return CategoryInfo(
            name="بررسی علائم",
            description="سیستم تریاژ پزشکی برای بررسی و طبقه‌بندی علائم",
            features=[
                "تشخیص اورژانس",
                "سوالات هدفمند",
                "طبقه‌بندی 5 سطحی",
                "راهنمایی تخصصی",
                "دکمه‌های عمل سریع",
            ],
            specializations=[
                "علائم عمومی",
                "درد و ناراحتی",
                "علائم اورژانسی",
                "مشکلات حاد",
            ],
        )
