"""Educational answers to general medical questions."""

import logging
from typing import Any, Dict, List

from salamat.categories.base import (
    CategoryModule,
    add_medical_disclaimer,
    format_medical_response,
)
from salamat.exceptions import UpstreamUnavailableError
from salamat.models.intent import MedicalIntent
from salamat.models.messages import (
    CategoryInfo,
    CategoryResponse,
    NextAction,
    QuickAction,
    SpecialFeatures,
)
from salamat.models.session import BaseCategorySession

logger = logging.getLogger(__name__)

INFORMATION_SYSTEM_PROMPT = """شما یک پزشک آموزش‌دهنده هستید که اطلاعات پزشکی آموزشی به زبان فارسی ارائه می‌دهید.

وظایف شما:
- توضیح مفاهیم پزشکی به زبان ساده و قابل فهم
- ارائه اطلاعات علمی دقیق و به‌روز
- پاسخ به سوالات عمومی سلامت
- توضیح بیماری‌ها، علل و راه‌های درمان
- آموزش نکات بهداشتی و پیشگیری

اصول مهم:
- اطلاعات آموزشی ارائه دهید، نه تشخیص
- منابع معتبر و علمی استفاده کنید
- به زبان ساده و روان توضیح دهید
- مطالب را برای عموم مردم قابل فهم کنید
- همیشه به مشورت با پزشک تأکید کنید

ساختار پاسخ شما:
1. تعریف و توضیح مفهوم
2. علل و عوامل مؤثر
3. علائم و نشانه‌ها (در صورت نیاز)
4. راه‌های پیشگیری
5. زمان مراجعه به پزشک"""

EDUCATIONAL_DISCLAIMER = (
    "📚 این اطلاعات جنبه آموزشی دارد و جایگزین مشاوره پزشک نیست. "
    "برای تشخیص و درمان، حتماً با پزشک متخصص مشورت کنید."
)

KNOWN_DISEASES = ["دیابت", "فشار خون", "آسم", "آرتریت"]

# (topic type, trigger words, main topic label); first match wins
TOPIC_RULES = [
    ("disease_information", ("بیماری", "اختلال", "سندرم"), None),
    ("treatment_information", ("درمان", "علاج", "طریقه"), "روش‌های درمان"),
    ("prevention_information", ("پیشگیری", "جلوگیری", "مراقبت"), "پیشگیری"),
    ("anatomy_physiology", ("آناتومی", "بدن", "عضو"), "آناتومی و فیزیولوژی"),
]

FOLLOW_UP_SUGGESTIONS = ["سوال تکمیلی", "جزئیات بیشتر", "موضوع مرتبط"]

_QUICK_ACTIONS: Dict[str, List[QuickAction]] = {
    "disease_information": [
        QuickAction(label="🔍 علائم این بیماری", action="symptoms_info", type="info"),
        QuickAction(label="💊 روش‌های درمان", action="treatment_info", type="info"),
        QuickAction(label="🛡️ راه‌های پیشگیری", action="prevention_info", type="info"),
    ],
    "treatment_information": [
        QuickAction(label="⚕️ انواع درمان", action="treatment_types", type="info"),
        QuickAction(label="📊 موثرترین روش", action="best_treatment", type="info"),
    ],
    "prevention_information": [
        QuickAction(label="🍎 تغذیه سالم", action="nutrition_info", type="info"),
        QuickAction(label="🏃 ورزش مناسب", action="exercise_info", type="info"),
        QuickAction(label="🧠 سلامت روان", action="mental_health_info", type="info"),
    ],
}

ERROR_MESSAGE = (
    "متأسفانه خطایی رخ داده است. لطفاً سوال خود را دوباره مطرح کنید "
    "یا از منابع معتبر پزشکی استفاده نمایید."
)


def analyze_information_request(message: str) -> Dict[str, str]:
    """Work out which kind of medical topic a question is about."""
    normalized = message.lower()
    topic_type, main_topic = "general", "عمومی"

    for candidate, words, label in TOPIC_RULES:
        if any(word in normalized for word in words):
            topic_type = candidate
            if label is None:
                label = next((d for d in KNOWN_DISEASES if d in normalized), "عمومی")
            main_topic = label
            break

    complexity = "complex" if len(normalized.split()) > 15 else "simple"
    return {"type": topic_type, "main_topic": main_topic, "complexity": complexity}


class InformationSeekingModule(CategoryModule):
    """Single-turn educational explanations."""

    intent = MedicalIntent.INFORMATION_SEEKING
    system_prompt = INFORMATION_SYSTEM_PROMPT

    validation_keywords = (
        "چیست", "چی هست", "چگونه", "چطور", "چرا",
        "اطلاعات", "معلومات", "راجع به", "در مورد",
        "بگو", "توضیح", "تعریف", "یعنی چه",
    )
    validation_suggestions = (
        'سوال خود را با کلمات "چیست" یا "چگونه" مطرح کنید',
        'از عبارات "در مورد" یا "راجع به" استفاده کنید',
        "بپرسید که چه چیزی می‌خواهید بدانید",
    )

    def initial_metadata(self) -> Dict[str, Any]:
        return {
            "topic_type": "general",
            "topics_discussed": [],
            "educational_level": "basic",
        }

    async def process_message(
        self, session: BaseCategorySession, message: str, api_key: str
    ) -> CategoryResponse:
        analysis = analyze_information_request(message)
        session.metadata["topic_type"] = analysis["type"]

        conversation = self.provisional_conversation(session, message)
        try:
            content = await self.complete_conversation("information", conversation, api_key)
        except UpstreamUnavailableError as e:
            logger.error(f"Information answer failed: {e}")
            return CategoryResponse(
                message=ERROR_MESSAGE,
                next_action=NextAction.CONTINUE,
                special_features=SpecialFeatures(
                    follow_up_suggestions=["سوال جدید بپرسید", "اطلاعات تکمیلی", "منابع بیشتر"]
                ),
                metadata={"error": "upstream_unavailable"},
            )

        reply = add_medical_disclaimer(format_medical_response(content), EDUCATIONAL_DISCLAIMER)
        self.commit_turn(session, message, reply)
        session.metadata["topics_discussed"].append(analysis["main_topic"])

        return CategoryResponse(
            message=reply,
            next_action=NextAction.CONTINUE,
            special_features=SpecialFeatures(
                quick_actions=list(_QUICK_ACTIONS.get(analysis["type"], [])),
                follow_up_suggestions=list(FOLLOW_UP_SUGGESTIONS),
            ),
            metadata={"topic_type": analysis["type"], "main_topic": analysis["main_topic"]},
        )

    def get_category_info(self) -> CategoryInfo:
        return CategoryInfo(
            name="کسب اطلاعات پزشکی",
            description="ارائه اطلاعات آموزشی و علمی در زمینه پزشکی",
            features=[
                "توضیح بیماری‌ها",
                "روش‌های درمان",
                "نکات پیشگیری",
                "آموزش آناتومی",
                "اطلاعات سلامت عمومی",
            ],
            specializations=[
                "بیماری‌های شایع",
                "سلامت عمومی",
                "پیشگیری از بیماری",
                "آموزش پزشکی",
            ],
        )
