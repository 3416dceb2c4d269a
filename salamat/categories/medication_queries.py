"""Medication questions answered in a pharmacist's voice."""

import logging
import re
from typing import Any, Dict, List, Sequence

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
    VisualElement,
)
from salamat.models.session import BaseCategorySession

logger = logging.getLogger(__name__)

POISON_CENTER_PHONE = "190"

MEDICATION_SYSTEM_PROMPT = """شما یک داروساز متخصص هستید که به زبان فارسی مشاوره دارویی ارائه می‌دهید.

تخصص‌های شما:
- راهنمایی در مورد مصرف دارو و دوز مناسب
- توضیح عوارض جانبی و راه‌های کنترل آن‌ها
- بررسی تداخلات دارویی
- زمان‌بندی مصرف داروها
- نگهداری و انبارداری دارو
- جایگزین‌های دارویی

قوانین مهم:
- هرگز دارو تجویز نکنید، فقط راهنمایی دهید
- همیشه به مشورت با پزشک تأکید کنید
- در مورد تداخلات خطرناک هشدار جدی دهید
- اطلاعات دقیق و قابل اعتماد ارائه دهید
- در مواقع ضروری، مراجعه فوری به پزشک را توصیه کنید

پاسخ شما باید شامل:
1. توضیح مستقیم سوال
2. نکات ایمنی مهم
3. توصیه به مشورت پزشک
4. راهنمایی‌های عملی"""

MEDICATION_PATTERNS = [
    re.compile(p)
    for p in (
        r"آسپرین|اسپیرین",
        r"آمپیسیلین",
        r"پنی‌سیلین",
        r"پاراستامول|استامینوفن",
        r"ایبوپروفن",
        r"دیکلوفناک",
        r"متفورمین",
        r"انسولین",
        r"لووتیروکسین",
        r"آتورواستاتین",
        r"امپرازول",
        r"سرترالین",
    )
]

# Ordered: the first matching group decides the query type
QUERY_TYPE_KEYWORDS = [
    ("side_effects", ("عوارض", "ضرر")),
    ("interactions", ("تداخل", "با هم")),
    ("dosage", ("دوز", "مقدار")),
    ("timing", ("زمان", "کی")),
]

HIGH_RISK_PATTERNS = [
    "چند برابر", "دوز اضافی", "بیشتر بخورم",
    "با الکل", "حاملگی", "شیردهی",
    "آلرژی شدید", "واکنش بد", "مسمومیت",
]

FOLLOW_UP_SUGGESTIONS = [
    "سوال دارویی دیگر",
    "بررسی تداخل دارویی",
    "عوارض جانبی دارو",
]

_QUICK_ACTIONS: Dict[str, List[QuickAction]] = {
    "interactions": [
        QuickAction(label="🔍 بررسی تداخل دارویی", action="check_interactions", type="action"),
        QuickAction(label="📋 لیست داروهای من", action="medication_list", type="info"),
    ],
    "side_effects": [
        QuickAction(label="⚕️ مدیریت عوارض", action="manage_side_effects", type="info"),
        QuickAction(label="📞 تماس با پزشک", action="contact_doctor", type="action"),
    ],
    "dosage": [
        QuickAction(label="⏰ یادآوری دارو", action="medication_reminder", type="action"),
        QuickAction(label="📊 محاسبه دوز", action="dose_calculator", type="action"),
    ],
}

ERROR_MESSAGE = (
    "متأسفانه خطایی رخ داده است. لطفاً سوال دارویی خود را دوباره مطرح کنید "
    "یا با داروساز مشورت نمایید."
)


def analyze_medication_query(message: str) -> Dict[str, Any]:
    """Classify a medication question and pull out the drug names it mentions."""
    normalized = message.lower()

    medications: List[str] = []
    for pattern in MEDICATION_PATTERNS:
        medications.extend(pattern.findall(message))

    query_type = "general"
    for candidate, keywords in QUERY_TYPE_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            query_type = candidate
            break

    complexity = "complex" if len(medications) > 1 or len(normalized.split()) > 10 else "simple"
    return {"type": query_type, "complexity": complexity, "medications": medications}


def check_medication_safety(message: str) -> Dict[str, Any]:
    """Flag overdose, alcohol, pregnancy and severe-reaction questions."""
    normalized = message.lower()
    matched = [pattern for pattern in HIGH_RISK_PATTERNS if pattern in normalized]

    return {
        "requires_urgent_attention": bool(matched),
        "warning_type": "high_risk" if matched else "normal",
        "matched": matched,
        "recommendation": "این موضوع نیاز به مشورت فوری با پزشک یا داروساز دارد."
        if matched
        else "مصرف دارو طبق دستور پزشک انجام دهید.",
    }


def _unique(items: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


class MedicationQueriesModule(CategoryModule):
    """Single-turn pharmacist answers with a safety short-circuit."""

    intent = MedicalIntent.MEDICATION_QUERIES
    system_prompt = MEDICATION_SYSTEM_PROMPT

    validation_keywords = (
        "دارو", "قرص", "کپسول", "شربت",
        "مسکن", "آنتی‌بیوتیک", "ویتامین", "مکمل",
        "دوز", "مصرف", "عوارض", "تداخل",
    )
    validation_weight = 0.25
    validation_suggestions = (
        "سوال خود را در مورد دارو مطرح کنید",
        "نام دارو و سوال مورد نظر را بیان کنید",
        "در مورد عوارض یا نحوه مصرف بپرسید",
    )

    special_actions = frozenset({"consult_pharmacist", "urgent_pharmacist", "poison_center"})

    def initial_metadata(self) -> Dict[str, Any]:
        return {
            "query_type": "general",
            "medications_discussed": [],
            "interactions_checked": False,
            "safety_warnings_given": [],
            "requires_pharmacist_consult": False,
        }

    async def process_message(
        self, session: BaseCategorySession, message: str, api_key: str
    ) -> CategoryResponse:
        analysis = analyze_medication_query(message)
        session.metadata["query_type"] = analysis["type"]

        safety = check_medication_safety(message)
        if safety["requires_urgent_attention"]:
            logger.warning(f"⚠️ High-risk medication question: {safety['matched']}")
            session.metadata["safety_warnings_given"].extend(safety["matched"])
            session.metadata["requires_pharmacist_consult"] = True
            return self._safety_warning_response(safety)

        conversation = self.provisional_conversation(session, message)
        try:
            content = await self.complete_conversation("medication", conversation, api_key)
        except UpstreamUnavailableError as e:
            logger.error(f"Medication answer failed: {e}")
            return CategoryResponse(
                message=ERROR_MESSAGE,
                next_action=NextAction.CONTINUE,
                special_features=SpecialFeatures(
                    quick_actions=[
                        QuickAction(
                            label="💊 مشاوره با داروساز",
                            action="consult_pharmacist",
                            type="action",
                        )
                    ]
                ),
                metadata={"error": "upstream_unavailable"},
            )

        reply = add_medical_disclaimer(format_medical_response(content))
        self.commit_turn(session, message, reply)

        session.metadata["medications_discussed"] = _unique(
            session.metadata["medications_discussed"] + analysis["medications"]
        )
        if "تداخل" in message:
            session.metadata["interactions_checked"] = True

        return CategoryResponse(
            message=reply,
            next_action=NextAction.CONTINUE,
            special_features=SpecialFeatures(
                quick_actions=list(_QUICK_ACTIONS.get(analysis["type"], [])),
                follow_up_suggestions=list(FOLLOW_UP_SUGGESTIONS),
            ),
            metadata={
                "query_type": analysis["type"],
                "complexity": analysis["complexity"],
                "medications": analysis["medications"],
            },
        )

    @staticmethod
    def _safety_warning_response(safety: Dict[str, Any]) -> CategoryResponse:
        return CategoryResponse(
            message=(
                "⚠️ **هشدار مهم دارویی**\n\n"
                f"{safety['recommendation']}\n\n"
                "**توصیه‌های فوری:**\n"
                "• فوراً با پزشک یا داروساز تماس بگیرید\n"
                "• از تغییر دوز یا قطع ناگهانی دارو خودداری کنید\n"
                "• در صورت بروز عوارض جانبی، مصرف را متوقف کنید"
            ),
            next_action=NextAction.ESCALATE,
            special_features=SpecialFeatures(
                visual_elements=VisualElement(type="warning", content="این موضوع نیاز به توجه فوری دارد"),
                quick_actions=[
                    QuickAction(
                        label="📞 تماس با مرکز سموم",
                        action="poison_center",
                        type="emergency",
                        phone=POISON_CENTER_PHONE,
                    ),
                    QuickAction(label="💊 مشاوره فوری داروساز", action="urgent_pharmacist", type="emergency"),
                ],
            ),
            metadata={"warning_type": safety["warning_type"], "matched": safety["matched"]},
        )

    def special_action_response(
        self, session: BaseCategorySession, action: str, data: Dict[str, Any]
    ) -> CategoryResponse:
        if action == "poison_center":
            return CategoryResponse(
                message=(
                    f"📞 **مرکز اطلاع‌رسانی داروها و سموم**: {POISON_CENTER_PHONE}\n\n"
                    "نام دارو، مقدار مصرف‌شده و زمان مصرف را آماده داشته باشید. "
                    "در صورت کاهش هوشیاری یا تنگی نفس فوراً با ۱۱۵ تماس بگیرید."
                ),
                next_action=NextAction.ESCALATE,
                metadata={"action": action},
            )

        if action == "urgent_pharmacist":
            return CategoryResponse(
                message=(
                    "💊 همین حالا با داروخانه شبانه‌روزی نزدیک خود تماس بگیرید و بسته دارو را "
                    "همراه داشته باشید. تا پیش از مشورت، داروی دیگری مصرف نکنید."
                ),
                next_action=NextAction.ESCALATE,
                metadata={"action": action},
            )

        if action == "consult_pharmacist":
            session.metadata["requires_pharmacist_consult"] = True
            return CategoryResponse(
                message=(
                    "💊 برای مشاوره، فهرست داروهای مصرفی، دوز و سابقه حساسیت خود را "
                    "به داروساز ارائه دهید."
                ),
                next_action=NextAction.CONTINUE,
                metadata={"action": action},
            )

        return super().special_action_response(session, action, data)

    def get_category_info(self) -> CategoryInfo:
        return CategoryInfo(
            name="سوالات دارویی",
            description="مشاوره تخصصی دارویی و راهنمایی مصرف دارو",
            features=[
                "راهنمایی دوز و مصرف",
                "بررسی تداخلات دارویی",
                "توضیح عوارض جانبی",
                "نکات ایمنی دارویی",
                "زمان‌بندی مصرف",
            ],
            specializations=[
                "داروهای بدون نسخه",
                "مکمل‌های غذایی",
                "تداخلات دارویی",
                "مدیریت عوارض جانبی",
            ],
        )
