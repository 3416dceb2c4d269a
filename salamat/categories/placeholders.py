"""Categories that answer with fixed guidance and never call the model."""

from typing import Any, Dict, List, Optional

from salamat.categories.base import CategoryModule
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


class PlaceholderModule(CategoryModule):
    """Fixed Persian reply; the turn is still recorded in the conversation."""

    reply: str
    follow_up_suggestions: List[str] = []
    quick_actions: List[QuickAction] = []
    warning: Optional[str] = None
    category_info: CategoryInfo

    async def process_message(
        self, session: BaseCategorySession, message: str, api_key: str
    ) -> CategoryResponse:
        self.commit_turn(session, message, self.reply)

        return CategoryResponse(
            message=self.reply,
            next_action=NextAction.CONTINUE,
            special_features=SpecialFeatures(
                quick_actions=list(self.quick_actions),
                visual_elements=VisualElement(type="warning", content=self.warning)
                if self.warning
                else None,
                follow_up_suggestions=list(self.follow_up_suggestions),
            ),
            metadata={"placeholder": True},
        )

    def get_category_info(self) -> CategoryInfo:
        return self.category_info


class ChronicDiseaseManagementModule(PlaceholderModule):
    intent = MedicalIntent.CHRONIC_DISEASE_MANAGEMENT
    system_prompt = """شما یک پزشک متخصص در مدیریت بیماری‌های مزمن هستید که به زبان فارسی مشاوره می‌دهید.

تخصص‌های شما:
- مدیریت دیابت و کنترل قند خون
- پیگیری فشار خون و بیماری‌های قلبی عروقی
- مراقبت از بیماری‌های کلیوی و کبدی مزمن
- درمان آسم و بیماری‌های ریوی مزمن
- مدیریت آرتریت و بیماری‌های التهابی

هدف: کمک به بیماران برای بهبود کیفیت زندگی و کنترل موثر بیماری مزمن"""

    validation_keywords = ("دیابت", "فشار خون", "مزمن", "کنترل", "پیگیری")
    validation_suggestions = ("بیماری مزمن خود را نام ببرید",)

    reply = "این بخش در حال توسعه است. لطفاً با پزشک متخصص خود مشورت کنید."
    follow_up_suggestions = ["بررسی علائم", "سوال دارویی", "اطلاعات پزشکی"]
    category_info = CategoryInfo(
        name="مدیریت بیماری‌های مزمن",
        description="راهنمایی تخصصی برای مدیریت بیماری‌های طولانی مدت",
        features=["مدیریت دیابت", "کنترل فشار خون", "پیگیری درمان", "سبک زندگی سالم"],
        specializations=["دیابت", "فشار خون", "بیماری‌های قلبی", "آسم"],
    )

    def initial_metadata(self) -> Dict[str, Any]:
        return {"disease_type": "unknown", "management_stage": "initial", "monitoring_needs": []}


class DiagnosticResultInterpretationModule(PlaceholderModule):
    intent = MedicalIntent.DIAGNOSTIC_RESULT_INTERPRETATION
    system_prompt = """شما یک پزشک مختص آزمایشگاه هستید که نتایج آزمایش‌ها را به زبان فارسی تفسیر می‌کنید.

اصول مهم:
- هرگز تشخیص قطعی ندهید، فقط توضیح دهید
- اهمیت مشورت با پزشک را تأکید کنید
- از اصطلاحات ساده و قابل فهم استفاده کنید"""

    validation_keywords = ("آزمایش", "نتیجه", "گزارش", "جواب", "تست", "نرمال", "غیرطبیعی")
    validation_suggestions = ("نتایج آزمایش خود را شرح دهید",)

    reply = "این بخش در حال توسعه است. برای تفسیر نتایج آزمایش، لطفاً با پزشک متخصص مشورت کنید."
    warning = "تفسیر نتایج آزمایش نیاز به بررسی پزشک دارد"
    follow_up_suggestions = ["بررسی علائم", "اطلاعات پزشکی", "سوال دارویی"]
    category_info = CategoryInfo(
        name="تفسیر نتایج آزمایش",
        description="کمک به درک نتایج آزمایش‌های پزشکی",
        features=["تفسیر آزمایش خون", "گزارش رادیولوژی", "نتایج بیوپسی", "تست‌های تخصصی"],
        specializations=["آزمایش‌های خون", "تصویربرداری", "پاتولوژی", "تست‌های عملکردی"],
    )

    def initial_metadata(self) -> Dict[str, Any]:
        return {"test_type": "unknown", "result_values": [], "requires_urgent_attention": False}


class PreventiveCareWellnessModule(PlaceholderModule):
    intent = MedicalIntent.PREVENTIVE_CARE_WELLNESS
    system_prompt = """شما یک مشاور سلامت هستید که در زمینه پیشگیری و تندرستی به زبان فارسی راهنمایی می‌دهید.

تخصص‌های شما:
- تغذیه سالم و رژیم‌های غذایی مناسب
- برنامه‌های ورزشی و فعالیت بدنی
- مدیریت استرس و سلامت روان
- عادات سالم و سبک زندگی
- پیشگیری از بیماری‌ها

هدف: ارتقای سطح سلامت عمومی و پیشگیری از بیماری‌ها"""

    validation_keywords = ("پیشگیری", "سلامت", "ورزش", "غذا", "رژیم", "سبک زندگی", "تندرستی")
    validation_suggestions = ("سوال خود را در مورد سلامت و پیشگیری مطرح کنید",)

    reply = (
        "این بخش در حال توسعه است. برای راهنمایی‌های پیشگیری و سلامت، "
        "با متخصص تغذیه یا پزشک مشورت کنید."
    )
    quick_actions = [
        QuickAction(label="🍎 نکات تغذیه سالم", action="nutrition_tips", type="info"),
        QuickAction(label="🏃 برنامه ورزشی", action="exercise_plan", type="action"),
    ]
    follow_up_suggestions = ["اطلاعات پزشکی", "بررسی علائم", "سوال دارویی"]
    category_info = CategoryInfo(
        name="پیشگیری و سلامت",
        description="راهنمایی برای حفظ سلامت و پیشگیری از بیماری‌ها",
        features=["تغذیه سالم", "برنامه ورزشی", "مدیریت استرس", "عادات سالم"],
        specializations=["تغذیه", "فعالیت بدنی", "سلامت روان", "پیشگیری"],
    )

    def initial_metadata(self) -> Dict[str, Any]:
        return {"wellness_goals": [], "current_habits": [], "risk_factors": []}
