"""Static presentation templates for the five triage categories.

The template supplies header, buttons, section order and disclaimer; the model
only fills in section content.
"""

from typing import Dict, Union

from salamat.exceptions import TemplateNotFoundError
from salamat.models.triage import (
    ActionButton,
    TemplateSection,
    TriageCategory,
    TriageTemplate,
)

_ASSESSMENT = TemplateSection(key="comprehensive_assessment", title="ارزیابی کامل", icon="🏥")


CLASSIFICATION_TEMPLATES: Dict[TriageCategory, TriageTemplate] = {
    TriageCategory.EMERGENCY: TriageTemplate(
        category=TriageCategory.EMERGENCY,
        header="طبقه‌بندی تریاژ: فوریت (قرمز)",
        css_class="emergency",
        action_buttons=(
            ActionButton(
                kind="call",
                label="تماس با آمبولانس",
                action="call_ambulance",
                phone="115",
                style="emergency-call-btn",
            ),
            ActionButton(kind="action", label="یافتن نزدیک‌ترین بیمارستان", action="find_hospital"),
        ),
        sections=(
            _ASSESSMENT,
            TemplateSection(
                key="immediate_actions",
                title="اقدامات فوری - همین الان انجام دهید",
                icon="🚨",
                css_class="immediate-actions-section",
            ),
            TemplateSection(key="emergency_instructions", title="دستورالعمل اضطراری", icon="📞"),
        ),
        disclaimer="این ارزیابی تشخیص پزشکی نیست. فوراً با اورژانس تماس بگیرید.",
    ),
    TriageCategory.URGENT: TriageTemplate(
        category=TriageCategory.URGENT,
        header="طبقه‌بندی تریاژ: عاجل (نارنجی)",
        css_class="urgent",
        primary_action="ظرف چند ساعت به اورژانس مراجعه کنید",
        action_buttons=(
            ActionButton(kind="action", label="یافتن پزشک", action="find_doctor"),
            ActionButton(kind="info", label="نکات مراقبتی", action="care_tips"),
        ),
        sections=(
            _ASSESSMENT,
            TemplateSection(key="next_steps", title="مراحل بعدی", icon="➡️"),
            TemplateSection(key="timeframe_details", title="زمان‌بندی", icon="⏰"),
            TemplateSection(key="preparation_guidance", title="آماده‌سازی برای مراجعه", icon="🎒"),
        ),
        disclaimer="این ارزیابی تشخیص پزشکی نیست. برای مراقبت فوری با متخصصان بهداشت مشورت کنید.",
    ),
    TriageCategory.SEMI_URGENT: TriageTemplate(
        category=TriageCategory.SEMI_URGENT,
        header="طبقه‌بندی تریاژ: نیمه عاجل (زرد)",
        css_class="semi-urgent",
        primary_action="ظرف ۲۴-۴۸ ساعت به پزشک مراجعه کنید",
        sections=(
            _ASSESSMENT,
            TemplateSection(key="scheduling_advice", title="راهنمای زمان‌بندی", icon="📅"),
            TemplateSection(key="monitoring_instructions", title="علائم قابل نظارت", icon="👀"),
            TemplateSection(key="interim_management", title="مراقبت موقت", icon="🏠"),
        ),
        disclaimer="این ارزیابی تشخیص پزشکی نیست. برای مراقبت مناسب با متخصصان بهداشت مشورت کنید.",
    ),
    TriageCategory.NON_URGENT: TriageTemplate(
        category=TriageCategory.NON_URGENT,
        header="طبقه‌بندی تریاژ: غیرعاجل (سبز)",
        css_class="non-urgent",
        primary_action="مراقبت پزشکی معمولی را برنامه‌ریزی کنید",
        sections=(
            _ASSESSMENT,
            TemplateSection(key="scheduling_recommendations", title="گزینه‌های زمان‌بندی", icon="📋"),
            TemplateSection(key="self_management", title="خودمراقبتی موقت", icon="💊"),
            TemplateSection(key="escalation_guidelines", title="معیارهای تشدید", icon="⚠️"),
        ),
        disclaimer="این ارزیابی تشخیص پزشکی نیست. برای مراقبت مناسب با متخصصان بهداشت مشورت کنید.",
    ),
    TriageCategory.SELF_CARE: TriageTemplate(
        category=TriageCategory.SELF_CARE,
        header="طبقه‌بندی تریاژ: خودمراقبتی (آبی)",
        css_class="self-care",
        primary_action="احتمالاً قابل مدیریت در خانه است",
        sections=(
            _ASSESSMENT,
            TemplateSection(key="home_treatment", title="درمان‌های خانگی", icon="🏡"),
            TemplateSection(key="monitoring_guidelines", title="برنامه نظارت", icon="📊"),
            TemplateSection(key="warning_indicators", title="علائم هشداردهنده", icon="🚨"),
            TemplateSection(key="prevention_advice", title="نکات پیشگیری", icon="🛡️"),
        ),
        disclaimer="این ارزیابی تشخیص پزشکی نیست. در صورت تشدید علائم با متخصصان بهداشت مشورت کنید.",
    ),
}


def get_triage_template(category: Union[TriageCategory, str]) -> TriageTemplate:
    """
    Look up the presentation template for a triage category.

    Raises:
        TemplateNotFoundError: if the category has no template
    """
    try:
        key = TriageCategory(category)
    except ValueError as e:
        raise TemplateNotFoundError(str(category)) from e

    template = CLASSIFICATION_TEMPLATES.get(key)
    if template is None:
        raise TemplateNotFoundError(key.value)
    return template
