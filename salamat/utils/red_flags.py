"""Red flag detection for emergency symptoms in Persian messages."""

import re
from typing import List, Tuple


# Emergency symptom patterns by category
RED_FLAG_PATTERNS = {
    "cardiac_emergency": [
        r"درد قفسه سینه",
        r"فشار.*(سینه|قفسه)",
        r"سینه.*(سنگین|تیر می‌کشه|فشار)",
        r"درد.*(دست چپ|فک|شانه).*سینه",
        r"حمله قلبی",
        r"قلبم (می‌ایستد|وایساد)",
    ],
    "respiratory_emergency": [
        r"نفس (نمی‌آید|نمیاد|نمی‌کشم)",
        r"نمی‌تونم نفس",
        r"تنگی نفس (شدید|در حال استراحت)",
        r"خفگی",
        r"لب.*(کبود|آبی)",
    ],
    "neurological_emergency": [
        r"سردرد شدید ناگهانی",
        r"بدترین سردرد",
        r"از هوش رفتن",
        r"بی ?هوش",
        r"(صورت|دهان).*کج",
        r"(بی‌حسی|ضعف).*(یک طرف|دست|پا)",
        r"(گفتار|صحبت).*(نامفهوم|سخت)",
        r"تشنج",
        r"سکته",
    ],
    "psychiatric_emergency": [
        r"خودکشی",
        r"می‌خوام (بمیرم|خودمو بکشم)",
        r"به خودم آسیب",
    ],
    "trauma_emergency": [
        r"خونریزی (شدید|زیاد)",
        r"خونریزی.*(بند نمیاد|قطع نمی‌شه)",
        r"تصادف",
        r"سوختگی شدید",
        r"شکستگی.*(بیرون زده|باز)",
    ],
    "abdominal_emergency": [
        r"درد شکم شدید",
        r"درد شدید شکم",
        r"استفراغ (خونی|خون)",
        r"خون.*(مدفوع|استفراغ)",
        r"مدفوع سیاه",
    ],
    "allergic_emergency": [
        r"واکنش آلرژیک شدید",
        r"آنافیلاکسی",
        r"(زبان|گلو|صورت).*(ورم|تورم)",
        r"گلوم.*بسته",
    ],
    "poisoning_emergency": [
        r"مسمومیت",
        r"(اوردوز|مصرف بیش از حد)",
    ],
}

# Keyword list shown to the symptom interview as emergency triggers
EMERGENCY_KEYWORDS = [
    "درد قفسه سینه",
    "تنگی نفس",
    "خونریزی",
    "از هوش رفتن",
    "بیهوشی",
    "تشنج",
    "درد شدید قلب",
    "حمله قلبی",
    "سکته",
    "تصادف",
    "سوختگی شدید",
    "مسمومیت",
    "خودکشی",
    "درد شکم شدید",
    "تب بالا",
    "سردرد شدید ناگهانی",
]


def detect_red_flags(text: str) -> Tuple[bool, List[str]]:
    """
    Detect emergency red flags in user input.

    Args:
        text: User message text

    Returns:
        Tuple of (has_red_flags, list_of_detected_categories)
    """
    text_lower = text.lower()
    detected_flags = []

    for category, patterns in RED_FLAG_PATTERNS.items():
        for pattern in patterns:
            if re.search(pattern, text_lower):
                detected_flags.append(category)
                break  # Only add category once

    return len(detected_flags) > 0, detected_flags


def contains_emergency_keywords(text: str) -> bool:
    """True when any emergency keyword appears in the text."""
    text_lower = text.lower()
    return any(keyword in text_lower for keyword in EMERGENCY_KEYWORDS)


def get_red_flag_description(category: str) -> str:
    """Get Persian description of a red flag category."""
    descriptions = {
        "cardiac_emergency": "احتمال اورژانس قلبی (درد یا فشار قفسه سینه)",
        "respiratory_emergency": "مشکل شدید تنفسی",
        "neurological_emergency": "احتمال سکته یا اختلال عصبی حاد",
        "psychiatric_emergency": "بحران روانی نیازمند کمک فوری",
        "trauma_emergency": "آسیب شدید یا خونریزی کنترل‌نشده",
        "abdominal_emergency": "اورژانس شدید شکمی",
        "allergic_emergency": "واکنش آلرژیک شدید",
        "poisoning_emergency": "احتمال مسمومیت",
    }
    return descriptions.get(category, category)
