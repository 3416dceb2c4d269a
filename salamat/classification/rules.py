"""Rule-based intent scoring for Persian medical messages.

Each intent owns a keyword list (substring hits, weight 1) and a regex list
(weight 2). Table order is significant: ties go to the intent declared first.
"""

import logging
import re
from typing import Dict, List, Optional, Pattern

from salamat.models.intent import (
    ClassificationMethod,
    ClassificationResult,
    MedicalIntent,
)

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 1
PATTERN_WEIGHT = 2
MAX_RULE_CONFIDENCE = 0.95
MAX_SECONDARY_INTENTS = 2


INTENT_KEYWORDS: Dict[MedicalIntent, List[str]] = {
    MedicalIntent.SYMPTOM_REPORTING: [
        # symptoms
        "درد", "ناراحتی", "علامت", "علائم", "مشکل", "احساس",
        "تب", "سردرد", "دل درد", "معده درد", "شکم درد",
        "سرفه", "تنگی نفس", "خستگی", "ضعف", "گیجی",
        "تهوع", "استفراغ", "اسهال", "یبوست", "ورم",
        "خارش", "جوش", "بثورات", "خونریزی", "کبودی",
        # feeling expressions
        "احساس می‌کنم", "حس می‌کنم", "به نظرم", "مثل اینکه",
        # problem descriptions
        "مشکل دارم", "ناراحتم", "درد می‌کشم", "اذیتم می‌کنه",
    ],
    MedicalIntent.MEDICATION_QUERIES: [
        "دارو", "داروی", "قرص", "کپسول", "شربت", "آمپول", "تزریق",
        "آنتی بیوتیک", "مسکن", "ضد درد", "ویتامین", "مکمل",
        "انسولین", "فشار خون", "قلبی", "آرام بخش",
        # actions
        "بخورم", "استفاده کنم", "مصرف کنم", "تجویز", "نسخه",
        "عوارض", "تداخل", "خطرناک", "مضر", "مفید",
        # dosage
        "دوز", "مقدار", "چقدر", "کی", "زمان", "ساعت",
    ],
    MedicalIntent.INFORMATION_SEEKING: [
        "چیست", "چی هست", "یعنی چی", "یعنی چه", "چطور", "چگونه",
        "چرا", "علت", "دلیل", "معنی", "تعریف", "توضیح",
        "می‌خوام بدونم", "می‌خواهم بدانم", "اطلاع", "معلومات",
        "یاد بگیرم", "متوجه بشم", "بفهمم", "راجع به", "در مورد",
        "بیماری", "سندرم", "اختلال", "عارضه", "پیشگیری",
        "تشخیص", "درمان", "جراحی", "عمل", "روش",
    ],
    MedicalIntent.CHRONIC_DISEASE_MANAGEMENT: [
        "دیابت", "قند خون", "فشار خون", "هایپرتنشن",
        "آسم", "آرتریت", "روماتیسم", "قلبی", "عروقی",
        "کلیوی", "کبدی", "تیروئید", "مزمن", "طولانی مدت",
        "کنترل", "مدیریت", "مراقبت", "پیگیری", "نظارت",
        "رژیم", "ورزش", "سبک زندگی", "عادات", "روزانه",
        "قند", "انسولین", "تست", "اندازه گیری", "چک",
    ],
    MedicalIntent.DIAGNOSTIC_RESULT_INTERPRETATION: [
        "آزمایش", "تست", "نتیجه", "جواب", "گزارش",
        "خون", "ادرار", "مدفوع", "رادیولوژی", "سونوگرافی",
        "ام آر آی", "سی تی", "ایکو", "الکتروکاردیوگرام",
        "بیوپسی", "کشت", "پاتولوژی", "رنگ آمیزی",
        "نرمال", "غیرطبیعی", "بالا", "پایین", "مثبت", "منفی",
        "نتیجه", "مقدار", "عدد", "رنج", "حد طبیعی",
    ],
    MedicalIntent.PREVENTIVE_CARE_WELLNESS: [
        "پیشگیری", "جلوگیری", "محافظت", "مراقبت", "حفظ سلامتی",
        "سلامت", "تندرستی", "بهداشت", "ایمنی", "مقاوم",
        "رژیم", "غذا", "تغذیه", "ورزش", "فعالیت بدنی",
        "خواب", "استراحت", "استرس", "آرامش", "ریلکس",
        "سیگار", "الکل", "مواد مخدر", "ترک", "قطع",
        "سبک زندگی", "عادت", "روتین", "برنامه", "منظم",
        "بهتر", "بهبود", "ارتقا", "توسعه", "پیشرفت",
    ],
}

_RAW_PATTERNS: Dict[MedicalIntent, List[str]] = {
    MedicalIntent.SYMPTOM_REPORTING: [
        r"درد.*دارم",
        r"احساس.*می‌کنم",
        r".*ناراحتم",
        r"علامت.*دارم",
        r"مشکل.*دارم",
        r".*می‌سوزه",
        r".*درد می‌کنه",
    ],
    MedicalIntent.MEDICATION_QUERIES: [
        r"دارو.*بخورم",
        r"قرص.*مصرف",
        r".*تجویز.*",
        r"عوارض.*دارو",
        r"تداخل.*دارو",
        r"دوز.*چقدر",
        r".*با.*دارو",
    ],
    MedicalIntent.INFORMATION_SEEKING: [
        r".*چیست\?*",
        r".*چی هست\?*",
        r"چطور.*",
        r"چرا.*",
        r"می‌خوام بدونم.*",
        r"راجع به.*",
        r"در مورد.*",
        r"اطلاع.*می‌خوام",
    ],
    MedicalIntent.CHRONIC_DISEASE_MANAGEMENT: [
        r"دیابت.*دارم",
        r"فشار خون.*دارم",
        r".*مزمن",
        r"کنترل.*قند",
        r"مدیریت.*",
        r"پیگیری.*",
        r".*طولانی مدت",
    ],
    MedicalIntent.DIAGNOSTIC_RESULT_INTERPRETATION: [
        r"نتیجه.*آزمایش",
        r"جواب.*تست",
        r"گزارش.*",
        r".*نرمال هست",
        r".*غیرطبیعی",
        r"مقدار.*بالا",
        r".*درست هست",
    ],
    MedicalIntent.PREVENTIVE_CARE_WELLNESS: [
        r"چطور.*پیشگیری",
        r"جلوگیری.*کنم",
        r"سلامت.*نگه دارم",
        r"بهتر.*باشم",
        r"سبک زندگی.*",
        r"عادت.*خوب",
        r".*مراقبت کنم",
    ],
}

INTENT_PATTERNS: Dict[MedicalIntent, List[Pattern[str]]] = {
    intent: [re.compile(p) for p in patterns] for intent, patterns in _RAW_PATTERNS.items()
}


def score_message(message: str) -> Dict[MedicalIntent, int]:
    """Score a message against every intent, in table order."""
    normalized = message.lower().strip()
    scores: Dict[MedicalIntent, int] = {}

    for intent in MedicalIntent:
        score = 0
        if normalized:
            for keyword in INTENT_KEYWORDS[intent]:
                if keyword in normalized:
                    score += KEYWORD_WEIGHT
            for pattern in INTENT_PATTERNS[intent]:
                if pattern.search(normalized):
                    score += PATTERN_WEIGHT
        scores[intent] = score

    return scores


def classify_by_rules(message: str) -> Optional[ClassificationResult]:
    """
    Classify a message with keyword and pattern scoring.

    Args:
        message: Raw user message

    Returns:
        ClassificationResult with method=rule_based, or None when nothing matched
    """
    scores = score_message(message)

    best_intent: Optional[MedicalIntent] = None
    max_score = 0
    for intent, score in scores.items():
        # strict > keeps the first-declared intent on ties
        if score > max_score:
            best_intent, max_score = intent, score

    if best_intent is None:
        return None

    word_count = max(len(message.lower().strip().split()), 1)
    confidence = min(MAX_RULE_CONFIDENCE, (max_score / word_count) * 2 + 0.3)

    # sorted() is stable, so equal scores keep table order
    secondary = sorted(
        (i for i, s in scores.items() if i != best_intent and s > 0),
        key=lambda i: scores[i],
        reverse=True,
    )[:MAX_SECONDARY_INTENTS]

    logger.debug(f"Rule scores: {scores}; best={best_intent.value} ({max_score})")

    return ClassificationResult(
        intent=best_intent,
        confidence=confidence,
        method=ClassificationMethod.RULE_BASED,
        secondary_intents=secondary or None,
        reasoning=f"Rule-based classification: {max_score} matches found",
    )
