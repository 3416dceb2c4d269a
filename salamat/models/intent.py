"""Medical intent enums and the classification value object."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MedicalIntent(str, Enum):
    """The six medical intent categories, in rule-table declaration order."""

    SYMPTOM_REPORTING = "symptom_reporting"
    MEDICATION_QUERIES = "medication_queries"
    INFORMATION_SEEKING = "information_seeking"
    CHRONIC_DISEASE_MANAGEMENT = "chronic_disease_management"
    DIAGNOSTIC_RESULT_INTERPRETATION = "diagnostic_result_interpretation"
    PREVENTIVE_CARE_WELLNESS = "preventive_care_wellness"

    @classmethod
    def parse(cls, label: str) -> "MedicalIntent":
        """Accept a member name or value in any case."""
        if not isinstance(label, str):
            raise ValueError(f"Intent label must be a string, got {type(label).__name__}")
        return cls(label.strip().lower())


class ClassificationMethod(str, Enum):
    """How a classification was reached."""

    RULE_BASED = "rule_based"
    AI_BASED = "ai_based"
    FALLBACK = "fallback"


class ClassificationResult(BaseModel):
    """Outcome of one intent classification call."""

    model_config = ConfigDict(frozen=True)

    intent: MedicalIntent
    confidence: float = Field(..., ge=0.0, le=1.0)
    method: ClassificationMethod
    secondary_intents: Optional[List[MedicalIntent]] = None
    reasoning: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _clean_secondary_intents(cls, data):
        if not isinstance(data, dict) or not data.get("secondary_intents"):
            return data

        primary = data.get("intent")
        primary = MedicalIntent(primary) if primary is not None else None
        cleaned: List[MedicalIntent] = []
        for intent in data["secondary_intents"]:
            intent = MedicalIntent(intent)
            if intent != primary and intent not in cleaned:
                cleaned.append(intent)
        return {**data, "secondary_intents": cleaned or None}


_DISPLAY_NAMES = {
    MedicalIntent.SYMPTOM_REPORTING: "بررسی علائم",
    MedicalIntent.MEDICATION_QUERIES: "سوالات دارویی",
    MedicalIntent.INFORMATION_SEEKING: "کسب اطلاعات پزشکی",
    MedicalIntent.CHRONIC_DISEASE_MANAGEMENT: "مدیریت بیماری‌های مزمن",
    MedicalIntent.DIAGNOSTIC_RESULT_INTERPRETATION: "تفسیر نتایج آزمایش",
    MedicalIntent.PREVENTIVE_CARE_WELLNESS: "پیشگیری و سلامت",
}


def get_category_display_name(intent: MedicalIntent) -> str:
    """User-facing Persian name for an intent."""
    return _DISPLAY_NAMES.get(intent, intent.value)
