"""Triage classification enums and template models."""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict


class TriageCategory(str, Enum):
    """Triage urgency levels, highest severity first."""

    EMERGENCY = "EMERGENCY"  # Life-threatening, call 115 now
    URGENT = "URGENT"  # Emergency department within hours
    SEMI_URGENT = "SEMI_URGENT"  # See a doctor within 24-48 hours
    NON_URGENT = "NON_URGENT"  # Routine care
    SELF_CARE = "SELF_CARE"  # Manage at home


class TriageStage(str, Enum):
    """Triage session stage."""

    ASSESSMENT = "assessment"
    COMPLETED = "completed"


class TemplateSection(BaseModel):
    """One content section of a rendered triage result."""

    model_config = ConfigDict(frozen=True)

    key: str
    title: str
    icon: str
    css_class: Optional[str] = None


class ActionButton(BaseModel):
    """A quick-action button attached to a triage template."""

    model_config = ConfigDict(frozen=True)

    kind: str  # "call" | "action" | "info"
    label: str
    action: str
    phone: Optional[str] = None
    style: str = ""


class TriageTemplate(BaseModel):
    """Static presentation descriptor for one triage category."""

    model_config = ConfigDict(frozen=True)

    category: TriageCategory
    header: str
    css_class: str
    primary_action: Optional[str] = None
    action_buttons: Tuple[ActionButton, ...] = ()
    sections: Tuple[TemplateSection, ...] = ()
    disclaimer: str

    @property
    def section_keys(self) -> Tuple[str, ...]:
        return tuple(section.key for section in self.sections)
