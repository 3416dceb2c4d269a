"""Category response models and API request/response models."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum
from salamat.models.intent import ClassificationResult, MedicalIntent


class NextAction(str, Enum):
    """What the caller should do after a category response."""

    CONTINUE = "continue"
    ESCALATE = "escalate"
    COMPLETE = "complete"
    REDIRECT = "redirect"


class QuickAction(BaseModel):
    """A one-tap action offered alongside a reply."""

    label: str
    action: str
    type: str = Field(..., description="emergency | info | action")
    phone: Optional[str] = None


class VisualElement(BaseModel):
    """A highlighted banner rendered with a reply."""

    type: str = Field(..., description="warning | info | success | medical")
    content: str


class SpecialFeatures(BaseModel):
    """Optional UI affordances attached to a category response."""

    quick_actions: List[QuickAction] = Field(default_factory=list)
    visual_elements: Optional[VisualElement] = None
    follow_up_suggestions: List[str] = Field(default_factory=list)


class CategoryResponse(BaseModel):
    """Reply produced by a category module for one turn."""

    message: str
    is_complete: Optional[bool] = None
    options: Optional[List[str]] = None
    next_action: NextAction = NextAction.CONTINUE
    redirect_to: Optional[MedicalIntent] = None
    special_features: Optional[SpecialFeatures] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Cheap keyword estimate of whether a message fits a category."""

    is_valid: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    suggestions: Optional[List[str]] = None


class CategoryInfo(BaseModel):
    """Static display metadata for a category module."""

    name: str
    description: str
    features: List[str]
    specializations: List[str]


class EmergencyAssessment(BaseModel):
    """Keyword/pattern emergency screen of a message."""

    is_emergency: bool
    level: str = Field(..., description="low | medium | high | critical")
    recommendation: str
    red_flags: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# HTTP API models
# ---------------------------------------------------------------------------


class StartSessionResponse(BaseModel):
    """Response when starting a new unified session."""

    session_id: str
    status: str
    message: str


class MessageRequest(BaseModel):
    """Request to send a message in a unified session."""

    session_id: str = Field(..., description="Session ID")
    message: str = Field(..., max_length=2000, description="User message")
    force_category: Optional[MedicalIntent] = Field(
        None, description="Skip classification and route to this category"
    )


class SpecialActionRequest(BaseModel):
    """Request to run a quick action in the active category."""

    session_id: str
    action: str
    data: Optional[Dict[str, Any]] = None


class ClassifyRequest(BaseModel):
    """Request to classify a single message."""

    message: str = Field(..., max_length=2000)


class CategoryNotification(BaseModel):
    """Notice shown when a turn was routed to a different category."""

    message: str
    confidence: float
    reasoning: Optional[str] = None


class UnifiedChatResponse(BaseModel):
    """Reply to one unified chat turn."""

    session_id: str
    message: str
    category: MedicalIntent
    category_name: str
    is_complete: Optional[bool] = None
    next_action: NextAction = NextAction.CONTINUE
    options: Optional[List[str]] = None
    special_features: Optional[SpecialFeatures] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    classification: Optional[ClassificationResult] = None
    category_switch: bool = False
    category_notification: Optional[CategoryNotification] = None
    error: Optional[str] = None
    fallback_response: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
