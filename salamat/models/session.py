"""Session schemas for category conversations and the unified dispatcher."""

from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from enum import Enum
from salamat.models.intent import ClassificationResult, MedicalIntent
from salamat.models.messages import CategoryResponse
from salamat.models.triage import TriageCategory, TriageStage


class MessageRole(str, Enum):
    """Conversation message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ConversationMessage(BaseModel):
    """Individual message in a category conversation."""

    role: MessageRole
    content: str
    timestamp: Optional[datetime] = None


class BaseCategorySession(BaseModel):
    """Fields shared by every category session."""

    session_id: str
    intent: MedicalIntent
    conversation: List[ConversationMessage] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    is_complete: bool = False
    start_time: datetime = Field(default_factory=datetime.utcnow)
    last_activity: datetime = Field(default_factory=datetime.utcnow)

    def append(self, role: MessageRole, content: str) -> ConversationMessage:
        """Append one message and bump last_activity."""
        message = ConversationMessage(role=role, content=content, timestamp=datetime.utcnow())
        self.conversation.append(message)
        self.last_activity = message.timestamp
        return message


class CategorySession(BaseCategorySession):
    """Conversation state for single-turn category modules."""

    kind: Literal["general"] = "general"


class TriageSession(BaseCategorySession):
    """Conversation state for the symptom triage interview."""

    kind: Literal["triage"] = "triage"
    stage: TriageStage = TriageStage.ASSESSMENT
    questions_asked: int = Field(default=0, ge=0)
    max_questions: int = 4
    final_classification: Optional[TriageCategory] = None

    def mark_completed(self, category: TriageCategory) -> None:
        """Close the interview with its final classification. Happens once."""
        if self.is_complete:
            raise RuntimeError(f"Triage session {self.session_id} is already completed")
        self.stage = TriageStage.COMPLETED
        self.final_classification = category
        self.is_complete = True
        self.metadata["triage_stage"] = TriageStage.COMPLETED.value
        self.metadata["final_classification"] = category.value


AnyCategorySession = Annotated[
    Union[TriageSession, CategorySession], Field(discriminator="kind")
]


class ClassificationRecord(BaseModel):
    """A classification made for one inbound message."""

    message: str
    classification: ClassificationResult
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class TurnRecord(BaseModel):
    """One processed turn in the unified conversation log."""

    message: str
    category: MedicalIntent
    response: CategoryResponse
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class UnifiedSession(BaseModel):
    """Dispatcher-level session spanning category switches."""

    session_id: str
    current_category: Optional[MedicalIntent] = None
    category_session: Optional[AnyCategorySession] = None
    conversation_history: List[TurnRecord] = Field(default_factory=list)
    classifications: List[ClassificationRecord] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=datetime.utcnow)
    last_activity: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "unified_0f1e2d3c4b5a",
                "current_category": "symptom_reporting",
                "conversation_history": [],
                "classifications": [],
            }
        }
