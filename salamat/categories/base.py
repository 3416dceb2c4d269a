"""Category-module contract, registry, and shared helpers.

Every medical intent is served by one CategoryModule. The dispatcher only ever
talks to modules through this interface, looked up in a CategoryRegistry that is
filled once at startup.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from salamat.config.llm_config import ModelProvider, get_chat_model
from salamat.exceptions import UnsupportedActionError
from salamat.models.intent import MedicalIntent
from salamat.models.messages import (
    CategoryInfo,
    CategoryResponse,
    EmergencyAssessment,
    ValidationResult,
)
from salamat.models.session import (
    BaseCategorySession,
    CategorySession,
    ConversationMessage,
    MessageRole,
)
from salamat.utils.llm_helpers import invoke_llm_with_timeout, to_langchain_messages

logger = logging.getLogger(__name__)

MEDICAL_DISCLAIMER = (
    "⚕️ این راهنمایی جنبه آموزشی دارد و جایگزین مشاوره پزشک نیست. "
    "در مواقع ضروری با پزشک مشورت کنید."
)

SEVERITY_KEYWORDS = [
    "فوری", "اورژانس", "خطرناک", "شدید", "وخیم",
    "نفس نمی‌آید", "قلبم می‌ایستد", "بی هوش", "تشنج",
    "خونریزی شدید", "درد شدید", "حمله قلبی", "سکته",
]

MAX_VALIDATION_CONFIDENCE = 0.9

_SENTENCE_BREAK = re.compile(r"([.!?])\s*([آ-ی])")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


# ==============================================================================
# SHARED HELPERS
# ==============================================================================


def add_medical_disclaimer(response: str, disclaimer: str = MEDICAL_DISCLAIMER) -> str:
    """Append a disclaimer paragraph to a reply."""
    return f"{response}\n\n{disclaimer}"


def format_medical_response(content: str) -> str:
    """Normalize line breaks and start each Persian sentence on its own paragraph."""
    text = _EXTRA_NEWLINES.sub("\n\n", content.strip())
    return _SENTENCE_BREAK.sub(r"\1\n\n\2", text)


def detect_emergency_keywords(message: str) -> bool:
    """True when the message contains a severity word such as «فوری» or «شدید»."""
    normalized = message.lower()
    return any(keyword in normalized for keyword in SEVERITY_KEYWORDS)


def create_session_metadata(
    intent: MedicalIntent, additional: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Metadata every category session starts with, plus module-specific keys."""
    metadata: Dict[str, Any] = {
        "intent": intent.value,
        "start_time": datetime.utcnow().isoformat(),
        "message_count": 0,
        "last_classification": intent.value,
        "emergency_detected": False,
        "redirections": [],
        "special_actions_used": [],
    }
    if additional:
        metadata.update(additional)
    return metadata


def keyword_validation(
    message: str,
    keywords: Sequence[str],
    weight: float,
    suggestions: Sequence[str] = (),
) -> ValidationResult:
    """Estimate category fit from the number of distinct keywords present."""
    normalized = message.lower()
    match_count = sum(1 for keyword in keywords if keyword in normalized)

    return ValidationResult(
        is_valid=match_count > 0,
        confidence=min(match_count * weight, MAX_VALIDATION_CONFIDENCE),
        suggestions=list(suggestions) if match_count == 0 and suggestions else None,
    )


# ==============================================================================
# CONTRACT
# ==============================================================================


class CategoryModule(ABC):
    """Base class for all category modules."""

    intent: MedicalIntent
    system_prompt: str

    # keyword heuristic used by validate_message
    validation_keywords: Tuple[str, ...] = ()
    validation_weight: float = 0.3
    validation_suggestions: Tuple[str, ...] = ()

    # actions accepted by handle_special_action
    special_actions: FrozenSet[str] = frozenset()

    def __init__(self, model_provider: ModelProvider = get_chat_model):
        self.model_provider = model_provider

    def new_session(self, session_id: str) -> BaseCategorySession:
        """Empty session object of the right kind for this module."""
        return CategorySession(session_id=session_id, intent=self.intent)

    def initial_metadata(self) -> Dict[str, Any]:
        """Module-specific metadata merged into a new session."""
        return {}

    async def initialize_session(
        self, session_id: str, initial_message: Optional[str] = None
    ) -> BaseCategorySession:
        """
        Create a session seeded with this category's system prompt.

        Args:
            session_id: Identifier chosen by the caller
            initial_message: Optional first user turn

        Returns:
            Session whose conversation[0] is the system prompt
        """
        session = self.new_session(session_id)
        session.append(MessageRole.SYSTEM, self.system_prompt)
        session.metadata = create_session_metadata(self.intent, self.initial_metadata())

        if initial_message:
            session.append(MessageRole.USER, initial_message)

        logger.info(f"Initialized {self.intent.value} session {session_id}")
        return session

    @abstractmethod
    async def process_message(
        self, session: BaseCategorySession, message: str, api_key: str
    ) -> CategoryResponse:
        """Advance the conversation by one user turn."""

    @abstractmethod
    def get_category_info(self) -> CategoryInfo:
        """Static display metadata."""

    def get_system_prompt(self) -> str:
        return self.system_prompt

    def validate_message(self, message: str) -> ValidationResult:
        """Cheap keyword estimate of whether a message belongs here. Not a gate."""
        return keyword_validation(
            message,
            self.validation_keywords,
            self.validation_weight,
            self.validation_suggestions,
        )

    def supports_action(self, action: str) -> bool:
        return action in self.special_actions

    async def handle_special_action(
        self,
        session: BaseCategorySession,
        action: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> CategoryResponse:
        """
        Run a category quick action.

        Raises:
            UnsupportedActionError: if this module does not declare the action
        """
        if not self.supports_action(action):
            raise UnsupportedActionError(
                f"Action '{action}' is not supported by {self.intent.value}"
            )

        session.metadata.setdefault("special_actions_used", []).append(action)
        session.last_activity = datetime.utcnow()
        logger.info(f"⚡ Special action '{action}' in session {session.session_id}")
        return self.special_action_response(session, action, data or {})

    def special_action_response(
        self, session: BaseCategorySession, action: str, data: Dict[str, Any]
    ) -> CategoryResponse:
        """Reply for a declared special action; modules with actions override this."""
        raise UnsupportedActionError(f"Action '{action}' has no handler")

    def detect_emergency(
        self, message: str, conversation: Sequence[ConversationMessage]
    ) -> Optional[EmergencyAssessment]:
        """Emergency screen; modules without one return None."""
        return None

    async def complete_conversation(
        self,
        profile: str,
        conversation: List[ConversationMessage],
        api_key: str,
    ) -> str:
        """Send a conversation to the model for ``profile`` and return the reply text.

        Raises:
            UpstreamUnavailableError: on timeout or transport failure
        """
        llm = self.model_provider(profile, api_key)
        return await invoke_llm_with_timeout(llm, to_langchain_messages(conversation))

    @staticmethod
    def provisional_conversation(
        session: BaseCategorySession, message: str
    ) -> List[ConversationMessage]:
        """The session conversation plus an uncommitted user turn."""
        return list(session.conversation) + [
            ConversationMessage(role=MessageRole.USER, content=message, timestamp=datetime.utcnow())
        ]

    @staticmethod
    def commit_turn(session: BaseCategorySession, message: str, reply: str) -> None:
        """Append a processed user/assistant pair and count it."""
        session.append(MessageRole.USER, message)
        session.append(MessageRole.ASSISTANT, reply)
        session.metadata["message_count"] = session.metadata.get("message_count", 0) + 1


# ==============================================================================
# REGISTRY
# ==============================================================================


class CategoryRegistry:
    """Mapping from intent to module instance, filled once at startup."""

    def __init__(self):
        self._modules: Dict[MedicalIntent, CategoryModule] = {}

    def register(self, intent: MedicalIntent, module: CategoryModule) -> None:
        if module.intent != intent:
            raise ValueError(
                f"Module for {module.intent.value} cannot be registered as {intent.value}"
            )
        if intent in self._modules:
            logger.warning(f"Replacing registered module for {intent.value}")
        self._modules[intent] = module

    def get(self, intent: MedicalIntent) -> Optional[CategoryModule]:
        return self._modules.get(intent)

    def get_all(self) -> Dict[MedicalIntent, CategoryModule]:
        """A copy of the registry contents."""
        return dict(self._modules)

    def is_registered(self, intent: MedicalIntent) -> bool:
        return intent in self._modules

    def __len__(self) -> int:
        return len(self._modules)
