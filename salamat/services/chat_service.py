"""Unified chat service: classify, route to a category module, persist."""

import asyncio
import logging
import uuid
import weakref
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from salamat.categories.base import CategoryModule, CategoryRegistry
from salamat.classification.intent_classifier import classify_intent
from salamat.config.llm_config import ModelProvider, get_chat_model
from salamat.exceptions import SessionNotFoundError, UnsupportedActionError
from salamat.models.intent import (
    ClassificationResult,
    MedicalIntent,
    get_category_display_name,
)
from salamat.models.messages import (
    CategoryNotification,
    CategoryResponse,
    NextAction,
    UnifiedChatResponse,
)
from salamat.models.session import ClassificationRecord, TurnRecord, UnifiedSession
from salamat.services.session_store import SessionStore

logger = logging.getLogger(__name__)

SESSION_ID_PREFIX = "unified_"

NEW_SESSION_MESSAGE = "جلسه جدید پزشکی آماده شد. مشکل یا سوال پزشکی خود را بیان کنید."
FALLBACK_MESSAGE = "متأسفانه در حال حاضر امکان پاسخ‌گویی وجود ندارد. لطفاً بعداً تلاش کنید."
EMERGENCY_FALLBACK_HINT = "در صورت وضعیت اورژانسی، فوراً با ۱۱۵ تماس بگیرید."


class UnifiedChatService:
    """Dispatcher for the unified medical chat.

    Turns for one session are serialized with a per-session asyncio.Lock, so the
    read-modify-write of a stored session never interleaves.
    """

    def __init__(
        self,
        registry: CategoryRegistry,
        store: SessionStore,
        api_key: Optional[str] = None,
        model_provider: ModelProvider = get_chat_model,
    ):
        self.registry = registry
        self.store = store
        self.api_key = api_key
        self.model_provider = model_provider
        # entries vanish once no turn holds the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def create_session(self) -> UnifiedSession:
        """
        Create and store an empty unified session.

        Returns:
            The new UnifiedSession
        """
        session = UnifiedSession(session_id=f"{SESSION_ID_PREFIX}{uuid.uuid4().hex}")
        await self.store.put(session)
        logger.info(f"Created unified session {session.session_id}")
        return session

    def _resolve_module(self, intent: MedicalIntent) -> Tuple[MedicalIntent, CategoryModule]:
        module = self.registry.get(intent)
        if module is None:
            logger.warning(f"No module registered for {intent.value}, using symptom reporting")
            intent = MedicalIntent.SYMPTOM_REPORTING
            module = self.registry.get(intent)
            if module is None:
                raise RuntimeError("No category modules available")
        return intent, module

    async def chat(
        self,
        session_id: str,
        message: str,
        force_category: Optional[MedicalIntent] = None,
    ) -> UnifiedChatResponse:
        """
        Process one user message.

        Args:
            session_id: Unified session identifier
            message: User message
            force_category: Skip classification and use this category

        Returns:
            UnifiedChatResponse; unexpected failures become a Persian fallback reply

        Raises:
            SessionNotFoundError: if the session does not exist
        """
        async with self._lock_for(session_id):
            session = await self.store.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            try:
                return await self._chat_turn(session, message, force_category)
            except Exception as e:
                logger.error(f"❌ Unified chat failed for session {session_id}: {e}", exc_info=True)
                return UnifiedChatResponse(
                    session_id=session_id,
                    message=FALLBACK_MESSAGE,
                    category=MedicalIntent.SYMPTOM_REPORTING,
                    category_name=get_category_display_name(MedicalIntent.SYMPTOM_REPORTING),
                    is_complete=False,
                    next_action=NextAction.CONTINUE,
                    error="Processing failed",
                    fallback_response=EMERGENCY_FALLBACK_HINT,
                )

    async def _chat_turn(
        self,
        session: UnifiedSession,
        message: str,
        force_category: Optional[MedicalIntent],
    ) -> UnifiedChatResponse:
        classification: Optional[ClassificationResult] = None

        if force_category is not None:
            target = force_category
        else:
            classification = await classify_intent(message, self.api_key, self.model_provider)
            session.classifications.append(
                ClassificationRecord(message=message, classification=classification)
            )
            target = classification.intent

        target, module = self._resolve_module(target)

        category_switch = session.current_category != target
        if (
            category_switch
            or session.category_session is None
            or session.category_session.is_complete
        ):
            if session.category_session is not None and not category_switch:
                logger.info(f"Previous {target.value} session completed, starting a new one")
            session.category_session = await module.initialize_session(session.session_id)
            session.current_category = target

        response = await module.process_message(
            session.category_session, message, self.api_key or ""
        )

        now = datetime.utcnow()
        session.conversation_history.append(
            TurnRecord(message=message, category=target, response=response, timestamp=now)
        )
        session.last_activity = now
        await self.store.put(session)

        notification = None
        if category_switch and classification is not None:
            notification = CategoryNotification(
                message=f"سوال شما به دسته «{get_category_display_name(target)}» طبقه‌بندی شد.",
                confidence=classification.confidence,
                reasoning=classification.reasoning,
            )

        return self._build_response(
            session,
            target,
            response,
            classification=classification,
            category_switch=category_switch,
            notification=notification,
        )

    @staticmethod
    def _build_response(
        session: UnifiedSession,
        category: MedicalIntent,
        response: CategoryResponse,
        classification: Optional[ClassificationResult] = None,
        category_switch: bool = False,
        notification: Optional[CategoryNotification] = None,
    ) -> UnifiedChatResponse:
        return UnifiedChatResponse(
            session_id=session.session_id,
            message=response.message,
            category=category,
            category_name=get_category_display_name(category),
            is_complete=response.is_complete,
            next_action=response.next_action,
            options=response.options,
            special_features=response.special_features,
            metadata={
                **response.metadata,
                "total_messages": len(session.conversation_history),
            },
            classification=classification,
            category_switch=category_switch,
            category_notification=notification,
        )

    async def special_action(
        self,
        session_id: str,
        action: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> UnifiedChatResponse:
        """
        Run a quick action in the session's active category.

        Raises:
            SessionNotFoundError: if the session does not exist
            UnsupportedActionError: no active category session, or the module
                does not declare the action
        """
        async with self._lock_for(session_id):
            session = await self.store.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if session.category_session is None or session.current_category is None:
                raise UnsupportedActionError("No active category session")

            module: Optional[CategoryModule] = self.registry.get(session.current_category)
            if module is None or not module.supports_action(action):
                raise UnsupportedActionError(
                    f"Special action '{action}' not supported for this category"
                )

            response = await module.handle_special_action(session.category_session, action, data)

            now = datetime.utcnow()
            session.conversation_history.append(
                TurnRecord(
                    message=f"Special action: {action}",
                    category=session.current_category,
                    response=response,
                    timestamp=now,
                )
            )
            session.last_activity = now
            await self.store.put(session)

            return self._build_response(session, session.current_category, response)

    async def info(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Per-session summary, or global service status when no id is given."""
        if session_id:
            session = await self.store.get(session_id)
            return {
                "session_id": session_id,
                "exists": session is not None,
                "current_category": session.current_category if session else None,
                "message_count": len(session.conversation_history) if session else 0,
                "classifications": [
                    record.model_dump(mode="json") for record in session.classifications
                ]
                if session
                else [],
            }

        modules = self.registry.get_all()
        return {
            "total_sessions": await self.store.count(),
            "available_categories": [intent.value for intent in modules],
            "system_status": {
                "llm_configured": bool(self.api_key),
                "registered_modules": len(modules),
            },
        }

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session. Returns False if it did not exist."""
        async with self._lock_for(session_id):
            deleted = await self.store.delete(session_id)
        if deleted:
            logger.info(f"Deleted unified session {session_id}")
        return deleted

