"""Unified medical chat API endpoints.

A single conversation surface: every message is classified into one of six
medical intents and handled by that category's module (symptom triage,
medication questions, medical information, and the fixed-guidance categories).
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from salamat.api.dependencies import get_chat_service, require_llm_configured
from salamat.classification.intent_classifier import classify_intent
from salamat.exceptions import SessionNotFoundError, UnsupportedActionError
from salamat.models.intent import ClassificationResult
from salamat.models.messages import (
    CategoryInfo,
    ClassifyRequest,
    MessageRequest,
    SpecialActionRequest,
    StartSessionResponse,
    UnifiedChatResponse,
)
from salamat.services.chat_service import NEW_SESSION_MESSAGE, UnifiedChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/unified", tags=["Unified Chat"])


@router.post("/start", response_model=StartSessionResponse)
async def start_session(service: UnifiedChatService = Depends(get_chat_service)):
    """
    Start a new unified session.

    Returns the session ID and a greeting asking for the medical question.
    """
    session = await service.create_session()
    return StartSessionResponse(
        session_id=session.session_id,
        status="ready",
        message=NEW_SESSION_MESSAGE,
    )


@router.post(
    "/message",
    response_model=UnifiedChatResponse,
    dependencies=[Depends(require_llm_configured)],
)
async def send_message(
    request: MessageRequest,
    service: UnifiedChatService = Depends(get_chat_service),
):
    """
    Send a message in an existing session.

    The message is classified (unless force_category is given) and routed to
    the matching category module.
    """
    message = request.message.strip()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="پیام نمی‌تواند خالی باشد",
        )

    try:
        return await service.chat(request.session_id, message, request.force_category)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )


@router.post("/action", response_model=UnifiedChatResponse)
async def run_special_action(
    request: SpecialActionRequest,
    service: UnifiedChatService = Depends(get_chat_service),
):
    """Run a quick action (call emergency, consult pharmacist, ...) in the active category."""
    try:
        return await service.special_action(request.session_id, request.action, request.data)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    except UnsupportedActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/classify", response_model=ClassificationResult)
async def classify_message(
    request: ClassifyRequest,
    service: UnifiedChatService = Depends(get_chat_service),
):
    """Classify a single message without touching any session."""
    message = request.message.strip()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="پیام نمی‌تواند خالی باشد",
        )
    return await classify_intent(message, service.api_key, service.model_provider)


@router.get("/categories", response_model=Dict[str, CategoryInfo])
async def list_categories(service: UnifiedChatService = Depends(get_chat_service)):
    """Display metadata for every registered category."""
    return {
        intent.value: module.get_category_info()
        for intent, module in service.registry.get_all().items()
    }


@router.get("/info")
async def get_info(
    session_id: Optional[str] = None,
    service: UnifiedChatService = Depends(get_chat_service),
) -> Dict[str, Any]:
    """Session summary when session_id is given, otherwise service status."""
    return await service.info(session_id)


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    service: UnifiedChatService = Depends(get_chat_service),
):
    """Delete a unified session."""
    deleted = await service.delete_session(session_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return {"success": True, "session_id": session_id}
