"""FastAPI dependencies for the chat service and provider configuration.

The chat service is built once in main.py's lifespan and installed here with
``set_chat_service``. Tests replace it through ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import HTTPException, status
import logging

from salamat.config.llm_config import is_llm_configured
from salamat.services.chat_service import UnifiedChatService

logger = logging.getLogger(__name__)

_chat_service: Optional[UnifiedChatService] = None


def set_chat_service(service: Optional[UnifiedChatService]) -> None:
    """Install (or clear) the process-wide chat service."""
    global _chat_service
    _chat_service = service


def get_chat_service() -> UnifiedChatService:
    """Return the chat service created at startup.

    Raises:
        HTTP 503 – if the service has not been initialized
    """
    if _chat_service is None:
        logger.error("Chat service requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready",
        )
    return _chat_service


def require_llm_configured() -> None:
    """Reject chat turns when no provider key is configured.

    Raises:
        HTTP 503 – if OPENROUTER_API_KEY is not set
    """
    if not is_llm_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="تنظیمات API مشخص نشده است",
        )
