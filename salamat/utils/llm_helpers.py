"""Utility functions for LLM invocations with timeout handling."""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from salamat.config.settings import settings
from salamat.exceptions import ModelResponseParseError, UpstreamUnavailableError
from salamat.models.session import ConversationMessage, MessageRole

logger = logging.getLogger(__name__)


def strip_md_fences(text: str) -> str:
    """Strip markdown code fences that the LLM sometimes wraps JSON in.

    Handles patterns like:
        ```json\\n{...}\\n```
        ```\\n{...}\\n```
    """
    stripped = text.strip()
    match = re.match(r"^```(?:json)?\s*\n?(.*?)\n?```\s*$", stripped, re.DOTALL)
    if match:
        return match.group(1).strip()
    return stripped


def load_json_object(raw: str) -> Dict[str, Any]:
    """Parse a model reply as a JSON object.

    Raises:
        ModelResponseParseError: if the text is not JSON or not an object
    """
    try:
        data = json.loads(strip_md_fences(raw))
    except (json.JSONDecodeError, TypeError) as e:
        raise ModelResponseParseError(f"Reply is not valid JSON: {e}", raw=raw) from e

    if not isinstance(data, dict):
        raise ModelResponseParseError("Reply JSON is not an object", raw=raw)
    return data


def response_text(response: Any) -> str:
    """Return the text content of a chat-model response."""
    content = getattr(response, "content", response)
    return content if isinstance(content, str) else str(content)


def to_langchain_messages(
    conversation: Sequence[ConversationMessage],
) -> List[BaseMessage]:
    """Convert a stored conversation into langchain chat messages."""
    messages: List[BaseMessage] = []
    for msg in conversation:
        if msg.role == MessageRole.SYSTEM:
            messages.append(SystemMessage(content=msg.content))
        elif msg.role == MessageRole.USER:
            messages.append(HumanMessage(content=msg.content))
        else:
            messages.append(AIMessage(content=msg.content))
    return messages


async def invoke_llm_with_timeout(
    llm: BaseChatModel,
    messages: List[BaseMessage],
    timeout: Optional[float] = None,
) -> str:
    """
    Invoke an LLM with timeout protection and return the reply text.

    Args:
        llm: The language model to invoke
        messages: List of messages to send to the LLM
        timeout: Timeout in seconds (defaults to settings.llm_invoke_timeout)

    Returns:
        Text content of the model reply

    Raises:
        UpstreamUnavailableError: on timeout or any transport/provider failure
    """
    if timeout is None:
        timeout = settings.llm_invoke_timeout

    logger.info(f"📤 Invoking LLM with timeout: {timeout}s")

    try:
        response = await asyncio.wait_for(llm.ainvoke(messages), timeout=timeout)
        logger.info("✅ LLM responded successfully")
        return response_text(response)

    except asyncio.TimeoutError as e:
        logger.error(f"⏱️ LLM invocation timed out after {timeout}s")
        raise UpstreamUnavailableError(f"LLM call timed out after {timeout}s") from e

    except Exception as e:
        logger.error(f"❌ LLM invocation failed: {e}", exc_info=True)
        raise UpstreamUnavailableError(f"LLM call failed: {e}") from e
