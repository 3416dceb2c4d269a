"""LLM configuration for the OpenRouter-compatible chat-completion endpoint.

Per-purpose model profiles:
  classifier    → gpt-4o-mini, temperature 0.1, 150 tokens: strict JSON intent label
  triage        → gpt-4o,      temperature 0.3, 500 tokens: one interview question per turn
  triage_final  → gpt-4o,      temperature 0.3, 800 tokens: per-section final explanation
  medication    → gpt-4o-mini, temperature 0.3, 800 tokens: pharmacist-style answers
  information   → gpt-4o,      temperature 0.2, 1000 tokens: educational answers

The API key is supplied by the caller on every call and is never stored or logged.
"""

from langchain_openai import ChatOpenAI
from langchain_core.language_models import BaseChatModel
from salamat.config.settings import settings
from typing import Callable, Dict, Tuple
from pydantic import SecretStr
import logging

logger = logging.getLogger(__name__)

# (model, temperature, max_tokens) per profile
_MODEL_PROFILES: Dict[str, Tuple[str, float, int]] = {
    "classifier": (settings.classifier_model, 0.1, 150),
    "triage": (settings.triage_model, 0.3, 500),
    "triage_final": (settings.triage_model, 0.3, 800),
    "medication": (settings.medication_model, 0.3, 800),
    "information": (settings.information_model, 0.2, 1000),
}

# Signature shared by get_chat_model and any test double: (profile, api_key) -> model
ModelProvider = Callable[[str, str], BaseChatModel]


def get_chat_model(profile: str, api_key: str) -> BaseChatModel:
    """Instantiate a ChatOpenAI client for ``profile`` using the caller's key."""
    if profile not in _MODEL_PROFILES:
        raise KeyError(f"Unknown model profile: {profile}")

    model_name, temperature, max_tokens = _MODEL_PROFILES[profile]
    logger.debug(f"Creating chat model client: profile={profile}, model={model_name}")

    return ChatOpenAI(
        base_url=settings.llm_base_url,
        api_key=SecretStr(api_key),
        model=model_name,
        temperature=temperature,
        max_completion_tokens=max_tokens,
        timeout=settings.llm_invoke_timeout,
        max_retries=1,
        default_headers={
            "HTTP-Referer": settings.llm_http_referer,
            "X-Title": f"{settings.llm_app_title} {profile}",
        },
    )


def is_llm_configured() -> bool:
    """True when a server-side provider key is available."""
    return bool(settings.openrouter_api_key)
