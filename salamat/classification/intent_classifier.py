"""Hybrid intent classifier: keyword/pattern rules first, the LLM only when unsure.

A confident rule match (>= rule_confidence_threshold) is returned without any
model call. Otherwise the classifier model is consulted when the caller supplied
an API key, and its answer is merged with or replaces the rule result.
"""

import logging
from typing import Optional

from langchain_core.messages import HumanMessage

from salamat.classification.rules import MAX_RULE_CONFIDENCE, classify_by_rules
from salamat.config.llm_config import ModelProvider, get_chat_model
from salamat.config.settings import settings
from salamat.exceptions import (
    ClassificationError,
    ModelResponseParseError,
    UpstreamUnavailableError,
)
from salamat.models.intent import (
    ClassificationMethod,
    ClassificationResult,
    MedicalIntent,
)
from salamat.utils.llm_helpers import invoke_llm_with_timeout, load_json_object

logger = logging.getLogger(__name__)

AI_MIN_CONFIDENCE = 0.1
AI_MAX_CONFIDENCE = 0.95
AGREEMENT_BONUS = 0.1
FALLBACK_CONFIDENCE = 0.3


INTENT_CLASSIFICATION_PROMPT = """You are a medical intent classifier for Persian language queries. Classify the following Persian medical message into exactly ONE of these categories:

1. SYMPTOM_REPORTING - Patient describing physical symptoms, pain, discomfort, or health issues they're experiencing
2. MEDICATION_QUERIES - Questions about medications, drugs, dosage, side effects, interactions
3. INFORMATION_SEEKING - General medical questions, wanting to learn about conditions, treatments, procedures
4. CHRONIC_DISEASE_MANAGEMENT - Managing ongoing conditions like diabetes, hypertension, heart disease
5. DIAGNOSTIC_RESULT_INTERPRETATION - Questions about test results, lab values, medical reports
6. PREVENTIVE_CARE_WELLNESS - Prevention, lifestyle, diet, exercise, wellness, healthy habits

Message: "{message}"

Respond with ONLY a JSON object in this exact format:
{{
  "intent": "category_name",
  "confidence": 0.85,
  "reasoning": "Brief explanation in Persian"
}}

Do not include any other text or explanation."""


async def classify_by_ai(
    message: str,
    api_key: str,
    model_provider: ModelProvider = get_chat_model,
) -> ClassificationResult:
    """
    Ask the classifier model for an intent label.

    Args:
        message: Raw user message
        api_key: Caller-supplied provider key (never logged)
        model_provider: Factory returning a chat model for a profile

    Returns:
        ClassificationResult with method=ai_based and confidence in [0.1, 0.95]

    Raises:
        ClassificationError: upstream failure, bad JSON, bad confidence or unknown intent
    """
    prompt = INTENT_CLASSIFICATION_PROMPT.format(message=message)

    try:
        llm = model_provider("classifier", api_key)
    except Exception as e:
        raise ClassificationError(f"Classifier model could not be created: {e}") from e

    try:
        content = await invoke_llm_with_timeout(llm, [HumanMessage(content=prompt)])
    except UpstreamUnavailableError as e:
        raise ClassificationError(f"Classifier call failed: {e}") from e

    try:
        payload = load_json_object(content)
    except ModelResponseParseError as e:
        raise ClassificationError(f"Classifier returned unparseable reply: {e}") from e

    try:
        intent = MedicalIntent.parse(payload.get("intent"))
    except ValueError as e:
        raise ClassificationError(f"Classifier returned unknown intent: {payload.get('intent')!r}") from e

    raw_confidence = payload.get("confidence")
    if isinstance(raw_confidence, bool):
        raise ClassificationError(f"Classifier returned non-numeric confidence: {raw_confidence!r}")
    try:
        confidence = float(raw_confidence)
    except (TypeError, ValueError) as e:
        raise ClassificationError(f"Classifier returned non-numeric confidence: {raw_confidence!r}") from e
    if confidence != confidence:  # NaN
        raise ClassificationError("Classifier returned NaN confidence")

    reasoning = payload.get("reasoning")

    return ClassificationResult(
        intent=intent,
        confidence=min(max(confidence, AI_MIN_CONFIDENCE), AI_MAX_CONFIDENCE),
        method=ClassificationMethod.AI_BASED,
        reasoning=reasoning if isinstance(reasoning, str) else None,
    )


async def classify_intent(
    message: str,
    api_key: Optional[str] = None,
    model_provider: ModelProvider = get_chat_model,
) -> ClassificationResult:
    """
    Classify a message, preferring the cheapest sufficiently confident method.

    Args:
        message: Raw user message
        api_key: Optional provider key enabling the AI pass
        model_provider: Factory returning a chat model for a profile

    Returns:
        ClassificationResult (never raises)
    """
    rule_result = classify_by_rules(message)

    if rule_result and rule_result.confidence >= settings.rule_confidence_threshold:
        logger.info(
            f"🎯 Rule-based intent: {rule_result.intent.value} "
            f"(confidence={rule_result.confidence:.2f})"
        )
        return rule_result

    if api_key:
        try:
            ai_result = await classify_by_ai(message, api_key, model_provider)

            if rule_result and ai_result.intent == rule_result.intent:
                merged = min(
                    MAX_RULE_CONFIDENCE,
                    (rule_result.confidence + ai_result.confidence) / 2 + AGREEMENT_BONUS,
                )
                logger.info(f"🤝 Rules and AI agree on {ai_result.intent.value} ({merged:.2f})")
                return ClassificationResult(
                    intent=ai_result.intent,
                    confidence=merged,
                    method=ClassificationMethod.RULE_BASED,
                    secondary_intents=rule_result.secondary_intents,
                    reasoning=f"Both rule-based and AI agreed on {ai_result.intent.value}",
                )

            logger.info(
                f"🤖 AI intent: {ai_result.intent.value} (confidence={ai_result.confidence:.2f})"
            )
            return ai_result

        except ClassificationError as e:
            logger.warning(f"AI classification failed, using rule result: {e}")

    if rule_result:
        return rule_result

    logger.info("No classification signal, defaulting to symptom reporting")
    return ClassificationResult(
        intent=MedicalIntent.SYMPTOM_REPORTING,
        confidence=FALLBACK_CONFIDENCE,
        method=ClassificationMethod.FALLBACK,
        reasoning="All classification methods failed, defaulting to symptom reporting",
    )
