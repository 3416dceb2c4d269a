"""Triage turn workflow.

    interview ──(question / unparsed)──> END
        │
        └──(classification)──> final_response ──> END

The caller's API key and model provider travel in ``config["configurable"]`` so
they never enter graph state.
"""

import logging
from typing import Any, Dict

from langchain_core.messages import SystemMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from salamat.config.llm_config import ModelProvider, get_chat_model
from salamat.exceptions import UpstreamUnavailableError
from salamat.models.triage import TriageCategory
from salamat.triage.parsing import (
    TriageClassificationReply,
    parse_final_content,
    parse_triage_reply,
)
from salamat.triage.prompts import END_RESPONSE_PROMPTS, FORCE_CLASSIFICATION_PROMPT
from salamat.triage.state import TriageTurnState
from salamat.triage.templates import get_triage_template
from salamat.utils.llm_helpers import invoke_llm_with_timeout, to_langchain_messages

logger = logging.getLogger(__name__)

FAILSAFE_CATEGORY = TriageCategory.SEMI_URGENT


def _is_known_classification(reply) -> bool:
    if not isinstance(reply, TriageClassificationReply):
        return False
    return reply.category in TriageCategory.__members__


def _configurable(config: RunnableConfig) -> Dict[str, Any]:
    return (config or {}).get("configurable", {})


def _model(config: RunnableConfig, profile: str):
    options = _configurable(config)
    provider: ModelProvider = options.get("model_provider") or get_chat_model
    return provider(profile, options.get("api_key", ""))


async def interview_node(state: TriageTurnState, config: RunnableConfig) -> dict:
    """Ask the triage model for the next question or a classification."""
    session_id = state.get("session_id")
    questions_asked = state["questions_asked"]
    forced = questions_asked >= state["question_ceiling"]

    logger.info(
        f"🩺 Interview turn {questions_asked} for session {session_id}"
        + (" (forcing classification)" if forced else "")
    )

    messages = to_langchain_messages(state["conversation"])
    if forced:
        messages.append(SystemMessage(content=FORCE_CLASSIFICATION_PROMPT))

    # UpstreamUnavailableError propagates: the caller keeps the turn uncommitted
    raw = await invoke_llm_with_timeout(_model(config, "triage"), messages)
    reply = parse_triage_reply(raw)

    if forced and not _is_known_classification(reply):
        logger.warning(
            f"⚠️ No usable classification at the question ceiling, "
            f"falling back to {FAILSAFE_CATEGORY.value}"
        )
        reply = TriageClassificationReply(category=FAILSAFE_CATEGORY.value)

    return {"raw_reply": raw, "reply": reply, "forced": forced}


def route_after_interview(state: TriageTurnState) -> str:
    """Route to the final response only when the model classified."""
    if isinstance(state.get("reply"), TriageClassificationReply):
        return "final_response"
    return "end"


async def final_response_node(state: TriageTurnState, config: RunnableConfig) -> dict:
    """Generate per-section content for the classified category."""
    reply: TriageClassificationReply = state["reply"]

    # TemplateNotFoundError propagates: fatal for this turn
    template = get_triage_template(reply.category)
    logger.info(f"📋 Generating final response for {template.category.value}")

    # The category prompt replaces the interview system prompt
    messages = [SystemMessage(content=END_RESPONSE_PROMPTS[template.category])]
    messages.extend(to_langchain_messages(state["conversation"][1:]))

    try:
        raw = await invoke_llm_with_timeout(_model(config, "triage_final"), messages)
    except UpstreamUnavailableError as e:
        logger.error(f"Final response generation failed, using template only: {e}")
        return {"template": template, "final_content": None, "template_only": True}

    return {
        "template": template,
        "final_content": parse_final_content(raw),
        "template_only": False,
    }


def build_triage_graph():
    """Build and compile the triage turn workflow."""
    workflow = StateGraph(TriageTurnState)

    workflow.add_node("interview", interview_node)
    workflow.add_node("final_response", final_response_node)

    workflow.set_entry_point("interview")

    workflow.add_conditional_edges(
        "interview",
        route_after_interview,
        {"final_response": "final_response", "end": END},
    )
    workflow.add_edge("final_response", END)

    graph = workflow.compile()
    logger.info("Triage workflow compiled successfully")
    return graph


# Global graph instance
_triage_graph = None


def get_triage_graph():
    """Get or create the compiled triage workflow."""
    global _triage_graph
    if _triage_graph is None:
        _triage_graph = build_triage_graph()
    return _triage_graph
