"""LangGraph state definition for one triage interview turn."""

from typing import Any, Dict, List, Optional, TypedDict, Union

from salamat.models.session import ConversationMessage
from salamat.models.triage import TriageTemplate
from salamat.triage.parsing import TriageClassificationReply, TriageQuestion, UnparsedReply


class TriageTurnState(TypedDict, total=False):
    """State for a single triage turn; nothing here outlives the turn."""

    # Inputs (provisional: the user message is included, the counter already bumped)
    session_id: str
    conversation: List[ConversationMessage]
    questions_asked: int
    question_ceiling: int

    # Interview output
    raw_reply: str
    reply: Union[TriageQuestion, TriageClassificationReply, UnparsedReply]
    forced: bool

    # Final response output
    template: Optional[TriageTemplate]
    final_content: Optional[Dict[str, Any]]
    template_only: bool
