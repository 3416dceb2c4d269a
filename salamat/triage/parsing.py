"""Parsing of triage model replies into a closed set of tagged variants."""

import logging
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from salamat.exceptions import ModelResponseParseError
from salamat.utils.llm_helpers import load_json_object

logger = logging.getLogger(__name__)


class TriageQuestion(BaseModel):
    """The model asked another interview question."""

    model_config = ConfigDict(frozen=True)

    type: Literal["question"] = "question"
    message: str
    options: List[str] = Field(default_factory=list)

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, value):
        if value is None:
            return []
        if not isinstance(value, list):
            return [str(value)]
        return [str(option) for option in value if option is not None]


class TriageClassificationReply(BaseModel):
    """The model emitted a final urgency classification.

    ``category`` stays a string here; the template lookup decides whether it is known.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["classification"] = "classification"
    category: str

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        if not isinstance(value, str):
            raise ValueError("category must be a string")
        return value.strip().upper()


class UnparsedReply(BaseModel):
    """The model ignored the JSON contract; ``raw`` is shown to the user verbatim."""

    model_config = ConfigDict(frozen=True)

    type: Literal["unparsed"] = "unparsed"
    raw: str


TriageReply = Annotated[
    Union[TriageQuestion, TriageClassificationReply, UnparsedReply],
    Field(discriminator="type"),
]

_reply_adapter: TypeAdapter = TypeAdapter(TriageReply)


def parse_triage_reply(raw: str) -> Union[TriageQuestion, TriageClassificationReply, UnparsedReply]:
    """
    Parse one interview reply.

    Args:
        raw: Model reply text, possibly wrapped in markdown fences

    Returns:
        TriageQuestion, TriageClassificationReply, or UnparsedReply(raw) when the
        reply is not a recognizable control payload
    """
    try:
        payload = load_json_object(raw)
    except ModelResponseParseError as e:
        logger.warning(f"Triage reply is not JSON, using raw text: {e}")
        return UnparsedReply(raw=raw)

    reply_type = payload.get("type")
    if reply_type == "question" and not isinstance(payload.get("message"), str):
        # a question with no usable text still has to show something
        payload = {**payload, "message": raw}

    if reply_type not in ("question", "classification"):
        logger.warning(f"Triage reply has unknown type {reply_type!r}, using raw text")
        return UnparsedReply(raw=raw)

    try:
        return _reply_adapter.validate_python(payload)
    except ValidationError as e:
        logger.warning(f"Triage reply failed validation, using raw text: {e}")
        return UnparsedReply(raw=raw)


def parse_final_content(raw: str) -> dict:
    """Parse the final-response JSON, falling back to a single assessment key."""
    try:
        return load_json_object(raw)
    except ModelResponseParseError as e:
        logger.warning(f"Final triage content is not JSON, using raw text: {e}")
        return {"comprehensive_assessment": raw}
