"""Error taxonomy for the SalamatBot assistant core.

Every public operation recovers from these locally; they never reach the end
user as raw errors.
"""


class SalamatError(Exception):
    """Base class for assistant errors."""


class ClassificationError(SalamatError):
    """The AI intent-classification pass failed (upstream, JSON, or enum)."""


class ModelResponseParseError(SalamatError):
    """A model reply that was expected to be JSON could not be parsed."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class TemplateNotFoundError(SalamatError):
    """A triage classification has no matching presentation template."""

    def __init__(self, category: str):
        super().__init__(f"No triage template for category: {category}")
        self.category = category


class UpstreamUnavailableError(SalamatError):
    """The external chat-completion call timed out or failed in transport."""


class SessionNotFoundError(SalamatError):
    """No unified session exists for the given identifier."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class UnsupportedActionError(SalamatError):
    """A category module does not handle the requested special action."""
