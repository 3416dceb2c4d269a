"""Shared fixtures: a scripted chat model and a provider handing it out per profile."""

import json
from typing import Dict, List, Optional

import pytest
from langchain_core.messages import AIMessage


class DummyChatModel:
    """Chat model double returning scripted replies in order.

    Running out of replies raises, which the LLM helper reports as an upstream
    failure, the same way a dead provider would look.
    """

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[list] = []

    async def ainvoke(self, messages, *args, **kwargs):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        if not self.replies:
            raise RuntimeError("no scripted reply left")
        return AIMessage(content=self.replies.pop(0))


class DummyProvider:
    """Drop-in for get_chat_model: one DummyChatModel per profile."""

    def __init__(self):
        self.models: Dict[str, DummyChatModel] = {}
        self.requested: List[tuple] = []

    def __call__(self, profile: str, api_key: str) -> DummyChatModel:
        self.requested.append((profile, api_key))
        return self.model(profile)

    def model(self, profile: str) -> DummyChatModel:
        return self.models.setdefault(profile, DummyChatModel())

    def queue(self, profile: str, *replies) -> None:
        """Script replies for a profile; dicts are sent as JSON."""
        for reply in replies:
            if not isinstance(reply, str):
                reply = json.dumps(reply, ensure_ascii=False)
            self.model(profile).replies.append(reply)

    def fail(self, profile: str, error: Exception) -> None:
        self.model(profile).error = error

    def call_count(self, profile: str) -> int:
        return len(self.models[profile].calls) if profile in self.models else 0


def question(message: str, options=None) -> dict:
    return {"type": "question", "message": message, "options": options or []}


def classification(category: str) -> dict:
    return {"type": "classification", "category": category}


@pytest.fixture
def provider() -> DummyProvider:
    return DummyProvider()
