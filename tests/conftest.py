"""
Shared fixtures: a small team and a scripted chat backend.
"""

import asyncio
from typing import Callable, Optional, Union

import pytest

from expert_panel.clients import Message
from expert_panel.config import ModelConfig
from expert_panel.experts import Expert, ExpertRole, Team
from expert_panel.i18n import Language, set_language

Reply = Union[str, Exception, Callable[[list[Message]], str]]


class ScriptedBackend:
    """Answers each expert from a script keyed by expert name.

    The acting expert is read from the "You are <name>." system message.
    A list of replies is consumed one per call; an Exception reply is raised.
    """

    def __init__(self, script: Optional[dict[str, Union[Reply, list[Reply]]]] = None, default: str = "OK"):
        self.script = script or {}
        self.default = default
        self.calls: list[tuple[str, list[Message]]] = []
        self.gates: dict[str, asyncio.Event] = {}

    @staticmethod
    def speaker(messages: list[Message]) -> str:
        return messages[0].content[len("You are "):-1]

    def gate(self, name: str) -> asyncio.Event:
        """Hold calls for ``name`` until the returned event is set."""
        self.gates[name] = asyncio.Event()
        return self.gates[name]

    def calls_for(self, name: str) -> list[list[Message]]:
        return [m for who, m in self.calls if who == name]

    async def complete(self, messages, model=None, json_mode=False):
        name = self.speaker(messages)
        self.calls.append((name, messages))
        if name in self.gates:
            await self.gates[name].wait()
        else:
            await asyncio.sleep(0)

        reply = self.script.get(name, self.default)
        if isinstance(reply, list):
            reply = reply.pop(0) if reply else self.default
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(messages)
        return reply


@pytest.fixture(autouse=True)
def chinese_messages():
    set_language(Language.ZH)
    yield
    set_language(Language.ZH)


@pytest.fixture
def alice():
    return Expert(id="a", name="Alice", role=ExpertRole.VENTURE, description="Investor.")


@pytest.fixture
def bob():
    return Expert(id="b", name="Bob", role=ExpertRole.LEGAL, description="Lawyer.")


@pytest.fixture
def carol():
    return Expert(id="c", name="Carol", role=ExpertRole.TECHNOLOGY, description="CTO.")


@pytest.fixture
def team(alice, bob, carol):
    return Team(members=[alice, bob, carol])


@pytest.fixture
def model():
    return ModelConfig(id="m1", name="Test Model", model_id="test-model", api_key="sk-test")
