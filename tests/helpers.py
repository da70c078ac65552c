"""Shared fakes for HTTP sessions and the OpenAI client."""

import json
from types import SimpleNamespace
from unittest import mock


def fake_response(payload=None, status_code=200, *, invalid_json=False):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if invalid_json:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def fake_session(*responses):
    session = mock.Mock()
    session.get.side_effect = list(responses)
    return session


def tool_call(name, arguments, call_id="call-1"):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=json.dumps(arguments)),
    )


def chat_message(content=None, tool_calls=None):
    return SimpleNamespace(content=content, tool_calls=tool_calls)


class FakeOpenAI:
    """Replays scripted chat messages and records every completion request."""

    def __init__(self, *messages):
        self._messages = list(messages)
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        message = self._messages.pop(0)
        if isinstance(message, Exception):
            raise message
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class ScriptedAgent:
    """Stands in for an ``Agent``; returns canned text or raises a canned error."""

    def __init__(self, agent_id, *replies, name="Scripted Agent"):
        self.agent_id = agent_id
        self.name = name
        self.description = "Test agent"
        self.instructions = "Be brief."
        self.tools = []
        self._replies = list(replies)
        self.prompts = []

    def generate(self, messages, *, allow_tools=True):
        from anime_agent_backend.agents.base import AgentResponse

        self.prompts.append((messages, allow_tools))
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, AgentResponse) else AgentResponse(text=reply)


def registry_with(*agents):
    from anime_agent_backend.agents.registry import AgentRegistry

    registry = AgentRegistry()
    for agent in agents:
        registry.register(agent)
    return registry
