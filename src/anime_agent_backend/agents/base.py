"""Chat-completions agent with function tools."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union, cast

import openai
from openai.types.chat import ChatCompletionMessageParam
from pydantic import BaseModel

from ..errors import AnimeAgentError
from ..llm_output import strip_thinking
from ..telemetry import metrics, sanitize_text

logger = logging.getLogger(__name__)

Messages = Union[str, Sequence[Dict[str, Any]]]


def to_jsonable(value: Any) -> Any:
    """Convert tool output into plain JSON-compatible data."""
    if hasattr(value, "to_payload"):
        return value.to_payload()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value


@dataclass
class AgentTool:
    """A function the model may call; arguments are validated by ``input_model``."""

    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[Any], Any]

    def definition(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(),
            },
        }

    def invoke(self, raw_arguments: Union[str, Dict[str, Any], None]) -> Any:
        if isinstance(raw_arguments, str):
            arguments = json.loads(raw_arguments) if raw_arguments.strip() else {}
        else:
            arguments = raw_arguments or {}
        params = self.input_model.model_validate(arguments)
        return to_jsonable(self.handler(params))


@dataclass
class ToolResult:
    tool_name: str
    args: Dict[str, Any]
    result: Any

    def to_payload(self) -> Dict[str, Any]:
        return {"toolName": self.tool_name, "args": self.args, "result": self.result}


@dataclass
class AgentResponse:
    text: str
    tool_results: List[ToolResult] = field(default_factory=list)


class Agent:
    """An instruction-following assistant backed by an OpenAI-compatible endpoint."""

    def __init__(
        self,
        agent_id: str,
        *,
        name: str,
        description: str,
        instructions: str,
        client: openai.OpenAI,
        model: str,
        tools: Optional[Sequence[AgentTool]] = None,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        max_tool_rounds: int = 5,
    ) -> None:
        self.agent_id = agent_id
        self.name = name
        self.description = description
        self.instructions = instructions.strip()
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_tool_rounds = max_tool_rounds
        self._tools: Dict[str, AgentTool] = {}
        for tool in tools or []:
            self.add_tool(tool)

    @property
    def tools(self) -> List[AgentTool]:
        return list(self._tools.values())

    def add_tool(self, tool: AgentTool) -> None:
        self._tools[tool.name] = tool

    def generate(self, messages: Messages, *, allow_tools: bool = True) -> AgentResponse:
        """Run the model, executing requested tools for up to ``max_tool_rounds`` rounds.

        The final round is sent without tools so the model must answer in text.
        Helpers that are themselves exposed as tools pass ``allow_tools=False``.
        """
        conversation: List[Dict[str, Any]] = [{"role": "system", "content": self.instructions}]
        if isinstance(messages, str):
            conversation.append({"role": "user", "content": messages})
        else:
            conversation.extend(dict(message) for message in messages)

        tool_results: List[ToolResult] = []
        with metrics.timer("agent.generate", agent=self.agent_id):
            for round_index in range(self.max_tool_rounds + 1):
                offer_tools = allow_tools and bool(self._tools) and round_index < self.max_tool_rounds
                message = self._complete(conversation, offer_tools)
                tool_calls = getattr(message, "tool_calls", None) or []
                if not tool_calls:
                    return AgentResponse(text=strip_thinking(message.content), tool_results=tool_results)

                conversation.append(
                    {
                        "role": "assistant",
                        "content": message.content or "",
                        "tool_calls": [
                            {
                                "id": call.id,
                                "type": "function",
                                "function": {"name": call.function.name, "arguments": call.function.arguments},
                            }
                            for call in tool_calls
                        ],
                    }
                )
                for call in tool_calls:
                    result = self._run_tool(call.function.name, call.function.arguments)
                    tool_results.append(result)
                    conversation.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.id,
                            "content": json.dumps(result.result, default=str),
                        }
                    )

        # Unreachable: the last round offers no tools.
        return AgentResponse(text="", tool_results=tool_results)

    def _complete(self, conversation: List[Dict[str, Any]], offer_tools: bool) -> Any:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": cast(List[ChatCompletionMessageParam], conversation),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if offer_tools:
            kwargs["tools"] = [tool.definition() for tool in self._tools.values()]
        response = self.client.chat.completions.create(**kwargs)
        return response.choices[0].message

    def _run_tool(self, name: str, raw_arguments: Any) -> ToolResult:
        tool = self._tools.get(name)
        try:
            args = json.loads(raw_arguments) if isinstance(raw_arguments, str) and raw_arguments.strip() else {}
        except json.JSONDecodeError:
            args = {}
        if tool is None:
            logger.warning("Agent %s requested unknown tool %s", self.agent_id, name)
            return ToolResult(name, args, {"error": f"Unknown tool: {name}"})

        logger.info("Agent %s calling tool %s with %s", self.agent_id, name, sanitize_text(str(args)))
        metrics.increment("agent.tool_call", agent=self.agent_id, tool=name)
        try:
            result = tool.invoke(raw_arguments)
        except (AnimeAgentError, ValueError, openai.OpenAIError) as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            metrics.increment("agent.tool_error", agent=self.agent_id, tool=name)
            result = {"error": str(exc)}
        return ToolResult(name, args, result)
