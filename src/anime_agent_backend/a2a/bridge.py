"""Translate inbound A2A JSON-RPC requests into agent calls and back."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..agents.base import Agent, AgentResponse
from ..agents.registry import AgentRegistry
from ..telemetry import metrics
from .models import (
    AGENT_NOT_FOUND,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    A2AMessage,
    AgentCard,
    Artifact,
    MessageParams,
    Part,
    Task,
    TaskStatus,
    new_id,
    rpc_error,
    rpc_result,
)

logger = logging.getLogger(__name__)

_ROLE_MAP = {"agent": "assistant", "assistant": "assistant", "system": "system"}


@dataclass
class BridgeResponse:
    status_code: int
    body: Dict[str, Any]


def _chat_messages(messages: List[A2AMessage]) -> List[Dict[str, str]]:
    return [{"role": _ROLE_MAP.get(message.role, "user"), "content": message.content()} for message in messages]


def build_task(
    agent_id: str,
    messages: List[A2AMessage],
    response: AgentResponse,
    *,
    task_id: Optional[str] = None,
    context_id: Optional[str] = None,
) -> Task:
    reply_parts = [Part(kind="text", text=response.text or "")]
    artifacts = [Artifact(name=f"{agent_id}Response", parts=reply_parts)]
    if response.tool_results:
        artifacts.append(
            Artifact(
                name="ToolResults",
                parts=[Part(kind="data", data=result.to_payload()) for result in response.tool_results],
            )
        )

    history = [
        message.model_copy(
            update={
                "message_id": message.message_id or new_id(),
                "task_id": message.task_id or task_id or new_id(),
            }
        )
        for message in messages
    ]
    history.append(A2AMessage(role="agent", parts=reply_parts, message_id=new_id(), task_id=task_id or new_id()))

    return Task(
        id=task_id or new_id(),
        context_id=context_id or new_id(),
        status=TaskStatus(
            state="completed",
            message=A2AMessage(role="agent", parts=reply_parts, message_id=new_id()),
        ),
        artifacts=artifacts,
        history=history,
    )


class A2ABridge:
    def __init__(self, registry: AgentRegistry) -> None:
        self.registry = registry

    def handle_rpc(self, agent_id: str, body: Any) -> BridgeResponse:
        """Strict JSON-RPC 2.0 entry point."""
        if not isinstance(body, dict):
            return BridgeResponse(200, rpc_error(None, INVALID_REQUEST, "Invalid Request: body must be a JSON object"))
        request_id = body.get("id")
        if body.get("jsonrpc") != JSONRPC_VERSION or not request_id:
            return BridgeResponse(
                200,
                rpc_error(
                    request_id or None,
                    INVALID_REQUEST,
                    'Invalid Request: jsonrpc must be "2.0" and id is required',
                ),
            )

        agent = self.registry.find(agent_id)
        if agent is None:
            return BridgeResponse(200, rpc_error(request_id, INVALID_PARAMS, f"Agent '{agent_id}' not found"))

        try:
            params = MessageParams.model_validate(body.get("params") or {})
        except ValidationError as exc:
            return BridgeResponse(200, rpc_error(request_id, INVALID_PARAMS, f"Invalid params: {exc.error_count()} error(s)"))
        return self._run(agent, params, request_id)

    def handle_message(self, agent_id: str, body: Any) -> BridgeResponse:
        """Lenient entry point accepting either a JSON-RPC envelope or a bare message body."""
        body = body if isinstance(body, dict) else {}
        request_id = body.get("id")

        agent = self.registry.find(agent_id)
        if agent is None:
            return BridgeResponse(404, rpc_error(request_id or None, AGENT_NOT_FOUND, f"Agent '{agent_id}' not found"))

        source = body.get("params") if isinstance(body.get("params"), dict) else {}
        merged = {
            "message": source.get("message") or body.get("message"),
            "messages": source.get("messages") or body.get("messages"),
            "contextId": source.get("contextId") or body.get("contextId"),
            "taskId": source.get("taskId") or body.get("taskId"),
        }
        try:
            params = MessageParams.model_validate(merged)
        except ValidationError as exc:
            return BridgeResponse(
                400,
                rpc_error(request_id or None, INVALID_PARAMS, f"Invalid params: {exc.error_count()} error(s)"),
            )
        return self._run(agent, params, request_id or new_id())

    def agent_card(self, agent_id: str, request_id: Any = 1) -> BridgeResponse:
        agent = self.registry.find(agent_id)
        if agent is None:
            return BridgeResponse(404, rpc_error(request_id, AGENT_NOT_FOUND, f"Agent '{agent_id}' not found"))

        card = AgentCard(
            name=agent.name or agent_id,
            description=agent.description or f"Agent: {agent_id}",
            capabilities={
                "tools": [{"name": tool.name, "description": tool.description or tool.name} for tool in agent.tools],
                "instructions": agent.instructions,
            },
        )
        return BridgeResponse(200, rpc_result(request_id, card.to_payload()))

    def _run(self, agent: Agent, params: MessageParams, request_id: Any) -> BridgeResponse:
        messages = params.message_list()
        try:
            with metrics.timer("a2a.request", agent=agent.agent_id):
                response = agent.generate(_chat_messages(messages))
        except Exception as exc:
            logger.exception("A2A request to %s failed", agent.agent_id)
            metrics.increment("a2a.error", agent=agent.agent_id)
            return BridgeResponse(500, rpc_error(None, INTERNAL_ERROR, "Internal error", {"details": str(exc)}))

        task = build_task(
            agent.agent_id,
            messages,
            response,
            task_id=params.task_id,
            context_id=params.context_id,
        )
        metrics.increment("a2a.completed", agent=agent.agent_id)
        return BridgeResponse(200, rpc_result(request_id, task.to_payload()))
