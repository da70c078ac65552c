"""Outbound A2A calls to agents served by another instance of this backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

from .models import JSONRPC_VERSION, new_id

logger = logging.getLogger(__name__)


class A2AExchange(BaseModel):
    success: bool
    agent_response: Optional[str] = None
    task_id: Optional[str] = None
    agent_name: Optional[str] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "success": self.success,
            "agentResponse": self.agent_response,
            "taskId": self.task_id,
            "agentName": self.agent_name,
            "error": self.error,
        }
        return {key: value for key, value in payload.items() if value is not None}


def _first_text(message: Optional[Dict[str, Any]]) -> Optional[str]:
    for part in (message or {}).get("parts") or []:
        if part.get("kind") == "text":
            return part.get("text")
    return None


class A2AClient:
    def __init__(self, base_url: str, *, timeout: float = 60.0, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_card(self, agent_id: str) -> Dict[str, Any]:
        response = self._session.get(f"{self.base_url}/a2a/agent/{agent_id}/card", timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError("Agent card response is not a JSON object")
        if "error" in body:
            raise requests.HTTPError(body["error"].get("message", "Agent card request failed"))
        return body["result"]

    def send_message(self, agent_id: str, text: str) -> A2AExchange:
        try:
            card = self.get_card(agent_id)
        except (requests.RequestException, ValueError, KeyError) as exc:
            logger.warning("A2A card lookup for %s failed: %s", agent_id, exc)
            return A2AExchange(
                success=False,
                error=(
                    f'Agent "{agent_id}" not found or not accessible. Make sure the agent is registered '
                    f"and the server is running at {self.base_url}"
                ),
            )

        agent_name = card.get("name")
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": new_id(),
            "method": "message/send",
            "params": {
                "message": {
                    "role": "user",
                    "parts": [{"kind": "text", "text": text}],
                    "kind": "message",
                    "messageId": new_id(),
                }
            },
        }
        try:
            response = self._session.post(
                f"{self.base_url}/a2a/agent/{agent_id}",
                json=payload,
                timeout=self.timeout,
            )
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            return A2AExchange(success=False, error=str(exc), agent_name=agent_name)

        if not isinstance(body, dict):
            return A2AExchange(success=False, error="Unexpected A2A response from agent", agent_name=agent_name)
        if "error" in body:
            message = (body["error"] or {}).get("message") or "Failed to send message to agent"
            return A2AExchange(success=False, error=message, agent_name=agent_name)

        task = body.get("result")
        if not isinstance(task, dict):
            task = {}
        status = task.get("status") or {}
        text_reply = _first_text(status.get("message"))
        if status.get("state") == "completed" and text_reply is None:
            text_reply = "Task completed but no response text available"
        return A2AExchange(
            success=True,
            agent_response=text_reply or "Message sent successfully",
            task_id=task.get("id"),
            agent_name=agent_name,
        )
