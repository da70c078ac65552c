"""Agent-to-agent message envelopes carried over JSON-RPC 2.0."""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from ..models import CamelModel

JSONRPC_VERSION = "2.0"

INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
AGENT_NOT_FOUND = -32001


def new_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Part(CamelModel):
    kind: Literal["text", "data"] = "text"
    text: Optional[str] = None
    data: Optional[Any] = None

    def as_text(self) -> str:
        if self.kind == "text":
            return self.text or ""
        return json.dumps(self.data)


class A2AMessage(CamelModel):
    role: str = "user"
    parts: List[Part] = Field(default_factory=list)
    message_id: Optional[str] = None
    task_id: Optional[str] = None
    kind: Literal["message"] = "message"

    def content(self) -> str:
        return "\n".join(part.as_text() for part in self.parts)


class TaskStatus(CamelModel):
    state: str = "completed"
    timestamp: str = Field(default_factory=utc_timestamp)
    message: Optional[A2AMessage] = None


class Artifact(CamelModel):
    artifact_id: str = Field(default_factory=new_id)
    name: str
    parts: List[Part] = Field(default_factory=list)


class Task(CamelModel):
    id: str = Field(default_factory=new_id)
    context_id: str = Field(default_factory=new_id)
    status: TaskStatus
    artifacts: List[Artifact] = Field(default_factory=list)
    history: List[A2AMessage] = Field(default_factory=list)
    kind: Literal["task"] = "task"


class MessageParams(CamelModel):
    message: Optional[A2AMessage] = None
    messages: Optional[List[A2AMessage]] = None
    context_id: Optional[str] = None
    task_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def message_list(self) -> List[A2AMessage]:
        if self.message is not None:
            return [self.message]
        return list(self.messages or [])


class AgentCard(CamelModel):
    name: str
    description: str
    version: str = "1.0.0"
    capabilities: Dict[str, Any] = Field(default_factory=dict)


def rpc_result(request_id: Union[str, int, None], result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(
    request_id: Union[str, int, None],
    code: int,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}
