from .base import Agent, AgentResponse, AgentTool, ToolResult
from .registry import AgentRegistry

__all__ = ["Agent", "AgentRegistry", "AgentResponse", "AgentTool", "ToolResult"]
