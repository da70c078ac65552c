"""Registry of in-process agents, keyed by agent id."""

from typing import Dict, List

from ..errors import AgentNotFoundError
from .base import Agent


class AgentRegistry:
    """Lookup handed to every collaborator that needs a sibling agent."""

    def __init__(self):
        self._agents: Dict[str, Agent] = {}

    def register(self, agent: Agent) -> Agent:
        """Register an agent under its ``agent_id``."""
        self._agents[agent.agent_id] = agent
        return agent

    def get(self, agent_id: str) -> Agent:
        """Get an agent by id, raising ``AgentNotFoundError`` when absent."""
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id, self.list_ids())
        return agent

    def find(self, agent_id: str):
        return self._agents.get(agent_id)

    def list_ids(self) -> List[str]:
        """Get all registered agent ids."""
        return list(self._agents.keys())

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents
