"""Exception types raised by upstream clients, agents and the study tools."""

from typing import Optional


class AnimeAgentError(Exception):
    """Base class for all application errors."""


class UpstreamServiceError(AnimeAgentError):
    """An upstream HTTP API failed or answered with a non-success status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogNotFoundError(UpstreamServiceError):
    """The anime catalog has no entry for the requested id."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class UnexpectedResponseFormat(AnimeAgentError):
    """An upstream payload matched none of the known response shapes."""

    def __init__(self, message: str = "Unexpected API response format") -> None:
        super().__init__(message)


class DocumentProcessingError(AnimeAgentError):
    """A document could not be fetched, read or parsed."""


class StorageError(AnimeAgentError):
    """Object storage rejected a key or failed to read/write."""


class AgentNotFoundError(AnimeAgentError):
    """No agent is registered under the requested id."""

    def __init__(self, agent_id: str, available: Optional[list] = None) -> None:
        available_text = ", ".join(available or []) or "none"
        super().__init__(f'Agent "{agent_id}" not found. Available agents: {available_text}')
        self.agent_id = agent_id
