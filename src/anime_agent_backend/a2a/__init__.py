from .bridge import A2ABridge, BridgeResponse
from .client import A2AClient, A2AExchange

__all__ = ["A2ABridge", "A2AClient", "A2AExchange", "BridgeResponse"]
