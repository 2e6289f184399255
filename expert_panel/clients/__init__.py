"""
API clients for model providers.
All providers use the OpenAI-compatible chat completion format, directly or through the relay.
"""

from .base import BackendError, BaseClient, Message, Role
from .backend import BACKEND_ERRORS, ChatBackend
from .openai_compatible import OpenAICompatibleClient, create_client
from .relay import RelayClient

__all__ = [
    "BACKEND_ERRORS",
    "BackendError",
    "BaseClient",
    "ChatBackend",
    "Message",
    "OpenAICompatibleClient",
    "RelayClient",
    "Role",
    "create_client",
]
