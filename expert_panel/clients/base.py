"""
Base client interface and data structures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: Role
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


class BackendError(Exception):
    """Raised when a chat backend cannot produce a completion."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseClient(ABC):
    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        pass

    async def close(self) -> None:
        pass
