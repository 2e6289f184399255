"""
Client for the chat relay server.
The relay forwards {messages, modelConfig, jsonMode} to the upstream provider
and returns the raw chat completion.
"""

from typing import Any, Optional

import httpx

from ..config import ModelConfig
from .base import BackendError, BaseClient, Message


class RelayClient(BaseClient):
    def __init__(
        self,
        relay_url: str,
        model: ModelConfig,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.relay_url = relay_url.rstrip("/")
        self.model = model
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def chat(
        self,
        messages: list[Message],
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        response = await self._http.post(
            f"{self.relay_url}/api/chat",
            json={
                "messages": [m.to_dict() for m in messages],
                "modelConfig": self.model.to_payload(),
                "jsonMode": json_mode,
            },
        )

        if response.is_error:
            raise BackendError(
                f"Backend Error ({response.status_code}): {_error_message(response)}",
                status_code=response.status_code,
            )

        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def close(self) -> None:
        await self._http.aclose()


def _error_message(response: httpx.Response) -> str:
    text = response.text
    try:
        data: Any = response.json()
    except ValueError:
        return text

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if data.get("message"):
            return data["message"]
    return text
