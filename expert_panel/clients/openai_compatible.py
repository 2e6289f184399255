"""
OpenAI-compatible API client.
Works with DeepSeek, Qwen, Doubao, GLM, Moonshot, Gemini and other OpenAI-compatible APIs.
"""

from typing import Any, Optional

import httpx
from openai import AsyncAzureOpenAI, AsyncOpenAI

from ..config import ModelConfig
from .base import BackendError, BaseClient, Message

# Providers that reject response_format=json_object
NO_JSON_MODE_PROVIDERS = {"moonshot"}


class OpenAICompatibleClient(BaseClient):
    def __init__(
        self,
        api_key: str,
        base_url: Optional[str],
        model_name: str,
        provider: str = "openai",
        timeout: float = 120.0,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model_name = model_name
        self.provider = provider.lower()

        if self.provider == "azure":
            self._client = AsyncAzureOpenAI(
                api_key=api_key,
                azure_endpoint=base_url,
                api_version="2024-05-01-preview",
                http_client=httpx.AsyncClient(timeout=timeout),
            )
        else:
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=httpx.AsyncClient(timeout=timeout),
            )

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        return [msg.to_dict() for msg in messages]

    async def chat(
        self,
        messages: list[Message],
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model_name.strip(),
            "messages": self._convert_messages(messages),
            "temperature": temperature,
        }

        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        if json_mode and self.provider not in NO_JSON_MODE_PROVIDERS:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**kwargs)

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def close(self) -> None:
        await self._client.close()


def create_client(model: ModelConfig, timeout: float = 120.0) -> BaseClient:
    if not model.api_key:
        raise BackendError(f"Model {model.name} is missing API Key")

    return OpenAICompatibleClient(
        api_key=model.api_key.strip(),
        base_url=model.base_url.strip() if model.base_url else None,
        model_name=model.model_id,
        provider=model.provider,
        timeout=timeout,
    )
