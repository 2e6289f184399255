"""
Chat backend: the single "complete a prompt" capability used by the orchestrator.
Chooses relay or direct client per model, retries transient failures.
"""

import asyncio
import random
from typing import Optional

import httpx
import openai
from rich.console import Console

from .. import stats
from ..config import Config, ModelConfig
from .base import BackendError, BaseClient, Message, Role
from .openai_compatible import create_client
from .relay import RelayClient

console = Console()

RETRYABLE_STATUS = {429, 503}

BACKEND_ERRORS = (BackendError, openai.OpenAIError, httpx.HTTPError)


def is_transient(error: BaseException) -> bool:
    if isinstance(error, (openai.APIConnectionError, httpx.TransportError)):
        return True
    if isinstance(error, openai.APIStatusError):
        return error.status_code in RETRYABLE_STATUS
    if isinstance(error, BackendError):
        return error.status_code in RETRYABLE_STATUS
    return False


class ChatBackend:
    def __init__(
        self,
        config: Config,
        max_retries: int = 3,
        base_delay: float = 2.0,
        jitter: float = 1.0,
    ):
        self.config = config
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.jitter = jitter
        self._clients: dict[str, BaseClient] = {}

    def resolve_model(self, model: Optional[ModelConfig] = None) -> ModelConfig:
        if model is not None:
            return model
        default = self.config.get_default_model()
        if default is None:
            raise BackendError("No model configured")
        return default

    def _get_client(self, model: ModelConfig) -> BaseClient:
        if model.id not in self._clients:
            if self.config.relay_url:
                self._clients[model.id] = RelayClient(self.config.relay_url, model)
            else:
                self._clients[model.id] = create_client(model)
        return self._clients[model.id]

    async def complete(
        self,
        messages: list[Message],
        model: Optional[ModelConfig] = None,
        json_mode: bool = False,
    ) -> str:
        model = self.resolve_model(model)
        if not model.api_key:
            raise BackendError(f"Model {model.name} is missing API Key")

        client = self._get_client(model)
        stats.record_call(model=model.name, tokens_estimate=sum(len(m.content) for m in messages) // 4)

        for attempt in range(self.max_retries):
            try:
                return await client.chat(
                    messages,
                    json_mode=json_mode,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                )
            except Exception as e:
                if not is_transient(e) or attempt == self.max_retries - 1:
                    stats.record_failure(model.name)
                    raise
                stats.record_retry(model.name)
                wait_time = self.base_delay * (2 ** attempt) + random.random() * self.jitter
                console.print(
                    f"[dim]{model.name} 请求失败 (第 {attempt + 1}/{self.max_retries} 次)，"
                    f"{wait_time:.1f} 秒后重试...[/dim]"
                )
                await asyncio.sleep(wait_time)

        raise BackendError(f"Model {model.name} did not respond")

    async def test_connection(self, model: ModelConfig) -> tuple[bool, str]:
        try:
            await self.complete([Message(role=Role.USER, content="hi")], model)
            return True, "Connected Successfully"
        except Exception as e:
            return False, str(e) or "Connection Failed"

    async def close(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.close()
