"""
Configuration management for Expert Panel.
Supports ~/.expert-panel config file for model backends and API keys.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass
class ModelConfig:
    id: str
    name: str
    provider: str = "OpenAI"
    model_id: str = ""
    enabled: bool = True
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    def is_configured(self) -> bool:
        return bool(self.api_key and self.model_id)

    def to_payload(self) -> dict[str, Any]:
        # camelCase keys are what the relay server reads
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "modelId": self.model_id,
            "isEnabled": self.enabled,
            "apiKey": self.api_key,
            "baseUrl": self.base_url,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ModelConfig":
        return cls(
            id=str(data["id"]),
            name=data.get("name", data["id"]),
            provider=data.get("provider", "OpenAI"),
            model_id=data.get("modelId", ""),
            enabled=data.get("isEnabled", True),
            api_key=data.get("apiKey"),
            base_url=data.get("baseUrl"),
        )


DEFAULT_MODELS: list[tuple[str, str, str, str, str]] = [
    ("m1", "Gemini 3 Pro", "Google", "gemini-3-pro-preview", "https://generativelanguage.googleapis.com/v1beta/openai"),
    ("m2", "Gemini 3 Flash", "Google", "gemini-3-flash-preview", "https://generativelanguage.googleapis.com/v1beta/openai"),
    ("m3", "DeepSeek V3", "DeepSeek", "deepseek-chat", "https://api.deepseek.com/v1"),
    ("m4", "Qwen Max", "Aliyun", "qwen-max", "https://dashscope.aliyuncs.com/compatible-mode/v1"),
    ("m5", "Doubao Pro", "ByteDance", "doubao-pro", "https://ark.cn-beijing.volces.com/api/v3"),
    ("m6", "GPT-4o", "OpenAI", "gpt-4o", "https://api.openai.com/v1"),
    ("m7", "GLM-4", "Zhipu", "glm-4", "https://open.bigmodel.cn/api/paas/v4"),
]


def default_models() -> list[ModelConfig]:
    return [
        ModelConfig(id=mid, name=name, provider=provider, model_id=model_id, base_url=base_url)
        for mid, name, provider, model_id, base_url in DEFAULT_MODELS
    ]


@dataclass
class Config:
    models: list[ModelConfig] = field(default_factory=list)
    default_model: Optional[str] = None
    language: str = "zh"
    max_tokens: int = 4096
    temperature: float = 0.7
    delegation_delay: float = 1.0
    relay_url: Optional[str] = None
    project_file: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if not self.models:
            self.models = default_models()

    def get_model(self, model_id: str) -> Optional[ModelConfig]:
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def get_enabled_models(self) -> list[ModelConfig]:
        return [m for m in self.models if m.enabled]

    def get_configured_models(self) -> list[ModelConfig]:
        return [m for m in self.models if m.enabled and m.is_configured()]

    def get_default_model(self) -> Optional[ModelConfig]:
        if self.default_model:
            model = self.get_model(self.default_model)
            if model and model.enabled:
                return model
        enabled = self.get_enabled_models()
        return enabled[0] if enabled else None


CONFIG_FILE_NAME = ".expert-panel"


def get_config_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def load_config(path: Optional[Path] = None) -> Config:
    config_path = path or get_config_path()
    if not config_path.exists():
        return Config()

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return parse_config(data)


def parse_config(data: dict) -> Config:
    models = []

    for index, model_data in enumerate(data.get("models") or [], start=1):
        models.append(ModelConfig(
            id=str(model_data.get("id", f"m{index}")),
            name=model_data.get("name", model_data.get("model_id", f"model-{index}")),
            provider=model_data.get("provider", "OpenAI"),
            model_id=model_data.get("model_id", ""),
            enabled=model_data.get("enabled", True),
            api_key=model_data.get("api_key"),
            base_url=model_data.get("base_url"),
        ))

    return Config(
        models=models,
        default_model=data.get("default_model"),
        language=data.get("language", "zh"),
        max_tokens=data.get("max_tokens", 4096),
        temperature=data.get("temperature", 0.7),
        delegation_delay=data.get("delegation_delay", 1.0),
        relay_url=data.get("relay_url"),
        project_file=data.get("project_file"),
        verbose=data.get("verbose", False),
    )


def save_config(config: Config, path: Optional[Path] = None) -> None:
    config_path = path or get_config_path()

    data: dict[str, Any] = {
        "language": config.language,
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "delegation_delay": config.delegation_delay,
        "verbose": config.verbose,
        "models": [],
    }

    if config.default_model:
        data["default_model"] = config.default_model
    if config.relay_url:
        data["relay_url"] = config.relay_url
    if config.project_file:
        data["project_file"] = config.project_file

    for model in config.models:
        model_data: dict[str, Any] = {
            "id": model.id,
            "name": model.name,
            "provider": model.provider,
            "model_id": model.model_id,
        }
        if not model.enabled:
            model_data["enabled"] = False
        if model.api_key:
            model_data["api_key"] = model.api_key
        if model.base_url:
            model_data["base_url"] = model.base_url
        data["models"].append(model_data)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)


def create_sample_config(path: Optional[Path] = None) -> None:
    config_path = path or get_config_path()
    if config_path.exists():
        return

    sample_config = """# Expert Panel Configuration
# Copy this file to ~/.expert-panel and fill in your API keys

language: zh
default_model: m3

max_tokens: 4096
temperature: 0.7
verbose: false

# Seconds to wait before teammates pick up a delegated follow-up task
delegation_delay: 1.0

# Optional relay server that forwards chat requests (POST {relay_url}/api/chat)
# relay_url: "http://localhost:3001"

# Model backends (OpenAI-compatible chat completions)
# Each model needs: id, name, model_id, api_key, base_url
# Optional: provider (default: OpenAI), enabled
models:
  - id: m3
    name: "DeepSeek V3"
    provider: "DeepSeek"
    model_id: "deepseek-chat"
    api_key: "your-api-key"
    base_url: "https://api.deepseek.com/v1"

  - id: m6
    name: "GPT-4o"
    provider: "OpenAI"
    model_id: "gpt-4o"
    api_key: "your-api-key"
    base_url: "https://api.openai.com/v1"

  - id: m8
    name: "Kimi"
    provider: "Moonshot"
    model_id: "moonshot-v1-8k"
    api_key: "your-api-key"
    base_url: "https://api.moonshot.cn/v1"
"""

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(sample_config)
