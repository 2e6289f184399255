"""
Tests for configuration loading and saving.
"""

import yaml

from expert_panel.config import (
    Config,
    ModelConfig,
    create_sample_config,
    load_config,
    parse_config,
    save_config,
)


class TestParseConfig:
    def test_defaults(self):
        config = parse_config({})
        assert config.language == "zh"
        assert config.temperature == 0.7
        assert config.delegation_delay == 1.0
        assert config.relay_url is None
        assert [m.id for m in config.models][:2] == ["m1", "m2"]

    def test_models(self):
        config = parse_config({
            "default_model": "ds",
            "delegation_delay": 0.5,
            "models": [
                {"id": "ds", "name": "DeepSeek", "provider": "DeepSeek", "model_id": "deepseek-chat",
                 "api_key": "sk-1", "base_url": "https://api.deepseek.com/v1"},
                {"model_id": "qwen-max", "enabled": False},
            ],
        })

        assert config.delegation_delay == 0.5
        assert config.get_default_model().name == "DeepSeek"
        second = config.models[1]
        assert second.id == "m2"
        assert second.name == "qwen-max"
        assert not second.enabled
        assert [m.id for m in config.get_configured_models()] == ["ds"]

    def test_default_model_falls_back_to_first_enabled(self):
        config = Config(models=[
            ModelConfig(id="a", name="A", enabled=False),
            ModelConfig(id="b", name="B"),
        ], default_model="a")
        assert config.get_default_model().id == "b"


class TestConfigFile:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope")
        assert config.models
        assert config.get_configured_models() == []

    def test_save_and_load(self, tmp_path):
        path = tmp_path / ".expert-panel"
        config = Config(
            models=[ModelConfig(id="m1", name="GPT", model_id="gpt-4o", api_key="sk-x", base_url="https://x")],
            default_model="m1",
            language="en",
            relay_url="http://localhost:3001",
        )
        save_config(config, path)

        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert raw["models"][0]["api_key"] == "sk-x"

        loaded = load_config(path)
        assert loaded.language == "en"
        assert loaded.relay_url == "http://localhost:3001"
        assert loaded.get_default_model().model_id == "gpt-4o"

    def test_sample_config_is_valid(self, tmp_path):
        path = tmp_path / ".expert-panel"
        create_sample_config(path)

        config = load_config(path)
        assert config.language == "zh"
        assert config.models

    def test_sample_config_does_not_overwrite(self, tmp_path):
        path = tmp_path / ".expert-panel"
        path.write_text("language: en\n", encoding="utf-8")
        create_sample_config(path)
        assert load_config(path).language == "en"


class TestModelConfig:
    def test_payload_keys(self):
        payload = ModelConfig(id="m1", name="GPT", model_id="gpt-4o", api_key="k").to_payload()
        assert payload["modelId"] == "gpt-4o"
        assert payload["apiKey"] == "k"
        assert payload["isEnabled"] is True

    def test_is_configured(self):
        assert ModelConfig(id="m", name="n", model_id="x", api_key="k").is_configured()
        assert not ModelConfig(id="m", name="n", model_id="x").is_configured()

    def test_from_payload(self):
        model = ModelConfig.from_payload({
            "id": "m9",
            "name": "Kimi",
            "provider": "Moonshot",
            "modelId": "moonshot-v1-8k",
            "isEnabled": False,
            "apiKey": "k",
            "baseUrl": "https://api.moonshot.cn/v1",
        })
        assert model.model_id == "moonshot-v1-8k"
        assert model.enabled is False
        assert model.to_payload()["baseUrl"] == "https://api.moonshot.cn/v1"

    def test_from_payload_defaults(self):
        model = ModelConfig.from_payload({"id": 3})
        assert model.id == "3"
        assert model.provider == "OpenAI"
        assert model.enabled is True
        assert model.api_key is None
