import pytest

from verdict_proxy.config.prompts import CategorySpec, PromptRegistry, prompt_registry
from verdict_proxy.config.settings import AppSettings, BackendConfig, ClientConfig, ProxyConfig
from verdict_proxy.constants import VERDICT_QUESTION
from verdict_proxy.core.exceptions import ValidationError


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("BACKEND_BASE_URL", "BACKEND_TIMEOUT_MS", "PROXY_PORT", "PROXY_MAX_BODY_MB", "CLIENT_TIMEOUT_MS"):
            monkeypatch.delenv(var, raising=False)
        app_settings = AppSettings()

        assert app_settings.backend.generate_url == "http://127.0.0.1:11434/api/generate"
        assert app_settings.backend.timeout_ms == 600_000
        assert app_settings.backend.allowed_models == []
        assert app_settings.proxy.port == 23456
        assert app_settings.proxy.max_body_bytes == 50 * 1024 * 1024
        assert app_settings.client.timeout_ms == 600_000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BACKEND_BASE_URL", "http://gpu-box:11434/")
        monkeypatch.setenv("BACKEND_TIMEOUT_MS", "1500")
        monkeypatch.setenv("BACKEND_ALLOWED_MODELS", '["vision-v1"]')
        monkeypatch.setenv("PROXY_PORT", "8080")
        monkeypatch.setenv("CLIENT_MODEL", "llava:13b")

        assert BackendConfig().generate_url == "http://gpu-box:11434/api/generate"
        assert BackendConfig().timeout_ms == 1500
        assert BackendConfig().allowed_models == ["vision-v1"]
        assert ProxyConfig().port == 8080
        assert ClientConfig().model == "llava:13b"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            BackendConfig(timeout_ms=0)


class TestPromptRegistry:
    def test_builtin_categories(self):
        assert set(prompt_registry.list_categories()) >= {"brief", "descriptive", "strict"}

    def test_build_prompt_appends_question(self):
        prompt = prompt_registry.build_prompt("brief")
        assert prompt.startswith(prompt_registry.get("brief").system_prompt)
        assert prompt.endswith(VERDICT_QUESTION)
        assert '"verdict"' in prompt

    def test_unknown_category(self):
        registry = PromptRegistry([CategorySpec("only", "single", "prompt")])
        with pytest.raises(ValidationError, match="Invalid category: missing") as exc_info:
            registry.get("missing")
        assert exc_info.value.details == {"available": ["only"]}
