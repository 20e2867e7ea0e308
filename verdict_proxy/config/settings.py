from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendConfig(BaseSettings):
    """Inference backend the proxy forwards to"""

    model_config = SettingsConfigDict(env_prefix="BACKEND_")

    base_url: str = Field(default="http://127.0.0.1:11434")
    generate_path: str = Field(default="/api/generate")
    timeout_ms: int = Field(default=600_000, gt=0)
    # Empty list accepts any model name
    allowed_models: list[str] = Field(default_factory=list)

    @property
    def generate_url(self) -> str:
        return self.base_url.rstrip("/") + self.generate_path


class ProxyConfig(BaseSettings):
    """HTTP surface of the proxy"""

    model_config = SettingsConfigDict(env_prefix="PROXY_")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=23456)
    max_body_mb: int = Field(default=50, gt=0)

    @property
    def max_body_bytes(self) -> int:
        return self.max_body_mb * 1024 * 1024


class ClientConfig(BaseSettings):
    """Defaults for the caller-side request wrapper"""

    model_config = SettingsConfigDict(env_prefix="CLIENT_")

    proxy_url: str = Field(default="http://127.0.0.1:23456/api/generate")
    timeout_ms: int = Field(default=600_000, gt=0)
    model: str = Field(default="mistral-small3.1:latest")


class ObservabilityConfig(BaseSettings):
    """Observability configuration"""

    enable_metrics: bool = Field(default=True)
    system_metrics_interval_s: float = Field(default=10.0, gt=0)


class AppSettings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Sub-configurations
    backend: BackendConfig = Field(default_factory=BackendConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


# Global settings instance
settings = AppSettings()
