from .settings import AppSettings, BackendConfig, ClientConfig, ProxyConfig, settings

__all__ = ["settings", "AppSettings", "BackendConfig", "ProxyConfig", "ClientConfig"]
