"""FastAPI adapter configuration."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class MyParcelConfig(BaseSettings):
    """Runtime config for the MyParcel adapter.

    Read from ``MYPARCEL_*`` environment variables. The encryption key is
    optional at load time; operations that touch the stored API key fail
    with :class:`~fastapi_myparcel.exceptions.ConfigurationError` when it
    is missing.
    """

    model_config = SettingsConfigDict(env_prefix="MYPARCEL_")

    settings_encryption_key: str | None = None
    api_base_url: str = "https://api.sendmyparcel.be"
    delivery_options_base_url: str = "https://api.myparcel.nl"
    user_agent: str = "fastapi-myparcel"
    default_label_format: Literal["A4", "A6"] | None = None
    delivery_options_cache_ttl: float = 300.0
    request_timeout: float = 30.0
