from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    anthropic_api_key: Optional[str] = Field(None, alias="ANTHROPIC_API_KEY")
    llm_provider: Optional[str] = Field(None, alias="LLM_PROVIDER")

    gamma_api_base: str = Field("https://api.gamma.app/v2", alias="GAMMA_API_BASE")
    gamma_api_key: Optional[str] = Field(None, alias="GAMMA_API_KEY")
    gamma_timeout_s: float = Field(60.0, alias="GAMMA_TIMEOUT_S")

    browser_headless: bool = Field(True, alias="BROWSER_HEADLESS")
    browser_executable_path: Optional[str] = Field(None, alias="BROWSER_EXECUTABLE_PATH")
    browser_user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        alias="BROWSER_USER_AGENT",
    )
    browser_accept_language: str = Field("en-US,en;q=0.9", alias="BROWSER_ACCEPT_LANGUAGE")

    debug: bool = Field(False, alias="DEBUG")
    env: str = Field("prod", alias="ENV")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
