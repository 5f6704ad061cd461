from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from autoapply.core.enums import ApplicationGating


class Settings(BaseSettings):
    app_name: str = "AutoApply Job Assistant"
    environment: str = "dev"
    debug: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # An empty key keeps every stage in demo mode.
    llm_provider: str = "ollama"
    llm_model: str = "gpt-oss:120b-cloud"
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 1200
    llm_timeout_seconds: int = 60

    max_applications: int = 5
    match_threshold: float = 70.0
    application_gating: ApplicationGating = ApplicationGating.BEFORE_CAP
    default_min_salary: int = 50000
    max_resume_bytes: int = 10 * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
