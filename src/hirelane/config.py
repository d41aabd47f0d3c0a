from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Hirelane"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/hirelane.db"
    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./data/uploads")

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_chat: str = "gpt-4-turbo-preview"
    openai_model_embedding: str = "text-embedding-ada-002"
    openai_model_analysis: str = "gpt-4o-mini"
    openai_timeout_sec: int = 60
    chat_temperature: float = 0.7
    chat_max_tokens: int = 1000

    local_llm_enabled: bool = True
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    llm_router_default: str = "openai"
    llm_router_chat_provider: str = "openai"
    llm_router_embed_provider: str = "openai"
    llm_router_analyze_provider: str = "openai"
    embedding_retry_attempts: int = 3

    search_timeout_sec: float = 10.0
    search_default_limit: int = 10
    chat_search_limit: int = 50

    min_criteria_score: int = 50
    default_matching_threshold: int = 75
    default_average_skill_fit: int = 60
    default_bias_score: int = 85
    meeting_code_max_attempts: int = 200

    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/0"
    celery_dispatch_enabled: bool = True
    task_max_attempts: int = 5
    task_backoff_base_sec: float = 2.0
    task_backoff_max_sec: float = 300.0
    task_time_limit_sec: int = 300
    task_soft_time_limit_sec: int = 240
    task_visibility_timeout_sec: int = 360

    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
