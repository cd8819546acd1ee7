"""Application configuration"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Supabase
    supabase_url: str
    supabase_service_role_key: str
    supabase_anon_key: str

    # LLM gateway (OpenAI-compatible chat completions)
    llm_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    llm_gateway_api_key: str = ""
    llm_model: str = "google/gemini-3-flash-preview"
    llm_timeout_seconds: float = 60.0

    # Widget embedding
    # Origin serving /widget/<id>; loader script posts commands only to this origin
    widget_base_url: str = "https://embed-answer-bot.lovable.app"
    # Public URL of this API, used in embed snippets
    public_api_url: str = "http://localhost:8000"
    widget_message_prefix: str = "sitewise"
    widget_global_name: str = "SiteWise"

    # Application
    environment: str = "development"
    cors_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
