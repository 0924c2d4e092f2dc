# Backend configuration settings
from pydantic_settings import BaseSettings
from functools import lru_cache
import os

class Settings(BaseSettings):
    # MongoDB (empty URL keeps scans in memory)
    mongo_url: str = os.environ.get('MONGO_URL', '')
    db_name: str = os.environ.get('DB_NAME', 'zerofalse')

    # CORS
    cors_origins: str = os.environ.get('CORS_ORIGINS', '*')

    # Logging
    log_level: str = os.environ.get('LOG_LEVEL', 'INFO')

    # GitHub App
    github_app_id: str = os.environ.get('GITHUB_APP_ID', '')
    github_private_key: str = os.environ.get('GITHUB_PRIVATE_KEY', '')
    github_webhook_secret: str = os.environ.get('GITHUB_WEBHOOK_SECRET', '')
    github_api_url: str = os.environ.get('GITHUB_API_URL', 'https://api.github.com')
    github_timeout_seconds: float = 30.0

    # Webhook signature failures: 200 keeps GitHub from retrying, 401 is strict
    webhook_reject_status: int = 200

    # PR fan-out
    scan_concurrency: int = 4

    # LLM providers (tried in order: groq, ollama, openai)
    groq_api_key: str = os.environ.get('GROQ_API_KEY', '')
    groq_base_url: str = 'https://api.groq.com/openai/v1'
    groq_model: str = 'llama-3.3-70b-versatile'
    llm_groq_enabled: bool = True

    ollama_base_url: str = 'http://localhost:11434'
    ollama_model: str = 'codellama:7b-code'
    llm_ollama_enabled: bool = False

    openai_api_key: str = os.environ.get('OPENAI_API_KEY', '')
    openai_base_url: str = 'https://api.openai.com/v1'
    openai_model: str = 'gpt-4o-mini'
    llm_openai_enabled: bool = False

    llm_timeout_seconds: float = 15.0
    llm_max_tokens: int = 4000

    @property
    def github_private_key_pem(self) -> str:
        """Private key with escaped newlines restored"""
        return self.github_private_key.replace('\\n', '\n')

    class Config:
        env_file = '.env'
        case_sensitive = False
        extra = 'ignore'  # Allow extra fields from .env

@lru_cache()
def get_settings() -> Settings:
    return Settings()
