from pydantic_settings import BaseSettings
from typing import List, Any


def parse_name_list(v: Any) -> List[str]:
    """Parse a comma-separated list from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Aether"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ==========================================
    # Generative backend (Anthropic)
    # ==========================================
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = ""  # Empty means use default Anthropic URL
    ANTHROPIC_MODEL: str = "claude-sonnet-4-5-20250929"
    ANTHROPIC_MAX_TOKENS: int = 32000
    ANTHROPIC_TEMPERATURE: float = 0.6
    ANTHROPIC_TIMEOUT: int = 600  # seconds, a full project is a long stream
    ANTHROPIC_MAX_RETRIES: int = 2

    # ==========================================
    # Generation
    # ==========================================
    MAX_PROMPT_LENGTH: int = 4000
    PREVIEW_FILE_NAME: str = "preview.html"
    REPLAY_CHUNK_SIZE: int = 64
    INDEX_FILE_NAMES_STR: str = "index.html,index.htm"

    @property
    def INDEX_FILE_NAMES(self) -> List[str]:
        """File names whose content doubles as the preview document"""
        return parse_name_list(self.INDEX_FILE_NAMES_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Empty disables the rotating file handler

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create settings instance
settings = Settings()
