from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
import os

class Settings(BaseSettings):
    """Library settings loaded from .env.gdata (or custom env file)"""

    # Pydantic v2 configuration - Pylance may show false positive warning
    # Allow overriding env_file via GDATA_ENV_FILE environment variable
    model_config = SettingsConfigDict(  # type: ignore[misc]
        env_file=os.environ.get('GDATA_ENV_FILE', '.env.gdata'),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_CATEGORIES: str = ""

    # XML wire format
    XML_ENCODING: str = "utf-8"
    XML_WRITE_HEADER: bool = False
    XML_PRETTY_PRINT: bool = False
    # Valid values: "lxml", "expat"
    XML_EVENT_SOURCE: str = "lxml"

    # Service client
    GDATA_VERSION: str = "2.0"
    HTTP_TIMEOUT: float = 30.0  # seconds
    USER_AGENT: str = "gdata-wire/1.0"

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL.upper()

    @property
    def log_categories(self) -> list[str]:
        if not self.LOG_CATEGORIES:
            return []
        return [cat.strip() for cat in self.LOG_CATEGORIES.split(',')]

    @property
    def xml_encoding(self) -> str:
        return self.XML_ENCODING

    @property
    def xml_write_header(self) -> bool:
        return self.XML_WRITE_HEADER

    @property
    def xml_pretty_print(self) -> bool:
        return self.XML_PRETTY_PRINT

    @property
    def xml_event_source(self) -> str:
        return self.XML_EVENT_SOURCE.lower()

    @property
    def gdata_version(self) -> str:
        return self.GDATA_VERSION

    @property
    def http_timeout(self) -> float:
        return self.HTTP_TIMEOUT

    @property
    def user_agent(self) -> str:
        return self.USER_AGENT

@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
