from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FIELDRULES_", env_file=".env", extra="ignore")

    # Declarations
    DECLARATION_KEY: str = "validate"  # metadata key holding a field's declaration text

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)


@lru_cache
def get_settings() -> Settings:
    return Settings()
