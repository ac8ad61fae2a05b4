from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://echos:echos@db:5432/echos"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Civil timezone used to resolve "today" and local day boundaries.
    APP_TIMEZONE: str = "Australia/Sydney"

    OPENAI_API_KEY: Optional[str] = None
    OPENAI_REFLECTION_MODEL: str = "gpt-4o-mini"
    OPENAI_SEARCH_MODEL: str = "gpt-4.1-mini"

    # Web searches allowed per user per local day.
    SEARCH_DAILY_LIMIT: int = 5

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
