from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    POSTGRES_DSN: str = ""
    ENVIRONMENT: str = "local"

    # Hosted auth provider (Supabase Auth)
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    PASSWORD_RESET_REDIRECT_URL: str = "http://localhost:5173/reset-password"

    # Browser origins allowed to call the API (JSON list in the environment)
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Measurements
    MEASUREMENTS_PAGE_SIZE: int = 20
    CHART_MAX_DAYS: int = 30

    # Calendar-day semantics for chart buckets and labels
    DISPLAY_TIMEZONE: str = "America/Argentina/Buenos_Aires"

    LOG_LEVEL: str = "INFO"


settings = Settings()
