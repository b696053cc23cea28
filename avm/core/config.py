import os
from pydantic import BaseModel

class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")
    DEFAULT_CURRENCY: str = os.getenv("CURRENCY", "AED")
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "120"))

    # LLM second opinion
    MODEL_PROVIDER: str = os.getenv("MODEL_PROVIDER", "deepseek")  # mock | deepseek | openai
    DEEPSEEK_API_KEY: str | None = os.getenv("DEEPSEEK_API_KEY")
    DEEPSEEK_BASE_URL: str = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com/v1")
    DEEPSEEK_MODEL: str = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.3"))
    AI_MAX_TOKENS: int = int(os.getenv("AI_MAX_TOKENS", "100"))
    AI_TIMEOUT_SECONDS: float = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))

    # Listings store (Supabase PostgREST)
    LISTINGS_PROVIDER: str = os.getenv("LISTINGS_PROVIDER", "mock")  # mock | http
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    LISTINGS_TABLE: str = os.getenv("LISTINGS_TABLE", "property_listings")
    SCRAPED_TABLE: str = os.getenv("SCRAPED_TABLE", "scraped_properties")

    # Photo search (Bayut on RapidAPI)
    PHOTOS_PROVIDER: str = os.getenv("PHOTOS_PROVIDER", "mock")  # mock | http
    BAYUT_API_KEY: str | None = os.getenv("BAYUT_API_KEY")
    BAYUT_BASE_URL: str = os.getenv("BAYUT_BASE_URL", "https://bayut.p.rapidapi.com")
    BAYUT_LOCATION_ID: str = os.getenv("BAYUT_LOCATION_ID", "5002")  # Dubai

    # Image matching job
    MATCH_BATCH_SIZE: int = int(os.getenv("MATCH_BATCH_SIZE", "50"))
    MATCH_DELAY_SECONDS: float = float(os.getenv("MATCH_DELAY_SECONDS", "0.2"))

    # Security
    API_KEY: str | None = os.getenv("API_KEY")
    RATE_LIMIT_RPM: int = int(os.getenv("RATE_LIMIT_RPM", "60"))
    BATCH_RATE_LIMIT_RPM: int = int(os.getenv("BATCH_RATE_LIMIT_RPM", "2"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Cache
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

settings = Settings()
