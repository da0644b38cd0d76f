from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str

    # JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days, same lifetime as storefront sessions

    # Groq (optional - briefings fall back to plain text without it)
    GROQ_API_KEY: Optional[str] = None

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"
    LOG_REQUEST_ID: bool = True  # Enable request ID tracking

    # Inventory analytics
    VELOCITY_ORDER_STATUSES: List[str] = ["completed", "processing"]
    TURNOVER_ORDER_STATUSES: List[str] = ["completed", "shipped", "processing"]
    RECOMMENDATION_DEFAULT_LIMIT: int = 10

    # Purchase order receiving
    RECEIVING_STRICT: bool = False  # Reject the whole receipt when any line is skipped
    DAMAGED_UNITS_IN_STOCK: bool = False  # Count damaged units toward on-hand stock

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

settings = Settings()
