"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # ======================
    # Timezone
    # ======================
    # "today" for the week-recency gate is taken in this zone
    TIMEZONE: str = "America/Toronto"

    # ======================
    # Dashboard backend
    # ======================
    DASHBOARD_API_BASE_URL: str = "http://localhost:5000/api"
    DASHBOARD_API_TOKEN: Optional[str] = None
    RESTAURANT_ID: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 30.0

    CATEGORY_SUMMARY_PATH: str = "/restaurant/profit-loss-category-summary/"
    DASHBOARD_SUMMARY_PATH: str = "/restaurant/dashboard-summary/"
    DASHBOARD_SAVE_PATH: str = "/restaurant/dashboard/"
    RESTAURANT_GOALS_PATH: str = "/restaurant/goals/"
    PROVIDER_CONFIG_PATH: str = "/restaurant/providers/"

    # ======================
    # Weekly entry timing
    # ======================
    SUMMARY_DEBOUNCE_SECONDS: float = 0.25
    LABOR_RATE_PROMPT_DELAY_SECONDS: float = 1.5
    BUDGET_NOTICE_DELAY_SECONDS: float = 2.0

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
