"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "finsight-engine"
    log_level: str = "INFO"

    # Cash-flow forecasting
    forecast_window_months: int = 6
    default_horizon_months: int = 6
    max_horizon_months: int = 24

    # Budget analysis
    budget_recent_months: int = 3

    # Portfolio
    benchmark_name: str = "S&P 500"


settings = Settings()
