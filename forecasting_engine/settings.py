# forecasting_engine/settings.py
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Manages application configuration using environment variables."""
    # Default values are used if the environment variable is not set
    db_connection_string: str = "sqlite:///./foodcast.db"
    log_level: str = "INFO"

    # --- Forecasting defaults ---
    forecast_period: Literal["daily", "weekly", "monthly"] = "daily"
    forecast_horizon: int = 7
    ensemble_method: Literal["average", "weighted", "best_performer"] = "weighted"
    season_length: int = 7
    anomaly_threshold: float = 2.5
    max_anomalies: int = 5
    min_observations: int = 7

    # Seed for the random source used by the model bank. None means unseeded.
    random_seed: Optional[int] = None

    # This tells Pydantic to look for a .env file
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding='utf-8', extra='ignore')

# Create a single, importable instance of the settings
settings = Settings()
