"""Configuration management using Pydantic Settings"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from predelinq_gateway.domain.signals import RiskWeights, ScoringConfig, SignalToggles


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Database (profile / alert / intervention / audit stores)
    database_url: str = "sqlite:///./predelinq.db"

    # Service
    service_name: str = "predelinq-gateway"
    log_level: str = "INFO"

    # Scoring, e.g. WEIGHTS__SALARY_DELAY=0.2, SIGNALS__VOLATILITY=false
    weights: RiskWeights = Field(default_factory=RiskWeights)
    signals: SignalToggles = Field(default_factory=SignalToggles)

    # Retention
    upload_history_limit: int = 50
    alert_page_size: int = 100

    # Actor recorded when a caller does not name one
    default_operator: str = "system"

    def scoring_config(self) -> ScoringConfig:
        return ScoringConfig(weights=self.weights, signals=self.signals)


settings = Settings()
