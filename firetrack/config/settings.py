"""
Configuration Management for firetrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Engine limits (dead band, projection caps, EPF policy
constants) live here as named settings. Engines receive a CoreSettings
instance as an explicit argument and only fall back to get_settings()
when the caller passes none.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MILESTONES = [
    500_000.0,
    800_000.0,
    1_000_000.0,
    1_250_000.0,
    1_500_000.0,
    2_000_000.0,
    3_000_000.0,
    5_000_000.0,
]


class CoreSettings(BaseSettings):
    """Limits and policy constants used by the computation engines."""

    model_config = SettingsConfigDict(
        env_prefix="FIRETRACK_",
        extra="ignore"
    )

    # Rebalancing
    rebalance_dead_band: float = Field(
        default=50.0,
        ge=0.0,
        description="Gap (home currency) inside which a holding is left alone"
    )
    deviation_threshold_percent: float = Field(
        default=5.0,
        gt=0.0,
        description="Weight drift (percentage points) that raises a warning"
    )

    # Projection caps
    projection_max_points: int = Field(
        default=70,
        ge=1,
        description="Hard cap on points emitted by a single projection run"
    )
    projection_max_age: int = Field(
        default=100,
        ge=1,
        description="Age at which a projection run stops"
    )
    projection_liquid_target_multiple: float = Field(
        default=1.5,
        gt=0.0,
        description="Stop once liquid assets alone reach this multiple of the target"
    )
    default_withdrawal_rate: float = Field(
        default=4.0,
        gt=0.0,
        description="Withdrawal rate (%) used when the configured one is not positive"
    )
    milestone_thresholds: list[float] = Field(
        default_factory=lambda: list(DEFAULT_MILESTONES),
        description="Net-worth thresholds tracked by the milestone ladder"
    )

    # EPF early-withdrawal policy
    epf_withdrawal_threshold: float = Field(
        default=1_300_000.0,
        ge=0.0,
        description="Balance above which EPF savings can be withdrawn early"
    )
    epf_annual_contribution_limit: float = Field(
        default=100_000.0,
        gt=0.0,
        description="Yearly cap on voluntary EPF top-ups"
    )
    enhanced_savings_target_age: int = Field(
        default=45,
        ge=1,
        description="Early-retirement age used for the EPF catch-up schedule"
    )

    @field_validator('milestone_thresholds')
    @classmethod
    def sort_milestones(cls, v: list[float]) -> list[float]:
        """Keep the ladder ascending."""
        return sorted(v)


class StorageSettings(BaseSettings):
    """Local JSON storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FIRETRACK_STORAGE_",
        extra="ignore"
    )

    data_path: str = Field(
        default="portfolio.json",
        description="Path of the JSON file holding the portfolio backup"
    )
    indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentation used when writing the backup"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    default_exchange_rate: float = Field(
        default=4.42,
        gt=0.0,
        description="MYR per USD used for a fresh portfolio"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def core(self) -> CoreSettings:
        return CoreSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an
    ``<name>_error`` entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("core", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
