"""Configuration models describing Closetbook settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ClosetBaseModel(BaseModel):
    """Shared configuration for Closetbook configuration models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(ClosetBaseModel):
    """Where ledger state and photos live on disk.

    Attributes:
        data_dir: Root directory for state files and stored images.
        image_max_dimension: Longest edge, in pixels, that stored photos are scaled down to.
        image_quality: JPEG quality used when re-encoding stored photos.
    """

    data_dir: str = "~/.closetbook"
    image_max_dimension: int = Field(default=1024, gt=0)
    image_quality: int = Field(default=70, ge=1, le=95)


class LedgerDefaults(ClosetBaseModel):
    """Initial values for the ledger settings on a fresh install.

    Attributes:
        budget_weekly: Weekly spending ceiling.
        budget_monthly: Monthly spending ceiling.
        budget_yearly: Yearly spending ceiling.
        cold_threshold_days: Days without a wear before an item counts as dormant.
    """

    budget_weekly: float = Field(default=500.0, ge=0)
    budget_monthly: float = Field(default=2000.0, ge=0)
    budget_yearly: float = Field(default=24000.0, ge=0)
    cold_threshold_days: int = Field(default=60, gt=0)


class InsightSettings(ClosetBaseModel):
    """Thresholds used by purchase warnings, titles and outfit suggestions.

    Attributes:
        expensive_price: Price above which a new purchase triggers a warning.
        occasion_price: Price above which occasion-wear triggers a "rent instead" hint.
        resale_title_threshold: Monthly resale recovery needed for the resale title.
        outfit_budget: Default ceiling for randomly generated outfits.
    """

    expensive_price: float = 1000.0
    occasion_price: float = 500.0
    resale_title_threshold: float = 500.0
    outfit_budget: float = 1000.0


class LoggingSettings(ClosetBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(ClosetBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        recent_limit: Number of items shown by `closetbook list --recent`.
    """

    quiet_default: bool = False
    recent_limit: int = 10


class ClosetConfig(ClosetBaseModel):
    """Top-level configuration struct for Closetbook.

    Attributes:
        storage: On-disk storage settings.
        defaults: Initial ledger settings.
        insights: Insight thresholds.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    defaults: LedgerDefaults = Field(default_factory=LedgerDefaults)
    insights: InsightSettings = Field(default_factory=InsightSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ClosetBaseModel",
    "StorageSettings",
    "LedgerDefaults",
    "InsightSettings",
    "LoggingSettings",
    "CLIOptions",
    "ClosetConfig",
]
