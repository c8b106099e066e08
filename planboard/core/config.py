import warnings
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "planboard"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Calendar defaults
    TIMEZONE: str = "Asia/Tokyo"
    DEFAULT_WORK_START_HOUR: int = 8
    DEFAULT_WORK_END_HOUR: int = 18
    DEFAULT_DENSITY: Literal["hour", "2hour", "day"] = "hour"

    # Placement
    LANE_SCOPE: Literal["all", "item", "day"] = "all"

    # Interaction
    DRAG_CLICK_SUPPRESS_MS: int = 120

    # Assistant context window
    ASSISTANT_HORIZON_DAYS: int = 14
    ASSISTANT_LOOKBACK_DAYS: int = 7
    DEFAULT_OPERATOR_NAME: str = "planner"

    @field_validator("TIMEZONE")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {v}") from exc
        return v

    @model_validator(mode="after")
    def _validate_work_window(self) -> Self:
        if not 0 <= self.DEFAULT_WORK_START_HOUR < self.DEFAULT_WORK_END_HOUR <= 24:
            raise ValueError(
                "DEFAULT_WORK_START_HOUR must be before DEFAULT_WORK_END_HOUR "
                "and both within 0-24"
            )
        if self.DRAG_CLICK_SUPPRESS_MS > 1000:
            message = (
                f"DRAG_CLICK_SUPPRESS_MS={self.DRAG_CLICK_SUPPRESS_MS} swallows "
                "deliberate clicks for over a second"
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)


settings = Settings()  # type: ignore
