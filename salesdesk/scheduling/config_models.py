from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from salesdesk import ARGS_DIR
from salesdesk.logging_config import get_logger
from salesdesk.scheduling.errors import ConfigurationError

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = ARGS_DIR / "scheduling.yaml"


# =============================================================================
# SchedulingConfig (args/scheduling.yaml)
# =============================================================================

class BusinessHoursConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    start_hour: int = Field(default=9, ge=0, le=23)
    end_hour: int = Field(default=18, ge=1, le=23)

    @model_validator(mode="after")
    def _end_after_start(self) -> "BusinessHoursConfig":
        if self.end_hour <= self.start_hour:
            raise ValueError("business_hours.end_hour must be after start_hour")
        return self


class SchedulingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    timezone: str = Field(default="Europe/London")
    graph_timezone: str = Field(default="GMT Standard Time")
    organizer_email: Optional[str] = None
    company_name: str = Field(default="bSMART AI")
    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    slot_step_minutes: int = Field(default=30, ge=5)
    default_duration_minutes: int = Field(default=30, ge=5)
    in_person_duration_minutes: int = Field(default=60, ge=5)
    default_time_hour: int = Field(default=10, ge=0, le=23)
    fail_open: bool = Field(default=True)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    token_refresh_margin_seconds: int = Field(default=300, ge=0)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def require_organizer(self) -> str:
        """
        Raises:
            ConfigurationError: If no organizer mailbox is configured
        """
        if not self.organizer_email:
            raise ConfigurationError(
                "Organizer email not configured. Set MICROSOFT_ORGANIZER_EMAIL "
                "or scheduling.organizer_email in args/scheduling.yaml"
            )
        return self.organizer_email


class MicrosoftCredentials(BaseModel):
    """Client-credentials identity for Microsoft Graph. Never logged."""

    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @classmethod
    def from_env(cls) -> "MicrosoftCredentials":
        load_dotenv()
        return cls(
            tenant_id=os.environ.get("MICROSOFT_TENANT_ID"),
            client_id=os.environ.get("MICROSOFT_CLIENT_ID"),
            client_secret=os.environ.get("MICROSOFT_CLIENT_SECRET"),
        )

    def require(self) -> tuple[str, str, str]:
        """
        Return (tenant_id, client_id, client_secret).

        Raises:
            ConfigurationError: If any of the three is missing
        """
        missing = [
            name
            for name, value in (
                ("MICROSOFT_TENANT_ID", self.tenant_id),
                ("MICROSOFT_CLIENT_ID", self.client_id),
                ("MICROSOFT_CLIENT_SECRET", self.client_secret),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Microsoft Graph credentials not configured: {', '.join(missing)}"
            )
        return self.tenant_id, self.client_id, self.client_secret


def load_scheduling_config(path: Path | str | None = None) -> SchedulingConfig:
    """
    Load args/scheduling.yaml, falling back to defaults when missing or invalid.

    SALESDESK_SCHEDULING_CONFIG selects another file and
    MICROSOFT_ORGANIZER_EMAIL overrides the organizer address.
    """
    load_dotenv()

    if path is None:
        path = os.environ.get("SALESDESK_SCHEDULING_CONFIG") or DEFAULT_CONFIG_PATH
    yaml_path = Path(path)

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        config = SchedulingConfig.model_validate(raw.get("scheduling", {}))
    except Exception as e:
        logger.warning("scheduling_config_invalid", path=str(yaml_path), error=str(e))
        config = SchedulingConfig()

    organizer = os.environ.get("MICROSOFT_ORGANIZER_EMAIL")
    if organizer:
        config = config.model_copy(update={"organizer_email": organizer})

    return config
