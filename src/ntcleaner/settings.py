"""Environment-driven settings for the command-line host."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ntcleaner.models import LoginEntry
from ntcleaner.store import DEFAULT_CONFIG_PATH

ENV_PREFIX = "NTCLEANER_"
LAYOUTS = ("auto", "windows", "linux")


def parse_account_pairs(values: list[str]) -> list[LoginEntry]:
    """
    Parse ``uin:uid`` pairs.

    Args:
        values: Items like "123456:u_abc"; comma-separated items are split

    Returns:
        LoginEntry list, skipping malformed items
    """
    entries = []
    for value in values:
        for item in value.split(","):
            uin, sep, uid = item.strip().partition(":")
            if sep and uin.strip() and uid.strip():
                entries.append(LoginEntry(uin=uin.strip(), uid=uid.strip()))
    return entries


class Settings(BaseModel):
    """Where the data lives and how the CLI host behaves."""

    data_path: Path = Field(default_factory=Path.cwd, description="Base data directory")
    config_path: Path = Field(DEFAULT_CONFIG_PATH, description="Task/options JSON document")
    layout: str = Field("auto", description="auto, windows or linux")
    self_uin: Optional[str] = Field(None, description="The host's own account")
    accounts: list[LoginEntry] = Field(default_factory=list, description="Known uin/uid pairs")
    log_level: str = "INFO"

    @field_validator("layout")
    @classmethod
    def _check_layout(cls, value: str) -> str:
        value = value.lower()
        if value not in LAYOUTS:
            raise ValueError(f"layout must be one of {', '.join(LAYOUTS)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from NTCLEANER_* variables (and .env), then apply overrides."""
        load_dotenv()

        values: dict = {}
        env_map = {
            "data_path": "DATA_PATH",
            "config_path": "CONFIG_PATH",
            "layout": "LAYOUT",
            "self_uin": "SELF_UIN",
            "log_level": "LOG_LEVEL",
        }
        for field_name, suffix in env_map.items():
            value = os.getenv(ENV_PREFIX + suffix)
            if value:
                values[field_name] = value

        accounts = os.getenv(ENV_PREFIX + "ACCOUNTS")
        if accounts:
            values["accounts"] = parse_account_pairs([accounts])

        values.update({k: v for k, v in overrides.items() if v is not None})
        settings = cls.model_validate(values)
        settings.data_path = settings.data_path.expanduser()
        settings.config_path = settings.config_path.expanduser()
        return settings
