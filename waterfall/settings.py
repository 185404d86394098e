"""Application settings stored as YAML."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Tuple

import yaml

SETTINGS_ENV_VAR = "WATERFALL_SETTINGS"
DEFAULT_SETTINGS_PATH = "config/settings.yaml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class AppSettings:
    page_title: str = "Nexamp Farm Waterfall"
    upload_types: Tuple[str, ...] = ("csv", "xlsx", "xls")
    preview_rows: int = 20
    chart_height: int = 600
    theme_mode: str = "light"
    log_level: str = "INFO"

    def __post_init__(self):
        self.upload_types = tuple(str(t).lower().lstrip(".") for t in self.upload_types)
        self.preview_rows = int(self.preview_rows)
        self.chart_height = int(self.chart_height)
        if self.preview_rows < 0:
            raise ValueError("preview_rows must be zero or positive")
        if self.chart_height <= 0:
            raise ValueError("chart_height must be positive")
        if self.theme_mode not in ("light", "dark"):
            raise ValueError(f"Unknown theme_mode: {self.theme_mode}")
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")


def settings_path() -> str:
    return os.getenv(SETTINGS_ENV_VAR, DEFAULT_SETTINGS_PATH)


def load_app_settings(path: str | None = None) -> AppSettings:
    """Load settings from YAML, falling back to defaults.

    Keys that are not settings fields are ignored.
    """

    file_path = Path(path or settings_path())
    if not file_path.exists():
        return AppSettings()
    with open(file_path, "r", encoding="utf-8") as fp:
        raw = yaml.safe_load(fp) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {file_path}")
    known = {f.name for f in fields(AppSettings)}
    return AppSettings(**{k: v for k, v in raw.items() if k in known})


def save_app_settings(path: str, settings: AppSettings) -> None:
    """Persist settings back to YAML."""

    data = asdict(settings)
    data["upload_types"] = list(settings.upload_types)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fp:
        yaml.safe_dump(data, fp, allow_unicode=True, sort_keys=False)
