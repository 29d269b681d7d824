from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_CATEGORIES = ["Mechanical", "Programming", "Electrical", "Outreach", "Business"]


class UiSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = "Subteam Logs"


class EventSourceSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: Literal["local", "google_proxy"] = "local"
    label: str | None = None
    path: Path | None = None
    url: str | None = None
    default_category: str = ""
    timeout_seconds: float = Field(default=10, gt=0, le=120)

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("calendar.sources[].id must not be empty")
        return text

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            raise ValueError("calendar.sources[].path must not be empty")
        return Path(text)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("calendar.sources[].url must be an absolute http(s) URL")
        return text

    @field_validator("default_category")
    @classmethod
    def validate_default_category(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def validate_source_fields(self) -> EventSourceSettings:
        if self.type == "local":
            if self.url is not None:
                raise ValueError("calendar.sources[].url is not allowed when type is 'local'")
            return self

        if self.type == "google_proxy":
            if self.url is None:
                raise ValueError("calendar.sources[].url is required when type is 'google_proxy'")
            if self.path is not None:
                raise ValueError("calendar.sources[].path is not allowed when type is 'google_proxy'")
            return self

        raise ValueError(f"Unsupported event source type: {self.type}")

    @property
    def display_label(self) -> str:
        return self.label or self.id.replace("_", " ").title()


def _default_sources() -> list[EventSourceSettings]:
    return [EventSourceSettings(id="local", type="local", label="Local")]


class CalendarSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    sources: list[EventSourceSettings] = Field(default_factory=_default_sources)
    default_source: str | None = None
    session_cookie_name: str = "session"

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, values: list[str]) -> list[str]:
        normalized: list[str] = []
        seen: set[str] = set()
        for raw_category in values:
            if not isinstance(raw_category, str):
                raise ValueError("calendar.categories entries must be strings")
            category = raw_category.strip()
            if not category:
                raise ValueError("calendar.categories entries must not be empty")
            if category.casefold() in seen:
                continue
            seen.add(category.casefold())
            normalized.append(category)
        if not normalized:
            raise ValueError("calendar.categories must contain at least one category")
        return normalized

    @model_validator(mode="after")
    def validate_sources(self) -> CalendarSettings:
        if not self.sources:
            raise ValueError("calendar.sources must contain at least one source")

        source_ids = [source.id for source in self.sources]
        duplicates = sorted({source_id for source_id in source_ids if source_ids.count(source_id) > 1})
        if duplicates:
            raise ValueError(f"calendar.sources ids must be unique, duplicated: {', '.join(duplicates)}")

        if self.default_source is None:
            self.default_source = source_ids[0]
        elif self.default_source not in source_ids:
            raise ValueError(f"calendar.default_source '{self.default_source}' is not a configured source")
        return self


class SubteamLogsYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ui: UiSettings = Field(default_factory=UiSettings)
    calendar: CalendarSettings = Field(default_factory=CalendarSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    subteam_logs_env: Literal["dev", "test", "prod"] = "dev"
    subteam_logs_timezone: str = "America/New_York"
    subteam_logs_config_path: Path = Path("config/subteam_logs.yaml")
    subteam_logs_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("subteam_logs_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("subteam_logs_log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: SubteamLogsYamlSettings
    project_root: Path
    config_path: Path
    timezone: ZoneInfo


def resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> SubteamLogsYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Subteam logs config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Subteam logs config must be a YAML mapping/object at the top level")
    return SubteamLogsYamlSettings.model_validate(raw_config)


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    config_path = resolve_project_path(env.subteam_logs_config_path)
    yaml_settings = _load_yaml_settings(config_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
        timezone=ZoneInfo(env.subteam_logs_timezone),
    )
