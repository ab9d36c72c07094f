from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from gigreview.errors import ConfigError


DEFAULT_SEVERE = ["kill", "bomb", "terrorist", "suicide"]
DEFAULT_VIOLATION = ["hate", "racist", "sexist", "harassment"]
DEFAULT_WARNING = ["stupid", "idiot", "dumb", "ugly"]

DEFAULT_COMPLETION_PHRASES = [
    "thanks again",
    "all done",
    "that was great",
    "just finished",
    "service completed",
    "work is done",
    "finished up",
    "completed the job",
    "all set",
    "good to go",
    "wrapped up",
    "done with",
    "finished the",
    "completed the",
    "job is done",
    "work completed",
    "service finished",
    "task completed",
    "project finished",
    "everything is done",
]


def _normalize_terms(terms: List[str]) -> List[str]:
    out: List[str] = []
    for term in terms:
        cleaned = term.strip().lower()
        if cleaned and cleaned not in out:
            out.append(cleaned)
    return out


class ModerationConfig(BaseModel):
    severe: List[str] = Field(default_factory=lambda: list(DEFAULT_SEVERE))
    violation: List[str] = Field(default_factory=lambda: list(DEFAULT_VIOLATION))
    warning: List[str] = Field(default_factory=lambda: list(DEFAULT_WARNING))
    end_call_on_severe: bool = True
    audit_path: Path | None = None

    @field_validator("severe", "violation", "warning")
    @classmethod
    def _clean(cls, value: List[str]) -> List[str]:
        return _normalize_terms(value)

    @model_validator(mode="after")
    def _disjoint(self) -> "ModerationConfig":
        tables = {"severe": self.severe, "violation": self.violation, "warning": self.warning}
        seen: dict[str, str] = {}
        for name, terms in tables.items():
            for term in terms:
                if term in seen:
                    raise ValueError(f"term '{term}' appears in both '{seen[term]}' and '{name}' tables")
                seen[term] = name
        return self


class CompletionConfig(BaseModel):
    phrases: List[str] = Field(default_factory=lambda: list(DEFAULT_COMPLETION_PHRASES))

    @field_validator("phrases")
    @classmethod
    def _clean(cls, value: List[str]) -> List[str]:
        return _normalize_terms(value)


class SchedulerConfig(BaseModel):
    dwell_hours: float = Field(default=24.0, gt=0)
    tick_interval_seconds: float = Field(default=3600.0, gt=0)


class PersistenceConfig(BaseModel):
    sessions_path: Path | None = None
    reviews_path: Path | None = None


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    moderation: ModerationConfig = Field(default_factory=ModerationConfig)
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        with path.open("r", encoding="utf-8") as f:
            try:
                payload = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid configuration in {path}: {exc}",
                recovery_suggestion="Check the keyword tables and scheduler values in the YAML file.",
            ) from exc

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    """Load config from YAML, or return defaults when no path is given."""
    if path is None:
        return AppConfig()
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    return AppConfig.from_yaml(path)
