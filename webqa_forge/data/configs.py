from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import Field, ValidationError, field_validator

from webqa_forge.data.records import FrozenRecord
from webqa_forge.data.test_structures import Framework
from webqa_forge.exceptions import ConfigurationError


def is_absolute_url(value: str) -> bool:
    parsed = urlparse(value or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _validation_messages(exc: ValidationError) -> list:
    return [f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in exc.errors()]


class _Config(FrozenRecord):
    @classmethod
    def from_dict(cls, raw: Dict[str, Any]):
        """Build from a config-file section, turning every validation problem
        into a single ConfigurationError."""
        try:
            return cls.model_validate(raw or {})
        except ValidationError as e:
            raise ConfigurationError(_validation_messages(e)) from e


class SynthesisConfig(_Config):
    framework: Framework = Framework.PLAYWRIGHT
    base_url: str
    include_validation: bool = True
    include_negative_tests: bool = False

    @field_validator("framework", mode="before")
    @classmethod
    def _supported_framework(cls, value):
        try:
            return Framework(value)
        except ValueError:
            supported = ", ".join(f.value for f in Framework)
            raise ValueError(f"unsupported framework '{value}' (supported: {supported})") from None

    @field_validator("base_url")
    @classmethod
    def _absolute_base_url(cls, value: str) -> str:
        if not is_absolute_url(value):
            raise ValueError("base URL must be an absolute http(s) URL")
        return value


class Thresholds(_Config):
    load_time_ms: float = Field(default=3000, ge=0)
    visual_diff_ratio: float = Field(default=0.05, ge=0, le=1)
    a11y_score_min: float = Field(default=90, ge=0, le=100)


class ClassificationConfig(_Config):
    enable_visual: bool = False
    enable_performance: bool = False
    enable_accessibility: bool = False
    thresholds: Thresholds = Field(default_factory=Thresholds)
    source_url: str = ""
    reporter: str = "QA Automation Tool"
    # Stamped on simulated probe findings; defaults to the latest result time
    observed_at: Optional[datetime] = None


class TrackerConfig(_Config):
    """Issue tracker connection settings.

    Deliberately lax: completeness is checked by
    :func:`webqa_forge.triage.validate_tracker_config`, which reports every
    problem at once.
    """

    base_url: str = ""
    email: str = ""
    api_token: str = Field(default="", repr=False)
    project_key: str = ""
    issue_type: str = "Bug"
    auto_create_tickets: bool = False
