import re
from typing import List

from webqa_forge.data import TrackerConfig
from webqa_forge.data.configs import is_absolute_url

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _blank(value) -> bool:
    return not value or not str(value).strip()


def validate_tracker_config(config: TrackerConfig) -> List[str]:
    """Check all five required tracker settings and report every violation."""
    errors: List[str] = []

    if _blank(config.base_url):
        errors.append("Base URL is required")
    elif not is_absolute_url(config.base_url):
        errors.append("Base URL must be a valid URL")

    if _blank(config.email):
        errors.append("Email is required")
    elif not EMAIL_PATTERN.match(config.email):
        errors.append("Email must be a valid email address")

    if _blank(config.api_token):
        errors.append("API Token is required")

    if _blank(config.project_key):
        errors.append("Project Key is required")

    if _blank(config.issue_type):
        errors.append("Issue Type is required")

    return errors
