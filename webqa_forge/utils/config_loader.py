import logging
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from webqa_forge.data import ClassificationConfig, SynthesisConfig, TrackerConfig
from webqa_forge.exceptions import ConfigurationError

# Environment variables take priority over the config file for these keys
TRACKER_ENV_OVERRIDES = {
    "base_url": "JIRA_BASE_URL",
    "email": "JIRA_EMAIL",
    "api_token": "JIRA_API_TOKEN",
    "project_key": "JIRA_PROJECT_KEY",
}


def find_config_file(args_config: Optional[str] = None, search_dirs=None) -> str:
    """Intelligently find configuration file."""
    # 1. Command line arguments have highest priority
    if args_config:
        if os.path.isfile(args_config):
            logging.info(f"Using specified config file: {args_config}")
            return args_config
        raise FileNotFoundError(f"Specified config file not found: {args_config}")

    # 2. Search default locations by priority
    search_dirs = search_dirs or [os.getcwd()]
    default_paths = []
    for directory in search_dirs:
        default_paths.append(os.path.join(directory, "config", "config.yaml"))
        default_paths.append(os.path.join(directory, "config.yaml"))

    for path in default_paths:
        if os.path.isfile(path):
            logging.info(f"Auto-discovered config file: {path}")
            return path

    raise FileNotFoundError("Config file not found, checked: " + ", ".join(default_paths))


def load_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError([f"Failed to read YAML {path}: {e}"]) from e


def build_synthesis_config(cfg: Dict[str, Any]) -> SynthesisConfig:
    section = dict(cfg.get("synthesis", {}) or {})
    section.setdefault("base_url", (cfg.get("target") or {}).get("url", ""))
    return SynthesisConfig.from_dict(section)


def build_classification_config(cfg: Dict[str, Any]) -> ClassificationConfig:
    section = dict(cfg.get("detection", {}) or {})
    section.setdefault("source_url", (cfg.get("target") or {}).get("url", ""))
    return ClassificationConfig.from_dict(section)


def build_tracker_config(cfg: Dict[str, Any], env: Optional[Dict[str, str]] = None) -> TrackerConfig:
    """Build the tracker configuration, environment variables take priority
    over the config file.

    Completeness is not checked here; see ``validate_tracker_config``.
    """
    env = os.environ if env is None else env
    section = dict(cfg.get("tracker", {}) or {})
    for key, env_name in TRACKER_ENV_OVERRIDES.items():
        if env.get(env_name):
            section[key] = env[env_name]

    tracker_config = TrackerConfig.from_dict(section)

    token = tracker_config.api_token
    token_masked = f"{token[:4]}...{token[-2:]}" if len(token) > 8 else "***"
    logging.debug(
        f"Tracker configuration: base_url={tracker_config.base_url}, email={tracker_config.email}, "
        f"api_token={token_masked}, project={tracker_config.project_key}"
    )
    return tracker_config


def load_config(path: Optional[str] = None, dotenv_path: Optional[str] = None) -> Dict[str, Any]:
    """Locate and read the YAML configuration, loading ``.env`` first so its
    values are visible as environment overrides."""
    load_dotenv(dotenv_path)
    return load_yaml(find_config_file(path))
