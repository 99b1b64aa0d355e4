"""Central configuration loader for portfolio analytics."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the portfolio_analytics/ package
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def settings_path() -> Path:
    """Resolve the settings file, honouring PORTFOLIO_ANALYTICS_SETTINGS."""
    override = os.getenv("PORTFOLIO_ANALYTICS_SETTINGS", "")
    if override:
        return Path(override)
    return PROJECT_ROOT / "configs" / "settings.yaml"


def load_settings(path: Path | None = None) -> dict:
    """Load settings from configs/settings.yaml.

    A missing file yields an empty dict; every consumer carries its own
    defaults for the keys it reads.
    """
    path = path or settings_path()
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()


def log_level() -> str:
    return os.getenv(
        "PORTFOLIO_ANALYTICS_LOG_LEVEL",
        SETTINGS.get("app", {}).get("log_level", "INFO"),
    )

