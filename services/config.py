"""
Configuration loading for the site build pipeline.
Reads DEVSITE_* environment variables (and a .env file) into a SiteConfig.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from models import SiteConfig

logger = logging.getLogger(__name__)

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid {name} value '{raw}': expected true or false")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value '{raw}': {e}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value '{raw}': {e}") from e


def load_config(project_root: Optional[Path] = None, **overrides: Any) -> SiteConfig:
    """
    Build a SiteConfig from the environment.

    A .env file in the project root is loaded first. Keyword overrides (from
    CLI options) win over environment values; None overrides are ignored.

    Raises:
        ValueError: If an environment variable or override is invalid
    """
    root = Path(project_root) if project_root else Path.cwd()
    load_dotenv(root / ".env")

    values: Dict[str, Any] = {
        "project_root": root,
        "host": os.getenv("DEVSITE_HOST", "127.0.0.1"),
        "port": _env_int("DEVSITE_PORT", 3000),
        "start_path": os.getenv("DEVSITE_START_PATH", "html/index.html").lstrip("/"),
        "open_browser": _env_bool("DEVSITE_OPEN_BROWSER", True),
        "reload_delay": _env_float("DEVSITE_RELOAD_DELAY", 0.5),
        "stylesheet_output_style": os.getenv("DEVSITE_CSS_STYLE", "expanded"),
        "stylesheet_coupling": _env_bool("DEVSITE_STYLESHEET_COUPLING", True),
    }

    entry_points = os.getenv("DEVSITE_STYLESHEETS")
    if entry_points:
        values["stylesheet_entry_points"] = [e.strip() for e in entry_points.split(",") if e.strip()]

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = SiteConfig(**values)
    except ValidationError as e:
        raise ValueError(f"Invalid site configuration: {e}") from e

    logger.debug(f"Loaded site configuration for {config.project_root}")
    return config
