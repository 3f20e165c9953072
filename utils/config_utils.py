import os
import logging
from pathlib import Path
from typing import Dict

import pandas as pd
import yaml

# Define project root as a constant
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_CONFIG_FILE = Path(PROJECT_ROOT) / "config" / "settings.yml"

# ────────────────────────────────────────────────────────────────────────────
# Configuration defaults
# ────────────────────────────────────────────────────────────────────────────
DEFAULT_CFG: Dict = {
    "database_url": "sqlite:///pos_tracker.db",
    "document_name": "app_db",           # row holding the JSON database
    "write_retries": 3,                  # optimistic-concurrency attempts
    "display_scale": 1_000,              # chart values are divided by this
    "month_count": 6,
    "week_count": 4,
    "price_date_format": "%Y-%m-%d",
    "currency_label": "Toman",
    "low_stock_limit": 5,
    "ocr_model": "claude-sonnet-4-20250514",
    "ocr_max_tokens": 1024,
}


def configure_logging(level=logging.INFO):
    """Configure logging with a given level and return a logger."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s %(name)s: %(message)s",
    )
    return logging.getLogger(__name__)


def load_config(path=None, overrides=None) -> Dict:
    """Merge YAML settings over DEFAULT_CFG; fall back to defaults if the file is missing.

    Args:
        path (str or Path, optional): YAML file. Defaults to config/settings.yml.
        overrides (dict, optional): Values that win over both file and defaults.

    Returns:
        dict: The effective configuration.
    """
    cfg_path = Path(path) if path else DEFAULT_CONFIG_FILE
    try:
        content = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError:
        if path:
            logging.getLogger(__name__).warning("Config file %s not found, using defaults", cfg_path)
        content = {}

    if not isinstance(content, dict):
        raise ValueError(f"Config file {cfg_path} must contain a mapping")

    unknown = set(content) - set(DEFAULT_CFG)
    if unknown:
        logging.getLogger(__name__).warning("Ignoring unknown config key(s): %s", ", ".join(sorted(unknown)))

    cfg = {**DEFAULT_CFG, **{k: v for k, v in content.items() if k in DEFAULT_CFG}}
    cfg.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return cfg


def set_pandas_display_options():
    """Set pandas display options for better visibility."""
    pd.set_option('display.max_columns', None)
    pd.set_option('display.width', 200)
