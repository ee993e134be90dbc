"""Settings helpers to centralize configuration access."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from fraud_analyzer.settings.config import Config


def load_settings(debug_override: Optional[bool] = None, config_file: Optional[Path] = None) -> Config:
    """Return a Config instance, applying optional runtime overrides."""
    config = Config.from_env(config_file=config_file)
    if debug_override is not None:
        config.debug = debug_override
    return config
