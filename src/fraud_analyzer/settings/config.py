"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from fraud_analyzer.domain.models.weights import RiskWeights

# environment variable -> RiskWeights field
WEIGHT_ENV_VARS = {
    "WEIGHT_BENEISH": "beneish",
    "WEIGHT_ALTMAN": "altman",
    "WEIGHT_PIOTROSKI": "piotroski",
    "WEIGHT_FRAUD_TRIANGLE": "fraud_triangle",
    "WEIGHT_BENFORD": "benford",
    "WEIGHT_RED_FLAGS": "red_flags",
}


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_float(value: Optional[str]) -> Optional[float]:
    """Safely parse a float env var, returning None on failure."""
    if value is None:
        return None
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def _to_level(value: Optional[str]) -> Optional[int]:
    """Map a level name ('DEBUG') or number ('10') to a logging level."""
    if value is None or not str(value).strip():
        return None
    text = str(value).strip().upper()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else None


def read_config_file(path: Path) -> Dict[str, Any]:
    """Load a JSON config file such as ``{"log_level": "INFO", "weights": {...}}``."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return data


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    log_level: Optional[int] = None
    log_file: Optional[Path] = None
    output_dir: Path = Path("reports")
    config_file: Optional[Path] = None
    weights: RiskWeights = field(default_factory=RiskWeights)
    normalize_weights: bool = False

    @classmethod
    def from_env(cls, config_file: Optional[Path] = None) -> "Config":
        """Build a configuration instance using file and environment overrides.

        Precedence: environment > config file > defaults.
        """
        file_path = config_file or (Path(os.environ["FRAUD_CONFIG_FILE"]) if os.getenv("FRAUD_CONFIG_FILE") else None)
        file_data: Dict[str, Any] = read_config_file(file_path) if file_path else {}

        weights = RiskWeights()
        if file_data.get("weights"):
            weights = RiskWeights.from_mapping(file_data["weights"]).normalized()

        env_weights = {
            name: _to_float(os.getenv(var)) for var, name in WEIGHT_ENV_VARS.items() if os.getenv(var) is not None
        }
        weights = RiskWeights.from_mapping(env_weights, base=weights)

        log_file = os.getenv("LOG_FILE") or file_data.get("log_file")
        return cls(
            debug=_to_bool(os.getenv("APP_DEBUG"), default=bool(file_data.get("debug", False))),
            log_level=_to_level(os.getenv("LOG_LEVEL") or file_data.get("log_level")),
            log_file=Path(log_file) if log_file else None,
            output_dir=Path(os.getenv("OUTPUT_DIR") or file_data.get("output_dir") or "reports"),
            config_file=file_path,
            weights=weights,
            normalize_weights=_to_bool(os.getenv("NORMALIZE_WEIGHTS"), default=bool(file_data.get("normalize_weights", False))),
        )

    def effective_weights(self) -> RiskWeights:
        return self.weights.normalized() if self.normalize_weights else self.weights

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
