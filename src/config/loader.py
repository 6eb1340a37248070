"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - static defaults checked into the repo
#   2. .env file           - local developer overrides (not committed)
#   3. Environment vars    - set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# that Settings derives from .env / the environment on top of it.
#
# The _deep_merge helper does recursive dict merging:
#   base = {"mgpc": {"weights": {"key": 0.3}}}
#   overrides = {"storage": {"db_path": "x.db"}}
#   result = {"mgpc": {"weights": {"key": 0.3}}, "storage": {"db_path": "x.db"}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.config.settings import Settings
from src.services.similarity import MgpcWeights
from src.utils.errors import CatalogValidationError

_DEFAULT_ARCHIVE_DIR = "data/archives"


def load_config(path: str | None = None, settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.  Defaults to
              ``settings.config_path``.
        settings: Settings instance; a fresh one is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    env_overrides: dict[str, Any] = {
        "app": {
            "env": settings.app_env,
        },
        "storage": {
            "db_path": settings.catalog_db_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }
    # Only an explicitly configured archive dir beats the YAML value.
    if settings.archive_dir:
        env_overrides["import"] = {"archive_dir": settings.archive_dir}

    _deep_merge(yaml_config, env_overrides)
    yaml_config.setdefault("import", {}).setdefault("archive_dir", _DEFAULT_ARCHIVE_DIR)
    return yaml_config


def weights_from_config(config: dict) -> MgpcWeights:
    """Build MGPC weights from ``config["mgpc"]["weights"]``.

    Missing keys fall back to the default weights.  Weights that do not sum
    to 1.0 are a configuration error, reported as CatalogValidationError.
    """
    raw = (config.get("mgpc") or {}).get("weights") or {}
    try:
        return MgpcWeights(**raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise CatalogValidationError(
            f"Invalid MGPC weights in configuration: {first['msg']}",
            field_name="mgpc.weights",
        ) from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
