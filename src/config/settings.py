"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (priority order):
#
#   1. **Environment variables** - e.g. CATALOG_DB_PATH=/data/musictree.db
#   2. **.env file** - key=value lines in the project root .env file
#
# Field ``catalog_db_path`` maps to env var ``CATALOG_DB_PATH``
# automatically.  Defaults apply when neither source sets a value.
#
# Static, version-controlled tuning (MGPC weights) lives in
# config/config.yaml instead; see src/config/loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """MusicTree catalog settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Storage ===
    catalog_db_path: str = "data/musictree.db"
    # Archived import payloads and generated error reports.  Empty string
    # means "use import.archive_dir from config.yaml".
    archive_dir: str = ""

    # === Static config ===
    config_path: str = "config/config.yaml"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
