# backend/services/config.py
"""
Runtime settings for the scheduling API client and local stores.

Resolution order: built-in defaults, then data/physio_api.json (if present),
then environment variables (a .env file is loaded first).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

REPO_DATA_DIR = Path(__file__).resolve().parents[2] / "data"

DEFAULTS: Dict[str, Any] = {
    "base_url": "https://api-dev.physiotattva247.com",
    "user_id": "1",
    "fallback_phone": "9873219957",
    "timeout": 8.0,
    "symptom_store": "memory",
    "display_timezone": "",
    "cors_origins": "http://localhost:3000",
}

ENV_VARS = {
    "base_url": "PHYSIO_API_BASE_URL",
    "user_id": "PHYSIO_API_USER_ID",
    "fallback_phone": "PHYSIO_FALLBACK_PHONE",
    "timeout": "PHYSIO_API_TIMEOUT",
    "symptom_store": "PHYSIO_SYMPTOM_STORE",
    "display_timezone": "PHYSIO_DISPLAY_TZ",
    "cors_origins": "PHYSIO_CORS_ORIGINS",
}

# baseline booking defaults, used after the cached slot query
DEFAULT_WEEK_SELECTION = "this week"
DEFAULT_SELECTED_DAY = "mon"
DEFAULT_CONSULTATION_TYPE = "Online"
DEFAULT_CAMPUS_ID = "Indiranagar"
DEFAULT_SPECIALITY_ID = "Physiotherapist"
DEFAULT_PAYMENT_MODE = "pay now"

WEEK_SELECTIONS = ["this week", "next week"]
CONSULTATION_TYPES = ["Online", "In-Person"]
CAMPUSES = ["Indiranagar", "Koramangala", "Whitefield", "Hyderabad"]
PAYMENT_MODES = ["pay now", "pay later"]
CONSULTATION_FEES = {"In-Person": 499, "Online": 99}


def data_dir() -> Path:
    override = os.getenv("PHYSIO_DATA_DIR")
    return Path(override) if override else REPO_DATA_DIR


def _load_file_settings() -> Dict[str, Any]:
    cfg_file = data_dir() / "physio_api.json"
    if not cfg_file.exists():
        return {}
    try:
        data = json.loads(cfg_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable %s: %s", cfg_file, e)
        return {}
    return {k: v for k, v in data.items() if k in DEFAULTS}


def load_settings() -> Dict[str, Any]:
    settings = dict(DEFAULTS)
    settings.update(_load_file_settings())
    for key, env_name in ENV_VARS.items():
        value = os.getenv(env_name)
        if value:
            settings[key] = value
    try:
        settings["timeout"] = float(settings["timeout"])
    except (TypeError, ValueError):
        logger.warning("Invalid timeout %r, using default", settings["timeout"])
        settings["timeout"] = DEFAULTS["timeout"]
    settings["base_url"] = str(settings["base_url"]).rstrip("/")
    settings["user_id"] = str(settings["user_id"])
    origins = settings["cors_origins"]
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    settings["cors_origins"] = list(origins)
    settings["data_dir"] = data_dir()
    return settings
