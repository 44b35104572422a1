"""
Runtime configuration for GuardNet.

Every value can be overridden with an environment variable; defaults match a
checkout where the parameter blobs live in `models/` at the repository root.
"""

import os
import logging

logger = logging.getLogger("config")


def _resolve_path(env_name: str, filename: str) -> str:
    """Return the env override, else the first existing candidate location."""
    env_path = os.getenv(env_name)
    if env_path:
        return env_path
    candidates = [
        os.path.join('models', filename),
        os.path.join(os.path.dirname(__file__), 'models', filename),
        os.path.join(os.path.dirname(os.path.dirname(__file__)), 'models', filename),
    ]
    for c in candidates:
        if os.path.exists(c):
            return c
    # fallback to the repo-root candidate
    return candidates[0]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, value)
        return default


PRIMARY_MODEL_PATH = _resolve_path('GUARDNET_PRIMARY_MODEL', 'primary_model.joblib')
FOREST_MODEL_PATH = _resolve_path('GUARDNET_FOREST_MODEL', 'rf_model.json')
SCALER_PARAMS_PATH = _resolve_path('GUARDNET_SCALER_PARAMS', 'scaler_params.json')

HYBRID_STRATEGY = os.getenv('GUARDNET_HYBRID_STRATEGY', 'weighted_average')
RF_ENABLED = _env_bool('GUARDNET_RF_ENABLED', True)

# Caller-side timeout around one extract -> score -> fuse -> calibrate run
SCAN_TIMEOUT = _env_float('GUARDNET_SCAN_TIMEOUT', 15.0)

API_KEY = os.getenv('GUARDNET_API_KEY')
REDIS_URL = os.getenv('REDIS_URL')
PORT = int(os.getenv('PORT', '5050'))

DEFAULT_RATE_LIMIT = os.getenv('GUARDNET_RATE_LIMIT', '120 per minute')
PREDICT_RATE_LIMIT = os.getenv('GUARDNET_PREDICT_RATE_LIMIT', '60 per minute')
