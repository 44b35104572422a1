# scaler.py
"""
StandardScaler parameters for the 50-feature vector.

The blob is the JSON `{"mean": [...], "std": [...]}` written by
export_params.export_scaler.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger("scaler")


@dataclass(frozen=True)
class ScalerParams:
    mean: Tuple[float, ...]
    std: Tuple[float, ...]

    @classmethod
    def from_dict(cls, data: dict) -> "ScalerParams":
        mean = data.get("mean")
        std = data.get("std", data.get("scale"))
        if not isinstance(mean, list) or not isinstance(std, list):
            raise ValueError("scaler params need 'mean' and 'std' lists")
        return cls(tuple(float(m) for m in mean), tuple(float(s) for s in std))


def load_scaler_params(path: str) -> Optional[ScalerParams]:
    """Load scaler params; a missing or malformed file gives None (identity)."""
    try:
        with open(path, encoding="utf-8") as fh:
            params = ScalerParams.from_dict(json.load(fh))
    except FileNotFoundError:
        logger.warning("Scaler params not found at %s; features will not be standardized", path)
        return None
    except (ValueError, TypeError, AttributeError):
        logger.exception("Failed to read scaler params from %s", path)
        return None
    logger.info("Scaler parameters loaded from %s (%d features)", path, len(params.mean))
    return params


def normalize(vector: Sequence[float], params: Optional[ScalerParams]) -> Tuple[float, ...]:
    """Apply (x - mean) / std elementwise; missing mean/std fall back to 0/1."""
    if params is None:
        logger.warning("No scaler params, using raw features")
        return tuple(vector)

    x = np.asarray(vector, dtype=float)
    n = x.shape[0]
    mean = np.zeros(n)
    std = np.ones(n)
    k = min(n, len(params.mean))
    mean[:k] = params.mean[:k]
    k = min(n, len(params.std))
    std[:k] = params.std[:k]
    # a zero std is as unusable as a missing one
    std[std == 0] = 1.0
    return tuple(float(v) for v in (x - mean) / std)
