# ml_model.py
"""
Model loading for the scoring pipeline.

- PrimaryScorer wraps the pre-trained joblib estimator that maps the
  standardized 50-feature vector to P(legitimate).
- ModelStore loads the primary estimator, the random forest blob and the
  scaler params once per process. Concurrent callers await the same
  in-flight load instead of starting their own.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, NamedTuple, Optional, Sequence

import joblib
import pandas as pd

from . import config
from .errors import ModelUnavailable
from .extract_features import FEATURE_NAMES
from .random_forest import RandomForestModel, load_forest
from .scaler import ScalerParams, load_scaler_params

logger = logging.getLogger("ml_model")

# Training label of the legitimate class (phishing = 0)
LEGIT_LABEL = 1


class PrimaryScorer:
    """Adapter around an estimator exposing predict_proba."""

    def __init__(self, estimator: Any, feature_names: Sequence[str] = FEATURE_NAMES):
        if not hasattr(estimator, 'predict_proba'):
            raise ModelUnavailable(f"{type(estimator).__name__} has no predict_proba")
        self.estimator = estimator
        self.feature_names = list(feature_names)
        classes = list(getattr(estimator, "classes_", []))
        self._legit_column = classes.index(LEGIT_LABEL) if LEGIT_LABEL in classes else -1

    @classmethod
    def load(cls, path: str) -> "PrimaryScorer":
        logger.info("Loading primary model from %s", path)
        try:
            estimator = joblib.load(path)
        except Exception as e:
            raise ModelUnavailable(f"primary model at {path}: {e}") from e
        nfi = getattr(estimator, 'n_features_in_', None)
        logger.info("Primary model loaded. n_features_in_=%s", nfi)
        return cls(estimator)

    def _frame(self, vector: Sequence[float]):
        expected = getattr(self.estimator, 'n_features_in_', None)
        if expected is not None and expected != len(vector):
            raise ValueError(f"Model expects {expected} features but input has {len(vector)}")
        model_cols = list(getattr(self.estimator, 'feature_names_in_', []))
        if model_cols:
            # model was fitted on a named DataFrame: feed it the same columns
            row = dict(zip(self.feature_names, vector))
            return pd.DataFrame([[float(row.get(name, 0.0)) for name in model_cols]], columns=model_cols)
        return [list(vector)]

    def predict_legit_sync(self, vector: Sequence[float]) -> float:
        proba = self.estimator.predict_proba(self._frame(vector))[0]
        return float(proba[self._legit_column])

    async def predict_legit(self, vector: Sequence[float]) -> float:
        """P(legitimate) for one standardized vector."""
        return await asyncio.to_thread(self.predict_legit_sync, vector)


class LoadedModels(NamedTuple):
    primary: Any
    forest: RandomForestModel
    scaler: Optional[ScalerParams]


class ModelStore:
    """Memoized, thread-backed loader of the three parameter blobs."""

    def __init__(self, primary_path: str = None, forest_path: str = None,
                 scaler_path: str = None, forest_enabled: bool = True):
        self.primary_path = primary_path or config.PRIMARY_MODEL_PATH
        self.forest_path = forest_path or config.FOREST_MODEL_PATH
        self.scaler_path = scaler_path or config.SCALER_PARAMS_PATH
        self.forest_enabled = forest_enabled
        self._lock = threading.Lock()
        self._future: Optional[concurrent.futures.Future] = None
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None

    @classmethod
    def from_models(cls, primary, forest: RandomForestModel = None,
                    scaler: Optional[ScalerParams] = None) -> "ModelStore":
        """A store that is already loaded, e.g. with in-memory models."""
        store = cls()
        future = concurrent.futures.Future()
        future.set_result(LoadedModels(primary, forest or RandomForestModel(), scaler))
        store._future = future
        return store

    @property
    def loaded(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    def _load_all(self) -> LoadedModels:
        primary = PrimaryScorer.load(self.primary_path)

        forest = RandomForestModel()
        if self.forest_enabled:
            try:
                forest = load_forest(self.forest_path)
            except ModelUnavailable:
                logger.warning("Random forest unavailable; ensemble path returns neutral scores", exc_info=True)

        scaler = load_scaler_params(self.scaler_path)
        logger.info("All models loaded (forest trees=%d, scaler=%s)", len(forest.trees), scaler is not None)
        return LoadedModels(primary, forest, scaler)

    def _start(self) -> concurrent.futures.Future:
        with self._lock:
            if self._future is None:
                if self._executor is None:
                    self._executor = concurrent.futures.ThreadPoolExecutor(
                        max_workers=1, thread_name_prefix='guardnet-load')
                self._future = self._executor.submit(self._load_all)
            return self._future

    async def load(self) -> LoadedModels:
        future = self._start()
        try:
            return await asyncio.wrap_future(future)
        except Exception:
            # forget the failed attempt so a later call can retry
            with self._lock:
                if self._future is future:
                    self._future = None
            raise
