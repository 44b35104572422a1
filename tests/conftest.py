import pytest

from guardnet.hybrid import HybridConfig
from guardnet.ml_model import ModelStore
from guardnet.random_forest import RandomForestModel


class FakePrimary:
    """Stands in for the joblib estimator: a fixed P(legitimate)."""

    def __init__(self, legit=0.5, error=None):
        self.legit = legit
        self.error = error
        self.calls = []

    async def predict_legit(self, vector):
        self.calls.append(tuple(vector))
        if self.error is not None:
            raise self.error
        return self.legit


def single_leaf_forest(p_phishing):
    return RandomForestModel.from_dict({"trees": [{"value": [p_phishing, 1 - p_phishing]}]})


@pytest.fixture
def hybrid_config():
    return HybridConfig(strategy='weighted_average', rf_enabled=True)


@pytest.fixture
def make_store():
    def _make(legit=0.5, forest=None, scaler=None, error=None):
        return ModelStore.from_models(FakePrimary(legit, error), forest, scaler)
    return _make
