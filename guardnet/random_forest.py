# random_forest.py
"""
Random Forest classifier evaluated directly from a JSON parameter blob.

Blob layout (written by export_params.export_forest):

    {
      "n_estimators": 100,
      "max_depth": 5,
      "feature_names": [...22 names...],
      "trees": [
        {"featureIndex": 3, "threshold": 42.5,
         "left": {"value": [0.9, 0.1]}, "right": {...}},
        ...
      ]
    }

Leaf values follow scikit-learn's predict_proba column order for the training
labels, where class 0 is phishing: value[0] = P(phishing), value[1] =
P(legitimate). A scalar leaf is read as P(phishing).
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, NamedTuple, Sequence, Tuple, Union

import numpy as np

from .errors import ModelUnavailable
from .extract_features import N_URL_FEATURES

logger = logging.getLogger("forest")

DEFAULT_MAX_DEPTH = 5


@dataclass(frozen=True)
class Leaf:
    p_phishing: float
    p_legit: float


@dataclass(frozen=True)
class Node:
    feature_index: int
    threshold: float
    left: "TreeNode"
    right: "TreeNode"


TreeNode = Union[Leaf, Node]


class ForestPrediction(NamedTuple):
    score: float
    confidence: float
    tree_predictions: Tuple[float, ...] = ()


NEUTRAL_PREDICTION = ForestPrediction(0.5, 0.0, ())


def _parse_leaf(value) -> Leaf:
    if isinstance(value, list) and value and isinstance(value[0], list):
        # [[p0, p1]] as stored by some exporters
        value = value[0]
    if isinstance(value, list):
        if len(value) >= 2:
            return Leaf(float(value[0]), float(value[1]))
        if len(value) == 1:
            value = value[0]
        else:
            raise ValueError("empty leaf value")
    p = float(value)
    return Leaf(p, 1.0 - p)


def build_tree(data: dict, n_features: int = N_URL_FEATURES) -> TreeNode:
    """Convert one serialized tree into Leaf/Node objects.

    Raises ValueError on malformed input, including a node dict that is
    reachable twice (shared subtree or cycle) and a feature index outside
    the `n_features` wide input vector.
    """
    seen = set()

    def _build(node, depth):
        if not isinstance(node, dict):
            raise ValueError(f"tree node must be an object, got {type(node).__name__}")
        if id(node) in seen:
            raise ValueError("tree node referenced more than once (shared subtree or cycle)")
        seen.add(id(node))
        if "value" in node:
            return _parse_leaf(node["value"])
        index = node.get("featureIndex", node.get("feature_index"))
        if index is None or not 0 <= int(index) < n_features:
            raise ValueError(f"invalid feature index at depth {depth}: {index!r}")
        return Node(
            feature_index=int(index),
            threshold=float(node["threshold"]),
            left=_build(node["left"], depth + 1),
            right=_build(node["right"], depth + 1),
        )

    try:
        return _build(data, 0)
    except KeyError as e:
        raise ValueError(f"tree node missing key {e}") from e


def traverse_tree(node: TreeNode, features: Sequence[float]) -> Leaf:
    while isinstance(node, Node):
        if features[node.feature_index] <= node.threshold:
            node = node.left
        else:
            node = node.right
    return node


@dataclass(frozen=True)
class RandomForestModel:
    trees: Tuple[TreeNode, ...] = ()
    n_estimators: int = 0
    max_depth: int = DEFAULT_MAX_DEPTH
    feature_names: Tuple[str, ...] = field(default=())

    @property
    def is_loaded(self) -> bool:
        return len(self.trees) > 0

    @classmethod
    def from_dict(cls, data: dict) -> "RandomForestModel":
        feature_names = tuple(data.get("feature_names") or ())
        # the forest always sees the URL-only vector
        n_features = min(len(feature_names), N_URL_FEATURES) if feature_names else N_URL_FEATURES
        trees = tuple(build_tree(t, n_features) for t in data.get("trees") or [])
        return cls(
            trees=trees,
            n_estimators=int(data.get("n_estimators") or len(trees)),
            max_depth=int(data.get("max_depth") or DEFAULT_MAX_DEPTH),
            feature_names=feature_names,
        )

    def tree_predictions(self, features: Sequence[float]) -> List[float]:
        return [traverse_tree(tree, features).p_phishing for tree in self.trees]

    def predict(self, features: Sequence[float]) -> ForestPrediction:
        """Average P(phishing) over all trees; confidence reflects tree agreement."""
        if not self.is_loaded:
            logger.warning("Random forest not loaded, returning neutral score")
            return NEUTRAL_PREDICTION

        probabilities = np.asarray(self.tree_predictions(features), dtype=float)
        score = float(probabilities.mean())
        std_dev = float(probabilities.std())
        # 1 = perfect agreement, 0 = maximum disagreement
        confidence = max(0.0, 1.0 - std_dev * 2)

        logger.info("Prediction: %.4f, StdDev: %.4f, Confidence: %.4f", score, std_dev, confidence)
        return ForestPrediction(score, confidence, tuple(float(p) for p in probabilities))

    def voting_stats(self, features: Sequence[float]) -> dict:
        """Per-tree vote counts, for debugging a prediction."""
        if not self.is_loaded:
            return {"error": "Model not loaded"}
        predictions = self.tree_predictions(features)
        phishing_votes = sum(1 for p in predictions if p > 0.5)
        legit_votes = len(predictions) - phishing_votes
        return {
            "total_trees": len(predictions),
            "phishing_votes": phishing_votes,
            "legit_votes": legit_votes,
            "agreement": max(phishing_votes, legit_votes) / len(predictions),
            "predictions": predictions,
        }


def load_forest(path: str) -> RandomForestModel:
    """Load the forest blob from disk; any failure is ModelUnavailable."""
    logger.info("Loading Random Forest model from %s", path)
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        model = RandomForestModel.from_dict(data)
    except (OSError, ValueError, TypeError, AttributeError, RecursionError) as e:
        raise ModelUnavailable(f"random forest at {path}: {e}") from e
    logger.info("Model loaded: %d trees, max_depth=%d", model.n_estimators, model.max_depth)
    return model
