import json

import numpy as np
import pytest
from sklearn.ensemble import RandomForestClassifier

from guardnet.errors import ModelUnavailable
from guardnet.export_params import export_forest, export_scaler
from guardnet.random_forest import (
    NEUTRAL_PREDICTION, Leaf, Node, RandomForestModel, build_tree, load_forest,
)

SPLIT_TREE = {
    "featureIndex": 0, "threshold": 10.0,
    "left": {"value": [0.9, 0.1]},
    "right": {"value": [0.2, 0.8]},
}


def test_leaf_index_zero_is_phishing():
    forest = RandomForestModel.from_dict({"trees": [SPLIT_TREE]})
    assert forest.predict([5.0]).score == pytest.approx(0.9)
    assert forest.predict([50.0]).score == pytest.approx(0.2)


def test_build_tree_types():
    tree = build_tree(SPLIT_TREE)
    assert isinstance(tree, Node)
    assert tree.left == Leaf(0.9, 0.1)
    assert build_tree({"value": 0.7}) == Leaf(0.7, pytest.approx(0.3))
    assert build_tree({"value": [[0.6, 0.4]]}) == Leaf(0.6, 0.4)


def test_mean_and_agreement_confidence():
    forest = RandomForestModel.from_dict({"trees": [{"value": [0.9, 0.1]}, {"value": [0.2, 0.8]}]})
    result = forest.predict([0.0])
    assert result.score == pytest.approx(0.55)
    # population std 0.35 -> 1 - 0.7
    assert result.confidence == pytest.approx(0.3)
    assert result.tree_predictions == pytest.approx((0.9, 0.2))


def test_unanimous_forest_has_full_confidence():
    forest = RandomForestModel.from_dict({"trees": [{"value": [0.8, 0.2]}] * 3})
    assert forest.predict([0.0]).confidence == pytest.approx(1.0)


def test_empty_forest_is_neutral():
    forest = RandomForestModel()
    assert not forest.is_loaded
    assert forest.predict([1.0, 2.0]) == NEUTRAL_PREDICTION
    assert forest.voting_stats([1.0]) == {"error": "Model not loaded"}


def test_shared_subtree_rejected():
    leaf = {"value": [1.0, 0.0]}
    with pytest.raises(ValueError):
        build_tree({"featureIndex": 0, "threshold": 0.0, "left": leaf, "right": leaf})


def test_cycle_rejected():
    node = {"featureIndex": 0, "threshold": 0.0, "right": {"value": [0.5, 0.5]}}
    node["left"] = node
    with pytest.raises(ValueError):
        build_tree(node)


def test_malformed_nodes_rejected():
    with pytest.raises(ValueError):
        build_tree({"featureIndex": -1, "threshold": 0.0, "left": {"value": 1}, "right": {"value": 0}})
    with pytest.raises(ValueError):
        build_tree({"featureIndex": 0, "left": {"value": 1}, "right": {"value": 0}})


def test_voting_stats():
    forest = RandomForestModel.from_dict({"trees": [{"value": [0.9, 0.1]}, {"value": [0.8, 0.2]}, {"value": [0.1, 0.9]}]})
    stats = forest.voting_stats([0.0])
    assert stats["phishing_votes"] == 2
    assert stats["legit_votes"] == 1
    assert stats["agreement"] == pytest.approx(2 / 3)


def test_load_forest(tmp_path):
    path = tmp_path / 'rf_model.json'
    path.write_text(json.dumps({"n_estimators": 1, "max_depth": 1, "trees": [SPLIT_TREE]}))
    forest = load_forest(str(path))
    assert forest.n_estimators == 1
    assert forest.predict([0.0]).score == pytest.approx(0.9)

    with pytest.raises(ModelUnavailable):
        load_forest(str(tmp_path / 'missing.json'))
    bad = tmp_path / 'bad.json'
    bad.write_text('{"trees": [{"left": {}}]}')
    with pytest.raises(ModelUnavailable):
        load_forest(str(bad))


def test_exported_forest_matches_sklearn():
    rng = np.random.default_rng(0)
    # integer-valued features keep sklearn's float32 thresholds exact
    X = rng.integers(0, 10, size=(300, 22)).astype(float)
    y = (X[:, 0] + X[:, 3] > 9).astype(int)
    clf = RandomForestClassifier(n_estimators=7, max_depth=4, random_state=0).fit(X, y)

    blob = json.loads(json.dumps(export_forest(clf)))
    forest = RandomForestModel.from_dict(blob)
    assert blob["n_estimators"] == 7
    assert len(blob["feature_names"]) == 22

    expected = clf.predict_proba(X[:25])[:, 0]
    got = [forest.predict(row).score for row in X[:25]]
    assert got == pytest.approx(list(expected))


def test_export_scaler():
    from sklearn.preprocessing import StandardScaler
    scaler = StandardScaler().fit(np.array([[0.0, 1.0], [2.0, 3.0]]))
    assert export_scaler(scaler) == {"mean": [1.0, 2.0], "std": [1.0, 1.0]}


def test_feature_index_beyond_url_vector_rejected(tmp_path):
    wide = {"featureIndex": 30, "threshold": 1.0, "left": {"value": [1, 0]}, "right": {"value": [0, 1]}}
    with pytest.raises(ValueError):
        RandomForestModel.from_dict({"trees": [wide]})
    # a blob that names fewer features is held to its own width
    with pytest.raises(ValueError):
        RandomForestModel.from_dict({"feature_names": ["a", "b"], "trees": [dict(wide, featureIndex=2)]})

    path = tmp_path / 'rf_model.json'
    path.write_text(json.dumps({"trees": [wide]}))
    with pytest.raises(ModelUnavailable):
        load_forest(str(path))


def test_deeply_nested_blob_is_unavailable(tmp_path):
    depth = 3000
    blob = ('{"featureIndex": 0, "threshold": 0.5, "left": ' * depth + '{"value": [1, 0]}'
            + ', "right": {"value": [0, 1]}}' * depth)
    path = tmp_path / 'rf_model.json'
    path.write_text('{"trees": [' + blob + ']}')
    with pytest.raises(ModelUnavailable):
        load_forest(str(path))
