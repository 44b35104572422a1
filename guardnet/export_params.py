"""
Export fitted scikit-learn objects into the static JSON blobs GuardNet loads:

- a RandomForestClassifier trained on the 22 URL-only features -> rf_model.json
- a StandardScaler fitted on the 50 features -> scaler_params.json

Run:
    python -m guardnet.export_params --forest rf.joblib --out models/rf_model.json
    python -m guardnet.export_params --scaler scaler.joblib --out models/scaler_params.json
"""

import argparse
import json
import logging

import joblib

from .extract_features import URL_FEATURE_NAMES

logger = logging.getLogger("export_params")

# Training label of the phishing class; its probability is stored first in every leaf
PHISHING_LABEL = 0
TREE_LEAF = -1


def export_tree(estimator, phishing_column: int = 0) -> dict:
    """Serialize one fitted DecisionTreeClassifier into nested dicts."""
    tree = estimator.tree_

    def _node(i):
        if tree.children_left[i] == TREE_LEAF:
            counts = tree.value[i][0]
            total = float(counts.sum())
            probs = [float(c) / total if total > 0 else 0.0 for c in counts]
            p_phishing = probs[phishing_column]
            return {"value": [p_phishing, 1.0 - p_phishing]}
        return {
            "featureIndex": int(tree.feature[i]),
            "threshold": float(tree.threshold[i]),
            "left": _node(tree.children_left[i]),
            "right": _node(tree.children_right[i]),
        }

    return _node(0)


def export_forest(model, feature_names=URL_FEATURE_NAMES) -> dict:
    classes = list(getattr(model, 'classes_', []))
    if PHISHING_LABEL not in classes:
        raise ValueError(f"forest classes {classes} do not include the phishing label {PHISHING_LABEL}")
    phishing_column = classes.index(PHISHING_LABEL)

    trees = [export_tree(est, phishing_column) for est in model.estimators_]
    max_depth = model.max_depth or max(est.get_depth() for est in model.estimators_)
    logger.info("Exported %d trees (max_depth=%d)", len(trees), max_depth)
    return {
        "n_estimators": len(trees),
        "max_depth": int(max_depth),
        "feature_names": list(feature_names),
        "trees": trees,
    }


def export_scaler(scaler) -> dict:
    return {"mean": [float(m) for m in scaler.mean_], "std": [float(s) for s in scaler.scale_]}


def main():
    parser = argparse.ArgumentParser()
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--forest', help='joblib file holding a fitted RandomForestClassifier')
    group.add_argument('--scaler', help='joblib file holding a fitted StandardScaler')
    parser.add_argument('--out', required=True, help='Output JSON path')
    args = parser.parse_args()

    if args.forest:
        blob = export_forest(joblib.load(args.forest))
    else:
        blob = export_scaler(joblib.load(args.scaler))

    with open(args.out, 'w', encoding='utf-8') as fh:
        json.dump(blob, fh)
    print(f'Saved {args.out}')


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
