"""Simple CI check: ensure the parameter blobs agree with the runtime feature order.

- rf_model.json feature_names must equal the 22 URL-only feature names
- scaler_params.json must hold 50 means and 50 stds
- the primary model, when it exposes feature_names_in_, must use the 50 names

Exits 0 on success, non-zero on mismatch.
"""
import json
import sys

import joblib

from guardnet import config
from guardnet.extract_features import FEATURE_NAMES, URL_FEATURE_NAMES


def check_forest(path):
    with open(path, encoding='utf-8') as fh:
        names = json.load(fh).get('feature_names') or []
    if not names:
        print('Forest blob has no feature_names; cannot verify. PASSING')
        return True
    if names == URL_FEATURE_NAMES:
        print('OK: forest feature_names match the URL-only features')
        return True
    print('MISMATCH: forest feature_names differ')
    print('forest sample:  ', names[:10])
    print('runtime sample: ', URL_FEATURE_NAMES[:10])
    return False


def check_scaler(path):
    with open(path, encoding='utf-8') as fh:
        blob = json.load(fh)
    n_mean, n_std = len(blob.get('mean') or []), len(blob.get('std') or blob.get('scale') or [])
    if n_mean == n_std == len(FEATURE_NAMES):
        print('OK: scaler params cover %d features' % n_mean)
        return True
    print('MISMATCH: scaler has %d means / %d stds, expected %d' % (n_mean, n_std, len(FEATURE_NAMES)))
    return False


def check_primary(path):
    model = joblib.load(path)
    model_cols = list(getattr(model, 'feature_names_in_', []))
    if not model_cols:
        print('Primary model does not expose feature_names_in_; cannot verify. PASSING')
        return True
    if model_cols == FEATURE_NAMES:
        print('OK: primary model.feature_names_in_ matches runtime order')
        return True
    print('MISMATCH: primary model columns differ')
    print('model sample:   ', model_cols[:10])
    print('runtime sample: ', FEATURE_NAMES[:10])
    return False


def main():
    checks = [
        (check_forest, config.FOREST_MODEL_PATH),
        (check_scaler, config.SCALER_PARAMS_PATH),
        (check_primary, config.PRIMARY_MODEL_PATH),
    ]
    ok = True
    for check, path in checks:
        try:
            ok = check(path) and ok
        except Exception as e:
            print('Failed to read %s: %s' % (path, e))
            sys.exit(2)
    sys.exit(0 if ok else 1)


if __name__ == '__main__':
    main()
