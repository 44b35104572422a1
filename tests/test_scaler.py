import json

import pytest
from guardnet.scaler import ScalerParams, load_scaler_params, normalize


def test_normalize_standardizes_and_pads():
    params = ScalerParams(mean=(1.0, 1.0), std=(2.0, 0.0))
    # zero std acts as 1; the third feature has no params and passes through
    assert normalize([1.0, 2.0, 3.0], params) == pytest.approx((0.0, 1.0, 3.0))


def test_normalize_without_params_is_identity():
    assert normalize([1.0, 2.0], None) == (1.0, 2.0)


def test_load_scaler_params(tmp_path):
    path = tmp_path / 'scaler_params.json'
    path.write_text(json.dumps({"mean": [0.5, 1.5], "scale": [1.0, 2.0]}))
    params = load_scaler_params(str(path))
    assert params == ScalerParams((0.5, 1.5), (1.0, 2.0))


def test_load_missing_or_malformed_gives_none(tmp_path):
    assert load_scaler_params(str(tmp_path / 'missing.json')) is None
    bad = tmp_path / 'bad.json'
    bad.write_text('{"mean": 3}')
    assert load_scaler_params(str(bad)) is None
    garbage = tmp_path / 'garbage.json'
    garbage.write_text('not json')
    assert load_scaler_params(str(garbage)) is None
