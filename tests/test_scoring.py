import pytest

from conftest import FakePrimary, single_leaf_forest
from guardnet import api
from guardnet.app.scanner import ScoringPipeline
from guardnet.hybrid import HybridConfig
from guardnet.ml_model import ModelStore


@pytest.fixture
def client(monkeypatch):
    api.app.config['TESTING'] = True
    monkeypatch.setattr(api.config, 'API_KEY', None)
    store = ModelStore.from_models(FakePrimary(0.2), single_leaf_forest(0.95))
    monkeypatch.setattr(api, 'pipeline', ScoringPipeline(store, HybridConfig()))
    api.session_trust.clear()
    with api.app.test_client() as c:
        yield c
    api.session_trust.clear()


def test_health(client):
    rv = client.get('/health')
    assert rv.status_code == 200
    assert rv.get_json() == {"status": "ok", "models_loaded": True}


def test_predict_score_and_breakdown(client):
    rv = client.post('/predict', json={'url': 'https://example.com/product/123'})
    assert rv.status_code == 200
    d = rv.get_json()
    assert d['skipped'] is False
    assert d['score'] == pytest.approx(0.48175)
    assert d['percentage'] == 48
    assert d['verdict'] == 'warning'
    assert d['fusion_strategy'] == 'agreed'
    assert len(d['features']) == 50


def test_predict_bad_requests(client):
    assert client.post('/predict', json={}).status_code == 400
    assert client.post('/predict', json={'url': '  '}).status_code == 400
    rv = client.post('/predict', json={'url': 'not a url'})
    assert rv.status_code == 400
    assert rv.get_json()['error'] == 'invalid_url'


def test_predict_trusted_host_is_skipped(client):
    rv = client.post('/predict', json={'url': 'https://www.google.com/search?q=x'})
    assert rv.status_code == 200
    assert rv.get_json() == {'url': 'https://www.google.com/search?q=x', 'skipped': True, 'trusted': True}


def test_predict_scoring_failure(client, monkeypatch):
    store = ModelStore.from_models(FakePrimary(error=RuntimeError('boom')))
    monkeypatch.setattr(api, 'pipeline', ScoringPipeline(store, HybridConfig()))
    rv = client.post('/predict', json={'url': 'http://example.com'})
    assert rv.status_code == 500
    assert rv.get_json()['error'] == 'scoring_failed'


def test_session_trust_endpoints(client):
    rv = client.post('/trust', json={'url': 'https://shop.kaskus.co.id/x'})
    assert rv.status_code == 200
    assert rv.get_json()['domain'] == 'kaskus.co.id'

    assert client.get('/trust').get_json() == {'domains': ['kaskus.co.id']}
    check = client.get('/trust/check?host=forum.kaskus.co.id').get_json()
    assert check['trusted'] is True

    rv = client.post('/predict', json={'url': 'https://forum.kaskus.co.id/thread/1'})
    assert rv.get_json()['skipped'] is True

    assert client.delete('/trust').status_code == 200
    assert client.get('/trust').get_json() == {'domains': []}
    assert client.get('/trust/check?host=https://forum.kaskus.co.id/').get_json()['trusted'] is False


def test_trust_requires_domain(client):
    assert client.post('/trust', json={}).status_code == 400
    assert client.post('/trust', json={'domain': ' '}).status_code == 400
