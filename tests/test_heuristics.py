import pytest

from guardnet.app.heuristics import (
    calibrate, clamp_score, detect_legitimate_pattern, select_regime,
    tld_trust_bonus, url_indicators,
)


@pytest.mark.parametrize('fused', [0.0, 0.3, 0.9])
def test_ip_host_uses_strong_phishing_regime(fused):
    regime = select_regime('http://192.168.1.5/login')
    assert regime.name == 'strong_phishing_indicators'
    assert (regime.confidence_weight, regime.evidence_adjustment) == (1.15, 0.10)
    assert calibrate(fused, 'http://192.168.1.5/login') == pytest.approx(min(0.98, fused * 1.15 + 0.10))


def test_free_hosting_uses_strong_phishing_regime():
    assert select_regime('https://paypal-verify.000webhostapp.com/').name == 'strong_phishing_indicators'


def test_https_ecommerce_path_biased_down():
    url = 'https://example.com/product/123'
    regime = select_regime(url)
    assert regime.name == 'strong_legitimacy'
    assert regime.confidence_weight == 0.75
    assert regime.evidence_adjustment == pytest.approx(-(0.12 + 0.08 * 0.4))
    assert calibrate(0.5, url) == pytest.approx(0.5 * 0.75 - 0.152)
    assert calibrate(0.1, url) == 0.02


def test_regional_tld_and_forum_bonus():
    regime = select_regime('https://kaskus.co.id/thread/123')
    assert regime.name == 'strong_legitimacy'
    assert regime.evidence_adjustment == pytest.approx(-(0.12 + (0.18 + 0.10) * 0.4))


def test_www_on_compound_tld_counts_as_deep_subdomain():
    # www.kaskus.co.id has four labels
    assert select_regime('https://www.kaskus.co.id/thread/123').name == 'suspicious_https'


def test_remaining_regimes():
    assert select_regime('http://example.com').name == 'plain_http'
    assert select_regime('https://login.secure.account.example.com/').name == 'suspicious_https'
    assert select_regime('https://example.com/' + 'a' * 80).name == 'suspicious_https'
    assert select_regime('http://example.xyz').name == 'http_fallback'
    assert select_regime('https://example.xyz').name == 'unchanged'
    assert calibrate(0.42, 'https://example.xyz') == pytest.approx(0.42)


def test_clamp_bounds():
    assert clamp_score(-1.0) == 0.02
    assert clamp_score(2.0) == 0.98
    assert clamp_score(0.5) == 0.5


def test_tld_trust_bonus():
    assert tld_trust_bonus('dinas.go.id') == 0.25
    assert tld_trust_bonus('shop.co.id') == 0.18
    assert tld_trust_bonus('example.jp') == 0.12
    assert tld_trust_bonus('example.com') == 0.0


def test_legitimate_patterns():
    assert detect_legitimate_pattern('https://x.com/forum/1')["pattern_type"] == 'forum'
    assert detect_legitimate_pattern('https://x.com/berita/1')["trust_bonus"] == 0.08
    assert not detect_legitimate_pattern('https://x.com/login')["is_legit_pattern"]


def test_indicators_for_unparsable_url():
    ind = url_indicators('http://[::1')
    assert not ind["is_https"]
    assert not ind["has_ip_address"]
