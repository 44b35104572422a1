"""Evidence-based calibration of the fused phishing score.

The fused model score is adjusted with URL-structural evidence:

    calibrated = fused * confidence_weight + evidence_adjustment

clamped to [0.02, 0.98] so the result never claims certainty either way.
Exactly one regime applies per URL; see `select_regime`.
"""

import logging
import re
from typing import NamedTuple
from urllib.parse import urlsplit

logger = logging.getLogger("heuristics")

SCORE_FLOOR = 0.02
SCORE_CEILING = 0.98

COMMON_TLDS = ('com', 'org', 'net', 'edu', 'gov', 'co', 'io', 'id')
LONG_URL_LENGTH = 75
SHORT_URL_LENGTH = 60
MANY_DIGITS = 8
# more host labels than this counts as a deep subdomain
MAX_HOST_LABELS = 3

IP_HOST_RE = re.compile(r'^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$')
FREE_HOSTING_RE = re.compile(r'(firebaseapp|weebly|000webhostapp|repl\.co|web\.app|workers\.dev)')

# Regional / institutional TLDs are harder to register for throwaway phishing
TLD_TRUST_BONUS = {
	# Indonesia
	'id': 0.15, 'co.id': 0.18, 'or.id': 0.18, 'ac.id': 0.20, 'go.id': 0.25,
	# other countries
	'jp': 0.12, 'de': 0.12, 'uk': 0.12, 'au': 0.12, 'sg': 0.12,
	# government / education
	'gov': 0.25, 'edu': 0.20, 'mil': 0.25,
}

LEGIT_PATTERNS = (
	('forum', 0.10, ('/thread/', '/forum/', '/topic/', '/post/', '/discussion/', '/board/', '/community/')),
	('ecommerce', 0.08, ('/product/', '/products/', '/item/', '/cart/', '/checkout/', '/shop/', '/store/', '/catalog/')),
	('news', 0.08, ('/article/', '/news/', '/blog/', '/read/', '/berita/', '/artikel/')),
)


class CalibrationRegime(NamedTuple):
	name: str
	confidence_weight: float
	evidence_adjustment: float


def _hostname(url: str) -> str:
	try:
		return (urlsplit(url).hostname or '').lower()
	except ValueError:
		return ''


def _scheme(url: str) -> str:
	try:
		return urlsplit(url).scheme.lower()
	except ValueError:
		return ''


def tld_trust_bonus(hostname: str) -> float:
	"""Trust bonus for regional/institutional TLDs, compound suffix first."""
	parts = hostname.lower().split('.')
	tld = parts[-1]
	sld = parts[-2] if len(parts) >= 2 else ''

	compound = f'{sld}.{tld}'
	if compound in TLD_TRUST_BONUS:
		logger.debug("TLD trust bonus for %s: %s", compound, TLD_TRUST_BONUS[compound])
		return TLD_TRUST_BONUS[compound]
	if tld in TLD_TRUST_BONUS:
		logger.debug("TLD trust bonus for %s: %s", tld, TLD_TRUST_BONUS[tld])
		return TLD_TRUST_BONUS[tld]
	return 0.0


def detect_legitimate_pattern(url: str) -> dict:
	"""Forum / e-commerce / news path fragments; the first match wins."""
	url_lower = url.lower()
	for pattern_type, bonus, fragments in LEGIT_PATTERNS:
		for fragment in fragments:
			if fragment in url_lower:
				logger.debug("%s pattern detected: %s", pattern_type, fragment)
				return {"is_legit_pattern": True, "pattern_type": pattern_type, "trust_bonus": bonus}
	return {"is_legit_pattern": False, "pattern_type": 'unknown', "trust_bonus": 0.0}


def url_indicators(url: str) -> dict:
	"""Boolean URL-structural evidence; an unparsable URL gives all-False."""
	url = url or ''
	host = _hostname(url)
	is_https = _scheme(url) == 'https'
	has_common_tld = bool(host) and host.split('.')[-1] in COMMON_TLDS
	has_ip = bool(IP_HOST_RE.match(host))
	deep_subdomain = len(host.split('.')) > MAX_HOST_LABELS if host else False
	free_hosting = bool(FREE_HOSTING_RE.search(host))
	is_long = len(url) > LONG_URL_LENGTH
	many_digits = sum(c.isdigit() for c in url) > MANY_DIGITS

	return {
		"is_https": is_https,
		"has_common_tld": has_common_tld,
		"has_ip_address": has_ip,
		"has_suspicious_subdomain": deep_subdomain,
		"has_free_hosting": free_hosting,
		"is_long_url": is_long,
		"has_many_digits": many_digits,
		"is_standard_http": (not is_https and not has_ip and not free_hosting
			and len(url) < SHORT_URL_LENGTH and has_common_tld),
		"is_suspicious_https": is_https and (is_long or many_digits or deep_subdomain),
	}


def total_trust_bonus(url: str) -> float:
	host = _hostname(url)
	tld_bonus = tld_trust_bonus(host) if host else 0.0
	return tld_bonus + detect_legitimate_pattern(url or '')["trust_bonus"]


def select_regime(url: str) -> CalibrationRegime:
	"""Pick the single calibration regime for `url`, in priority order."""
	ind = url_indicators(url)

	if ind["has_ip_address"] or ind["has_free_hosting"]:
		return CalibrationRegime('strong_phishing_indicators', 1.15, 0.10)
	if ind["is_standard_http"]:
		return CalibrationRegime('plain_http', 0.85, 0.08)
	if ind["is_suspicious_https"]:
		return CalibrationRegime('suspicious_https', 0.90, 0.12)
	if ind["is_https"] and ind["has_common_tld"] and not ind["has_suspicious_subdomain"]:
		trust_reduction = 0.12 + total_trust_bonus(url) * 0.4
		return CalibrationRegime('strong_legitimacy', 0.75, -trust_reduction)
	if not ind["is_https"]:
		return CalibrationRegime('http_fallback', 0.92, 0.05)
	return CalibrationRegime('unchanged', 1.0, 0.0)


def clamp_score(score: float) -> float:
	return max(SCORE_FLOOR, min(SCORE_CEILING, score))


def calibrate(fused_score: float, url: str) -> float:
	regime = select_regime(url)
	calibrated = fused_score * regime.confidence_weight + regime.evidence_adjustment
	final = clamp_score(calibrated)
	logger.info("Calibration %s: %.4f -> %.4f", regime.name, fused_score, final)
	return final
