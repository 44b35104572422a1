# extract_features.py
"""
Extracts the numeric feature vectors consumed by the two scorers:

- extract(url, html)     -> 50 features (URL + page content), primary scorer
- extract_url_only(url)  -> 22 features (URL only), random forest

Both fail closed: an unparsable URL gives an all-zero vector of the right
length, which callers treat as "indeterminate".
"""

import math
import re
import logging
from typing import Dict, Tuple
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from .errors import ParseError
from .html_scanner import scan_html

logger = logging.getLogger("extract_features")

FEATURE_NAMES = [
    # URL based
    "URLLength", "DomainLength", "IsDomainIP", "URLSimilarityIndex",
    "CharContinuationRate", "TLDLegitimateProb", "URLCharProb", "TLDLength",
    "NoOfSubDomain", "HasObfuscation", "NoOfObfuscatedChar", "ObfuscationRatio",
    "NoOfLettersInURL", "LetterRatioInURL", "NoOfDegitsInURL", "DegitRatioInURL",
    "NoOfEqualsInURL", "NoOfQMarkInURL", "NoOfAmpersandInURL",
    "NoOfOtherSpecialCharsInURL", "SpacialCharRatioInURL", "IsHTTPS",
    # content based
    "LineOfCode", "LargestLineLength", "HasTitle", "DomainTitleMatchScore",
    "URLTitleMatchScore", "HasFavicon", "Robots", "IsResponsive",
    "NoOfURLRedirect", "NoOfSelfRedirect", "HasDescription", "NoOfPopup",
    "NoOfiFrame", "HasExternalFormSubmit", "HasSocialNet", "HasSubmitButton",
    "HasHiddenFields", "HasPasswordField", "Bank", "Pay", "Crypto",
    "HasCopyrightInfo", "NoOfImage", "NoOfCSS", "NoOfJS", "NoOfSelfRef",
    "NoOfEmptyRef", "NoOfExternalRef",
]
URL_FEATURE_NAMES = FEATURE_NAMES[:22]

N_FEATURES = len(FEATURE_NAMES)
N_URL_FEATURES = len(URL_FEATURE_NAMES)

# Query parameters that only carry campaign / click / session tracking
TRACKING_PARAMS = {
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "fbclid", "gclid", "srsltid", "ref", "referer", "source", "tracking",
    "click_id", "affiliate", "sid", "session", "sessionid", "_ga", "_gl",
}
TRACKING_TOKEN_RE = re.compile(r"[a-zA-Z0-9_-]+")
TRACKING_TOKEN_MIN_LENGTH = 20

COMMON_TLDS = ("com", "org", "net", "edu", "gov", "io", "co", "id")
POPULAR_BRANDS = (
    "google", "facebook", "amazon", "apple", "microsoft",
    "paypal", "netflix", "instagram", "twitter", "linkedin",
)

IPV4_RE = re.compile(r"(?:\d{1,3}\.){3}\d{1,3}")
OBFUSCATED_RE = re.compile(r"%[0-9A-Fa-f]{2}")
LETTER_RE = re.compile(r"[a-zA-Z]")
DIGIT_RE = re.compile(r"[0-9]")
SPECIAL_RE = re.compile(r"[^a-zA-Z0-9\s]")


def shannon_entropy(data: str) -> float:
    """Calculate entropy for URL randomness detection."""
    if not data:
        return 0.0
    probabilities = [float(data.count(c)) / len(data) for c in set(data)]
    return -sum(p * math.log(p, 2) for p in probabilities)


def parse_url(url: str):
    """Split `url` and return (parts, hostname); raise ParseError if unusable."""
    try:
        parts = urlsplit((url or "").strip())
        host = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise ParseError(f"invalid URL {url!r}: {e}") from e
    if not parts.scheme or not host:
        raise ParseError(f"invalid URL {url!r}: missing scheme or host")
    return parts, host.lower()


def is_ip_host(host: str) -> bool:
    return bool(IPV4_RE.fullmatch(host or ""))


def sanitize_url(url: str) -> str:
    """Strip tracking parameters and opaque tracking tokens from the query.

    Returns `url` untouched when it cannot be parsed.
    """
    try:
        parts, _ = parse_url(url)
    except ParseError:
        return url

    params = [
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k not in TRACKING_PARAMS
        and not (len(v) > TRACKING_TOKEN_MIN_LENGTH and TRACKING_TOKEN_RE.fullmatch(v))
    ]
    userinfo, at, hostport = parts.netloc.rpartition("@")
    sanitized = urlunsplit((
        parts.scheme.lower(),
        userinfo + at + hostport.lower(),
        parts.path or "/",
        urlencode(params),
        parts.fragment,
    ))
    if sanitized != url:
        logger.debug("URL sanitized: %d -> %d chars", len(url), len(sanitized))
    return sanitized


def _ratio(count: float, total: float) -> float:
    return count / total if total > 0 else 0.0


def _longest_run(s: str) -> int:
    best = run = 0
    prev = None
    for ch in s:
        run = run + 1 if ch == prev else 1
        prev = ch
        best = max(best, run)
    return best


def _adjacent_repeats(s: str) -> int:
    return sum(1 for a, b in zip(s, s[1:]) if a == b)


def brand_similarity(host: str) -> int:
    """Typosquatting score: 100 for a contained brand, 80 for a one-deletion typo."""
    host = host.lower()
    best = 0
    for brand in POPULAR_BRANDS:
        if brand in host:
            return 100
        for i in range(len(brand)):
            typo = brand[:i] + brand[i + 1:]
            if len(typo) > 3 and typo in host:
                best = max(best, 80)
    return best


def _lexical_counts(raw: str, url_length: int) -> list:
    """Features 9..20: obfuscation, letters, digits, separators, specials."""
    num_obfuscated = len(OBFUSCATED_RE.findall(raw))
    num_letters = len(LETTER_RE.findall(raw))
    num_digits = len(DIGIT_RE.findall(raw))
    num_special = len(SPECIAL_RE.findall(raw))
    return [
        1 if num_obfuscated else 0,
        num_obfuscated,
        _ratio(num_obfuscated, url_length),
        num_letters,
        _ratio(num_letters, url_length),
        num_digits,
        _ratio(num_digits, url_length),
        raw.count("="),
        raw.count("?"),
        raw.count("&"),
        num_special,
        _ratio(num_special, url_length),
    ]


def _content_features(signals: Dict, url: str, host: str) -> list:
    """Features 22..49 from html_scanner signals, or their no-content defaults."""
    if not signals.get("content_available"):
        # lines, longest line, title, 2x title match, favicon, robots,
        # responsive, 2x redirect, description, then 17 counts/flags
        return [100, 500, 1, 0, 0, 1, 0, 0, 0, 0, 1] + [0] * 17

    title = signals["title"].lower()
    domain_word = host.replace("www.", "", 1).split(".")[0]
    first_word = title.split(" ")[0] if title else ""
    # an empty title never matches
    title_match = bool(title) and (domain_word in title or first_word in domain_word)

    return [
        signals["line_count"],
        signals["largest_line_length"],
        1 if title else 0,
        100 if title_match else 0,
        100 if title and url in title else 0,
        int(signals["has_favicon"]),
        int(signals["has_robots"]),
        int(signals["is_responsive"]),
        0,  # NoOfURLRedirect
        0,  # NoOfSelfRedirect
        int(signals["has_description"]),
        signals["popup_count"],
        signals["iframe_count"],
        int(signals["has_external_form_submit"]),
        int(signals["has_social_net"]),
        int(signals["has_submit_button"]),
        int(signals["has_hidden_fields"]),
        int(signals["has_password_field"]),
        int(signals["has_bank_keyword"]),
        int(signals["has_pay_keyword"]),
        int(signals["has_crypto_keyword"]),
        int(signals["has_copyright"]),
        signals["image_count"],
        signals["css_count"],
        signals["script_count"],
        signals["self_ref_count"],
        signals["empty_ref_count"],
        signals["external_ref_count"],
    ]


def _finalize(values: list, expected: int) -> Tuple[float, ...]:
    vector = tuple(float(v) for v in values)
    if len(vector) != expected:
        raise AssertionError(f"expected {expected} features, built {len(vector)}")
    if not all(math.isfinite(v) for v in vector):
        logger.warning("Non-finite feature replaced with 0: %s", vector)
        vector = tuple(v if math.isfinite(v) else 0.0 for v in vector)
    return vector


def extract(url: str, html: str = "") -> Tuple[float, ...]:
    """
    Build the 50-feature vector for the primary scorer.

    Length-derived URL features use the sanitized URL while character counts
    use the raw one; see DESIGN.md before unifying the two.
    """
    sanitized = sanitize_url(url)
    try:
        parts, host = parse_url(sanitized)
    except ParseError:
        logger.warning("Invalid URL, returning zero vector: %r", url)
        return (0.0,) * N_FEATURES

    raw = url
    url_length = len(sanitized)
    labels = host.split(".")
    tld = labels[-1]

    features = [
        url_length,
        len(host),
        1 if is_ip_host(host) else 0,
        80 if (url_length < 50 and len(host) < 20) else 50,
        _ratio(_longest_run(raw), url_length),
        0.9 if tld in COMMON_TLDS else 0.3,
        1.0 / (shannon_entropy(raw) + 1),
        len(tld),
        max(0, len(labels) - 2),
    ]
    features.extend(_lexical_counts(raw, url_length))
    features.append(1 if parts.scheme.lower() == "https" else 0)
    features.extend(_content_features(scan_html(html, sanitized), raw, host))

    return _finalize(features, N_FEATURES)


def extract_url_only(url: str) -> Tuple[float, ...]:
    """Build the 22-feature URL-only vector for the random forest."""
    try:
        parts, host = parse_url(url)
    except ParseError:
        logger.warning("[RF] Invalid URL, returning zero vector: %r", url)
        return (0.0,) * N_URL_FEATURES

    url_length = len(url)
    labels = host.split(".")
    tld = labels[-1]

    features = [
        url_length,
        len(host),
        1 if is_ip_host(host) else 0,
        brand_similarity(host),
        _adjacent_repeats(url) / (url_length - 1) if url_length > 1 else 0,
        0.9 if tld in COMMON_TLDS else 0.3,
        1.0 / (shannon_entropy(url) + 1),
        len(tld),
        max(0, len(labels) - 2),
    ]
    features.extend(_lexical_counts(url, url_length))
    features.append(1 if parts.scheme.lower() == "https" else 0)

    return _finalize(features, N_URL_FEATURES)


def as_dict(vector) -> Dict[str, float]:
    """Name the entries of a 50- or 22-feature vector."""
    names = FEATURE_NAMES if len(vector) == N_FEATURES else URL_FEATURE_NAMES
    return dict(zip(names, vector))
