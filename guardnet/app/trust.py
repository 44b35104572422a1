"""Domain trust: hosts that bypass scoring entirely.

Three sources, checked in order:
- a static allow-list of well-known hosts, matched exactly or as a parent
- trusted institutional TLD suffixes (.edu, .go.id, ...)
- a session trust set the user fills by accepting a page's risk

The session set is an explicit object (`SessionTrustStore`) owned by whoever
runs the session and handed to `TrustMatcher`; nothing here keeps it global.
"""

import logging
import re
import threading
from typing import Iterator, List, Optional
from urllib.parse import urlsplit

logger = logging.getLogger("trust")

TRUSTED_DOMAINS = frozenset([
    # Search engines
    'google.com', 'www.google.com', 'google.co.id',
    'bing.com', 'www.bing.com',
    'duckduckgo.com', 'www.duckduckgo.com',
    'yahoo.com', 'www.yahoo.com', 'search.yahoo.com',
    'yandex.com', 'www.yandex.com',
    'baidu.com', 'www.baidu.com',
    # Q&A and forums
    'quora.com', 'www.quora.com', 'id.quora.com',
    'stackoverflow.com', 'www.stackoverflow.com',
    'stackexchange.com', 'www.stackexchange.com',
    'medium.com', 'www.medium.com',
    # Social media
    'facebook.com', 'www.facebook.com', 'm.facebook.com',
    'instagram.com', 'www.instagram.com',
    'twitter.com', 'www.twitter.com', 'x.com', 'www.x.com',
    'linkedin.com', 'www.linkedin.com',
    'tiktok.com', 'www.tiktok.com',
    'reddit.com', 'www.reddit.com',
    'pinterest.com', 'www.pinterest.com',
    # Tech companies
    'microsoft.com', 'www.microsoft.com', 'login.microsoftonline.com',
    'apple.com', 'www.apple.com',
    'amazon.com', 'www.amazon.com',
    'github.com', 'www.github.com',
    'gitlab.com', 'www.gitlab.com',
    # Video / media
    'youtube.com', 'www.youtube.com', 'm.youtube.com',
    'netflix.com', 'www.netflix.com',
    'spotify.com', 'www.spotify.com',
    'twitch.tv', 'www.twitch.tv',
    # Productivity
    'gmail.com', 'mail.google.com',
    'outlook.com', 'outlook.live.com',
    'drive.google.com', 'docs.google.com',
    'dropbox.com', 'www.dropbox.com',
    'notion.so', 'www.notion.so',
    'slack.com', 'www.slack.com',
    'discord.com', 'www.discord.com', 'discord.gg',
    'zoom.us', 'www.zoom.us',
    # Shopping
    'shopee.co.id', 'shopee.com',
    'tokopedia.com', 'www.tokopedia.com',
    'bukalapak.com', 'www.bukalapak.com',
    'lazada.co.id', 'lazada.com',
    'ebay.com', 'www.ebay.com',
    'aliexpress.com', 'www.aliexpress.com',
    # Banking (Indonesia)
    'bca.co.id', 'klikbca.com', 'ibank.bca.co.id',
    'bni.co.id', 'ibank.bni.co.id',
    'bri.co.id', 'ib.bri.co.id',
    'mandirionline.co.id', 'bankmandiri.co.id',
    # News
    'detik.com', 'www.detik.com',
    'kompas.com', 'www.kompas.com',
    'tribunnews.com', 'www.tribunnews.com',
    'cnn.com', 'www.cnn.com',
    'bbc.com', 'www.bbc.com',
    # Others
    'wikipedia.org', 'en.wikipedia.org', 'id.wikipedia.org',
    'whatsapp.com', 'web.whatsapp.com',
    'telegram.org', 'web.telegram.org',
])

# Education, government and military suffixes
TRUSTED_TLDS = ('.edu', '.ac.id', '.ac.uk', '.edu.au', '.gov', '.gov.id', '.go.id', '.mil')

# Two-label suffixes that need one extra label to name a registrable domain
COMPOUND_TLDS = ('co.id', 'or.id', 'ac.id', 'go.id', 'web.id', 'my.id',
                 'co.uk', 'com.au', 'co.jp', 'com.sg')

# Pages the scanner redirects to carry this marker and must not be rescanned
VERIFIED_MARKER = 'guardnet-verified'
INTERNAL_MARKERS = ('chrome.google.com', 'chrome://', 'edge://', 'about:', 'chrome-extension://')

_WWW_RE = re.compile(r'^www\.')


def strip_www(hostname: str) -> str:
    return _WWW_RE.sub('', hostname)


def _is_same_or_subdomain(hostname: str, domain: str) -> bool:
    return hostname == domain or hostname.endswith('.' + domain)


def is_statically_trusted(hostname: str) -> bool:
    hostname = (hostname or '').lower()
    if not hostname:
        return False
    for trusted in TRUSTED_DOMAINS:
        if _is_same_or_subdomain(hostname, trusted):
            return True
    for tld in TRUSTED_TLDS:
        if hostname.endswith(tld):
            logger.debug("Trusted TLD detected: %s", tld)
            return True
    return False


class SessionTrustStore:
    """Domains the user trusted during the current session (in memory only)."""

    def __init__(self, domains=()):
        self._domains = set()
        self._lock = threading.Lock()
        for d in domains:
            self.add(d)

    def add(self, domain: str) -> None:
        domain = (domain or '').strip().lower()
        if not domain:
            raise ValueError("cannot trust an empty domain")
        with self._lock:
            self._domains.add(domain)
        logger.info("Domain trusted for session: %s", domain)

    def clear(self) -> None:
        with self._lock:
            self._domains.clear()
        logger.info("Session trusted domains cleared")

    def list(self) -> List[str]:
        with self._lock:
            return sorted(self._domains)

    def __contains__(self, domain) -> bool:
        with self._lock:
            return domain in self._domains

    def __iter__(self) -> Iterator[str]:
        return iter(self.list())

    def __len__(self) -> int:
        with self._lock:
            return len(self._domains)


def is_session_trusted(hostname: str, store: SessionTrustStore) -> bool:
    hostname = (hostname or '').lower()
    if not hostname:
        return False
    normalized = strip_www(hostname)

    if hostname in store or normalized in store:
        logger.debug("Exact session match for %s", hostname)
        return True

    for trusted in store:
        # hostname at or below a trusted domain (kaskus.co.id trusts *.kaskus.co.id)
        if _is_same_or_subdomain(hostname, trusted) or _is_same_or_subdomain(normalized, trusted):
            logger.debug("Session domain match: %s -> %s", hostname, trusted)
            return True
        # reverse case: trusting www.example.com also trusts example.com
        if _is_same_or_subdomain(normalized, strip_www(trusted)):
            logger.debug("Reverse session match: %s -> %s", hostname, trusted)
            return True
    return False


class TrustMatcher:
    """Decides whether a hostname skips scoring."""

    def __init__(self, session: Optional[SessionTrustStore] = None):
        self.session = session if session is not None else SessionTrustStore()

    def is_trusted(self, hostname: str) -> bool:
        if is_statically_trusted(hostname):
            return True
        return is_session_trusted(hostname, self.session)

    def trust_domain_for_session(self, domain: str) -> None:
        self.session.add(domain)

    def clear_session_trust(self) -> None:
        self.session.clear()

    def list_session_trust(self) -> List[str]:
        return self.session.list()


def base_domain(url: str) -> Optional[str]:
    """Registrable-ish domain of `url`, aware of compound TLDs like co.id.

    >>> base_domain('https://shop.kaskus.co.id/x')
    'kaskus.co.id'
    >>> base_domain('https://www.example.com')
    'example.com'
    """
    try:
        hostname = urlsplit(url).hostname
    except (ValueError, TypeError, AttributeError):
        return None
    if not hostname:
        return None

    parts = hostname.split('.')
    for ctld in COMPOUND_TLDS:
        if hostname.endswith('.' + ctld):
            n = len(ctld.split('.'))
            return '.'.join(parts[-(n + 1):])

    if len(parts) >= 2:
        if parts[0] == 'www' and len(parts) > 2:
            return '.'.join(parts[1:])
        return '.'.join(parts[-2:])
    return hostname


def should_skip_url(url: str, matcher: TrustMatcher) -> bool:
    """True when navigation to `url` should not be scanned at all."""
    if not url:
        return True
    if not url.startswith('http://') and not url.startswith('https://'):
        return True
    if VERIFIED_MARKER in url:
        return True

    try:
        hostname = urlsplit(url).hostname or ''
    except ValueError:
        return False
    if matcher.is_trusted(hostname):
        logger.info("Trusted domain, skipping: %s", url)
        return True

    return any(marker in url for marker in INTERNAL_MARKERS)
