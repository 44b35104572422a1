# html_scanner.py
"""
HTML scanner: turn page markup the caller already holds into the content
signals used by the 50-feature vector. Nothing is fetched here.

Primary function:
    scan_html(html: str, url: str) -> dict
"""

from typing import Dict, Any
import logging
import re
from bs4 import BeautifulSoup
from urllib.parse import urlparse, urljoin

logger = logging.getLogger("html_scanner")

# Markup at or below this size is treated as "no content available"
MIN_CONTENT_LENGTH = 100

SOCIAL_RE = re.compile(r"facebook|twitter|instagram|linkedin")
BANK_RE = re.compile(r"bank|banking", re.I)
PAY_RE = re.compile(r"pay|payment", re.I)
CRYPTO_RE = re.compile(r"crypto|bitcoin", re.I)
COPYRIGHT_RE = re.compile(r"copyright|©", re.I)

EMPTY_HREFS = ("", "#", "javascript:void(0)")


def has_content(html: str) -> bool:
    return bool(html) and len(html) > MIN_CONTENT_LENGTH


def page_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return ""
    return " ".join(soup.title.get_text().split())


def analyze_forms(soup: BeautifulSoup, base_url: str) -> Dict[str, Any]:
    forms = soup.find_all("form")
    host = (urlparse(base_url).hostname or "").lower()
    external_submit = False
    for form in forms:
        action_full = urljoin(base_url, form.get("action") or "")
        # Form posts to an origin that is not the page host
        if action_full.startswith("http") and host not in action_full.lower():
            logger.debug("form posts to external origin: %s", urlparse(action_full).netloc)
            external_submit = True

    return {
        "form_count": len(forms),
        "has_external_form_submit": external_submit,
        "has_submit_button": soup.select_one('input[type="submit"], button[type="submit"]') is not None,
        "has_hidden_fields": soup.select_one('input[type="hidden"]') is not None,
        "has_password_field": soup.select_one('input[type="password"]') is not None,
    }


def analyze_links(soup: BeautifulSoup, base_url: str) -> Dict[str, int]:
    host = (urlparse(base_url).hostname or "").lower()
    hrefs = [a.get("href") or "" for a in soup.find_all("a")]
    self_ref = sum(1 for h in hrefs if (host and host in h) or h.startswith("/") or h.startswith("#"))
    empty_ref = sum(1 for h in hrefs if h in EMPTY_HREFS)
    external_ref = sum(1 for h in hrefs if h.startswith("http") and host not in h)
    return {
        "self_ref_count": self_ref,
        "empty_ref_count": empty_ref,
        "external_ref_count": external_ref,
    }


def scan_html(html: str, url: str) -> Dict[str, Any]:
    """
    Main entry point.
    Returns a dict of content signals; `content_available` is False when the
    markup is missing or too short to be meaningful, and callers should then
    fall back to their own defaults.
    """
    if not has_content(html):
        return {"content_available": False}

    soup = BeautifulSoup(html, "html.parser")
    lower = html.lower()
    lines = html.split("\n")

    forms = analyze_forms(soup, url)
    links = analyze_links(soup, url)
    result = {
        "content_available": True,
        "line_count": len(lines),
        "largest_line_length": max((len(line) for line in lines), default=0),
        "title": page_title(soup),
        "has_favicon": soup.select_one('link[rel*="icon"]') is not None,
        "has_robots": "robots" in lower,
        "is_responsive": soup.select_one('meta[name="viewport"]') is not None or "@media" in html,
        "has_description": soup.select_one('meta[name="description"]') is not None,
        "popup_count": lower.count("window.open"),
        "iframe_count": len(soup.find_all("iframe")),
        "has_social_net": bool(SOCIAL_RE.search(lower)),
        "has_bank_keyword": bool(BANK_RE.search(html)),
        "has_pay_keyword": bool(PAY_RE.search(html)),
        "has_crypto_keyword": bool(CRYPTO_RE.search(html)),
        "has_copyright": bool(COPYRIGHT_RE.search(html)),
        "image_count": len(soup.find_all("img")),
        "css_count": len(soup.select('link[rel="stylesheet"], style')),
        "script_count": len(soup.find_all("script")),
        **forms,
        **links,
    }
    logger.debug("scan_html: %d forms, %d scripts, title=%r",
                 result["form_count"], result["script_count"], result["title"])
    return result
