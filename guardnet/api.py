"""Flask API for GuardNet.

Exposes the scoring pipeline and the session trust set to a local client
(browser extension, scan page, CLI).

Run: python -m guardnet.api
"""

import asyncio
import logging
from flask import Flask, request, jsonify, abort
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import redis as redis_lib
from urllib.parse import urlsplit

from . import config
from .errors import ParseError, ScoringFailure
from .extract_features import parse_url
from .app.scanner import ScoringPipeline
from .app.trust import SessionTrustStore, TrustMatcher, base_domain, should_skip_url

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api")

# Flask app
app = Flask(__name__)

# Rate limiter: prefer Redis storage when REDIS_URL is set and reachable
if config.REDIS_URL:
    try:
        redis_lib.from_url(config.REDIS_URL).ping()
        limiter = Limiter(app=app, key_func=get_remote_address,
                          default_limits=[config.DEFAULT_RATE_LIMIT], storage_uri=config.REDIS_URL)
        logger.info("Using Redis at %s for rate limiting", config.REDIS_URL)
    except redis_lib.RedisError:
        logger.exception("Failed to connect to Redis, falling back to in-memory limiter")
        limiter = Limiter(app=app, key_func=get_remote_address, default_limits=[config.DEFAULT_RATE_LIMIT])
else:
    limiter = Limiter(app=app, key_func=get_remote_address, default_limits=[config.DEFAULT_RATE_LIMIT])

if config.API_KEY:
    logger.info("API key enabled")

# One session per running process: the trust set lives as long as the server
session_trust = SessionTrustStore()
matcher = TrustMatcher(session_trust)
pipeline = ScoringPipeline()


def require_api_key() -> None:
    if not config.API_KEY:
        return
    key = request.headers.get("X-API-Key") or request.args.get("api_key")
    if not key or key != config.API_KEY:
        abort(401, description="Invalid or missing API key")


async def _analyze_with_timeout(url: str, html: str) -> dict:
    return await asyncio.wait_for(pipeline.analyze(url, html), timeout=config.SCAN_TIMEOUT)


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "models_loaded": pipeline.store.loaded})


@app.route("/predict", methods=["POST"])
@limiter.limit(config.PREDICT_RATE_LIMIT)
def predict():
    require_api_key()
    data = request.get_json(silent=True)
    if not data or "url" not in data:
        return jsonify({"error": "missing 'url' in JSON body"}), 400
    url = (data.get("url") or "").strip()
    html = data.get("html") or ""
    if not url:
        return jsonify({"error": "empty url"}), 400

    try:
        _, host = parse_url(url)
    except ParseError as e:
        return jsonify({"error": "invalid_url", "detail": str(e)}), 400

    if should_skip_url(url, matcher):
        return jsonify({
            "url": url,
            "skipped": True,
            "trusted": matcher.is_trusted(host),
        }), 200

    try:
        result = asyncio.run(_analyze_with_timeout(url, html))
    except asyncio.TimeoutError:
        logger.error("Scan timed out after %.1fs: %s", config.SCAN_TIMEOUT, url)
        return jsonify({"error": "timeout", "detail": "analysis took too long"}), 504
    except ScoringFailure as e:
        logger.exception("Scoring failed: %s", e)
        return jsonify({"error": "scoring_failed", "detail": str(e)}), 500

    result["skipped"] = False
    return jsonify(result), 200


@app.route("/trust", methods=["GET", "POST", "DELETE"])
def trust():
    """GET lists session trust; POST {"domain"} or {"url"} adds; DELETE clears."""
    require_api_key()
    if request.method == "GET":
        return jsonify({"domains": matcher.list_session_trust()}), 200
    if request.method == "DELETE":
        matcher.clear_session_trust()
        return jsonify({"success": True}), 200

    data = request.get_json(silent=True) or {}
    domain = (data.get("domain") or "").strip()
    if not domain and data.get("url"):
        domain = base_domain(data["url"])
    if not domain:
        return jsonify({"error": "missing 'domain' or parsable 'url' in JSON body"}), 400
    matcher.trust_domain_for_session(domain)
    return jsonify({"success": True, "domain": domain.strip().lower()}), 200


@app.route("/trust/check", methods=["GET"])
def trust_check():
    require_api_key()
    host = request.args.get("host") or ""
    if "://" in host:
        try:
            host = urlsplit(host).hostname or ""
        except ValueError:
            host = ""
    return jsonify({"host": host, "trusted": matcher.is_trusted(host)}), 200


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=config.PORT, debug=False)
