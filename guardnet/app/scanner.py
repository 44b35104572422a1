"""
Hybrid scoring pipeline:

    url (+html) -> features -> primary scorer + random forest
                -> hybrid fusion -> evidence calibration -> score
"""

import logging
import math
from typing import Optional

from ..errors import ModelUnavailable, ScoringFailure
from ..extract_features import extract, extract_url_only, parse_url, as_dict
from ..hybrid import HYBRID_CONFIG, HybridConfig, fuse_detailed
from ..ml_model import ModelStore
from ..scaler import normalize
from .heuristics import calibrate, select_regime

logger = logging.getLogger("scanner")

# percentage bands shown to the user
SAFE_MAX = 25
WARNING_MAX = 50


def to_percentage(score: float) -> int:
	# round half up
	return int(math.floor(score * 100 + 0.5))


def band(score: float) -> str:
	"""Map a calibrated score to 'safe' | 'warning' | 'phishing'."""
	percentage = to_percentage(score)
	if percentage <= SAFE_MAX:
		return 'safe'
	if percentage <= WARNING_MAX:
		return 'warning'
	return 'phishing'


class ScoringPipeline:

	def __init__(self, store: Optional[ModelStore] = None, hybrid_config: HybridConfig = HYBRID_CONFIG):
		self.store = store if store is not None else ModelStore(forest_enabled=hybrid_config.rf_enabled)
		self.hybrid_config = hybrid_config

	async def analyze(self, url: str, html: str = '') -> dict:
		"""Run the full pipeline and return every intermediate value."""
		parse_url(url)  # raises ParseError for the caller

		try:
			models = await self.store.load()
		except ModelUnavailable as e:
			raise ScoringFailure(f"primary model unavailable: {e}") from e

		mode = 'HYBRID (LR + RF)' if self.hybrid_config.rf_enabled else 'LR ONLY'
		logger.info("=== PHISHING DETECTION === mode=%s url=%s", mode, url)

		# -------------------------------------
		# 1. PRIMARY SCORER
		# -------------------------------------
		features = extract(url, html or '')
		normalized = normalize(features, models.scaler)
		try:
			legit_score = float(await models.primary.predict_legit(normalized))
		except Exception as e:
			logger.exception("Primary scorer failed for %s", url)
			raise ScoringFailure(f"primary scorer failed: {e}") from e
		if not 0.0 <= legit_score <= 1.0:
			raise ScoringFailure(f"primary scorer returned {legit_score}, expected a probability")
		lr_score = 1.0 - legit_score
		logger.info("LR score: %.4f", lr_score)

		# -------------------------------------
		# 2. RANDOM FOREST (URL-only features)
		# -------------------------------------
		rf_result = None
		if self.hybrid_config.rf_enabled and models.forest.is_loaded:
			rf_result = models.forest.predict(extract_url_only(url))
		else:
			logger.info("Using LR score only (RF disabled or not loaded)")

		# -------------------------------------
		# 3. FUSION + CALIBRATION
		# -------------------------------------
		fusion = fuse_detailed(lr_score, rf_result, self.hybrid_config)
		regime = select_regime(url)
		final_score = calibrate(fusion.score, url)
		logger.info("FINAL CALIBRATED SCORE: %.4f", final_score)

		return {
			"url": url,
			"lr_score": lr_score,
			"lr_confidence": fusion.lr_confidence,
			"rf_score": rf_result.score if rf_result else None,
			"rf_confidence": rf_result.confidence if rf_result else None,
			"fusion_strategy": fusion.strategy,
			"fused_score": fusion.score,
			"calibration": regime._asdict(),
			"score": final_score,
			"percentage": to_percentage(final_score),
			"verdict": band(final_score),
			"features": as_dict(features),
		}

	async def score(self, url: str, html: str = '') -> float:
		"""Calibrated phishing score in [0.02, 0.98]."""
		result = await self.analyze(url, html)
		return result["score"]
