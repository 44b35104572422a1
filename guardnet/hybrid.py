"""
Hybrid voting between the primary (logistic/neural) scorer and the random
forest. The forest only ever corroborates: the primary score keeps at least
70% of the weight, and more when the two disagree.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from . import config
from .random_forest import ForestPrediction

logger = logging.getLogger("hybrid")

DECISION_THRESHOLD = 0.5

# (lr weight, rf weight)
AGREE_WEIGHTS = (0.7, 0.3)
DISAGREE_WEIGHTS = (0.85, 0.15)
DISTRUST_RF_WEIGHTS = (0.95, 0.05)

RF_EXTREME_HIGH = 0.9
RF_EXTREME_LOW = 0.1
RF_CONTRADICTION_GAP = 0.4

SUPPORTED_STRATEGIES = ('weighted_average',)


@dataclass(frozen=True)
class HybridConfig:
    strategy: str = 'weighted_average'
    rf_enabled: bool = True

    def __post_init__(self):
        if self.strategy not in SUPPORTED_STRATEGIES:
            raise ValueError(f"unsupported hybrid strategy {self.strategy!r}")


HYBRID_CONFIG = HybridConfig(strategy=config.HYBRID_STRATEGY, rf_enabled=config.RF_ENABLED)


class FusionResult(NamedTuple):
    score: float
    strategy: str
    lr_confidence: float


def fuse_detailed(lr_score: float, rf: Optional[ForestPrediction],
                  hybrid_config: HybridConfig = HYBRID_CONFIG) -> FusionResult:
    lr_confidence = abs(lr_score - 0.5) * 2
    if not hybrid_config.rf_enabled or rf is None:
        return FusionResult(lr_score, 'lr_only', lr_confidence)

    # plain {"score", "confidence"} dicts are accepted as well
    if isinstance(rf, dict):
        rf = ForestPrediction(rf["score"], rf.get("confidence", 0.0))
    rf_score = rf.score
    logger.info("LR: %.4f (conf: %.4f)", lr_score, lr_confidence)
    logger.info("RF: %.4f (conf: %.4f)", rf_score, rf.confidence)

    models_agree = (lr_score > DECISION_THRESHOLD) == (rf_score > DECISION_THRESHOLD)
    if models_agree:
        strategy = 'agreed'
        w_lr, w_rf = AGREE_WEIGHTS
    else:
        strategy = 'disagreed_favor_lr'
        w_lr, w_rf = DISAGREE_WEIGHTS
        # an extreme forest vote that the primary scorer contradicts is unreliable
        rf_extreme = rf_score > RF_EXTREME_HIGH or rf_score < RF_EXTREME_LOW
        if rf_extreme and abs(lr_score - rf_score) > RF_CONTRADICTION_GAP:
            strategy = 'disagreed_trust_lr'
            w_lr, w_rf = DISTRUST_RF_WEIGHTS

    final_score = lr_score * w_lr + rf_score * w_rf
    logger.info("Strategy: %s, Final Score: %.4f", strategy, final_score)
    return FusionResult(final_score, strategy, lr_confidence)


def fuse(lr_score: float, rf: Optional[ForestPrediction],
         hybrid_config: HybridConfig = HYBRID_CONFIG) -> float:
    """Combine the primary P(phishing) with the forest prediction."""
    return fuse_detailed(lr_score, rf, hybrid_config).score
