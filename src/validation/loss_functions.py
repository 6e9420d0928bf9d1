"""
Cross-Validation Loss Functions
===============================

Loss functions map label/prediction/weight triples to a scalar where lower
is better. The out-of-time validator weights each slice's loss by the
slice's total instance weight.
"""

from abc import ABC, abstractmethod
from typing import Hashable, Sequence, Tuple

import numpy as np
from sklearn.metrics import roc_auc_score
from loguru import logger

from ..exceptions import InvalidInputError
from ..models.instance import LabelPredictionWeight

# AUC of an uninformative ranking
CHANCE_LEVEL_LOSS = 0.5


class CrossValLossFunction(ABC):
    """Pure function of a sequence of :class:`LabelPredictionWeight`"""

    @abstractmethod
    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def __call__(self, results: Sequence[LabelPredictionWeight]) -> float:
        return self.get_loss(results)


class NonWeightedAUCLoss(CrossValLossFunction):
    """
    1 - AUC, treating ``positive_label`` as the positive class.

    Each instance is scored by the probability assigned to its true label,
    inverted when the true label is negative, so every score reads as
    "probability of the positive class".
    """

    def __init__(self, positive_label: Hashable = 1.0):
        self.positive_label = positive_label

    def _scores(self, results: Sequence[LabelPredictionWeight]) -> Tuple[np.ndarray, np.ndarray]:
        if len(results) == 0:
            raise InvalidInputError("Cannot compute a loss over zero results")

        true_class = np.empty(len(results), dtype=int)
        scores = np.empty(len(results), dtype=float)
        for i, result in enumerate(results):
            is_positive = result.label == self.positive_label
            probability_of_true_label = result.prediction.get(result.label, 0.0)
            true_class[i] = 1 if is_positive else 0
            scores[i] = probability_of_true_label if is_positive else 1.0 - probability_of_true_label
        return true_class, scores

    def _auc(self, true_class: np.ndarray, scores: np.ndarray, sample_weight=None) -> float:
        if np.unique(true_class).size < 2:
            logger.warning(
                f"⚠️ AUC undefined for a single class ({true_class.size} results), "
                f"using chance-level loss {CHANCE_LEVEL_LOSS}"
            )
            return 1.0 - CHANCE_LEVEL_LOSS
        return float(roc_auc_score(true_class, scores, sample_weight=sample_weight))

    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        true_class, scores = self._scores(results)
        return 1.0 - self._auc(true_class, scores)


class WeightedAUCLoss(NonWeightedAUCLoss):
    """1 - AUC with instance weights used as sample weights"""

    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        true_class, scores = self._scores(results)
        weights = np.fromiter((result.weight for result in results), dtype=float, count=len(results))
        return 1.0 - self._auc(true_class, scores, sample_weight=weights)


__all__ = [
    "CrossValLossFunction",
    "NonWeightedAUCLoss",
    "WeightedAUCLoss",
    "CHANCE_LEVEL_LOSS",
]
