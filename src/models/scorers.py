"""
Split Scorers
=============

Pure functions scoring a candidate binary partition of a node's instances
from the label counts of each side. Higher is better.
"""

from abc import ABC, abstractmethod
from typing import Dict, Hashable, Mapping, Type

import numpy as np

from ..exceptions import ConfigurationError

LabelCounts = Mapping[Hashable, float]


def _as_array(counts: LabelCounts) -> np.ndarray:
    return np.fromiter(counts.values(), dtype=float, count=len(counts))


def gini_impurity(counts: LabelCounts) -> float:
    dist = _as_array(counts)
    tot = dist.sum()
    if tot <= 0:
        return 0.0
    p = dist / tot
    return float(1.0 - np.sum(p * p))


def entropy(counts: LabelCounts) -> float:
    dist = _as_array(counts)
    tot = dist.sum()
    if tot <= 0:
        return 0.0
    p = dist / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


class Scorer(ABC):
    """Scores a split of ``total_counts`` into ``left_counts`` and ``right_counts``"""

    name: str = "scorer"

    @abstractmethod
    def impurity(self, counts: LabelCounts) -> float:
        pass

    def score(
        self,
        left_counts: LabelCounts,
        right_counts: LabelCounts,
        total_counts: LabelCounts,
    ) -> float:
        """Impurity reduction, each side weighted by its share of instances"""
        total = sum(total_counts.values())
        if total <= 0:
            return 0.0
        n_left = sum(left_counts.values())
        n_right = sum(right_counts.values())
        # an empty side is zero impurity with zero weight
        weighted = 0.0
        if n_left > 0:
            weighted += n_left / total * self.impurity(left_counts)
        if n_right > 0:
            weighted += n_right / total * self.impurity(right_counts)
        return self.impurity(total_counts) - weighted

    def __call__(self, left_counts: LabelCounts, right_counts: LabelCounts, total_counts: LabelCounts) -> float:
        return self.score(left_counts, right_counts, total_counts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class GiniImpurityScorer(Scorer):
    """Gini impurity reduction"""

    name = "gini"

    def impurity(self, counts: LabelCounts) -> float:
        return gini_impurity(counts)


class InformationGainScorer(Scorer):
    """Entropy reduction in bits"""

    name = "entropy"

    def impurity(self, counts: LabelCounts) -> float:
        return entropy(counts)


SCORERS: Dict[str, Type[Scorer]] = {
    GiniImpurityScorer.name: GiniImpurityScorer,
    InformationGainScorer.name: InformationGainScorer,
}


def get_scorer(name: str) -> Scorer:
    try:
        return SCORERS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown scorer {name!r}, expected one of {sorted(SCORERS)}"
        ) from None


__all__ = [
    "Scorer",
    "GiniImpurityScorer",
    "InformationGainScorer",
    "SCORERS",
    "get_scorer",
    "gini_impurity",
    "entropy",
]
