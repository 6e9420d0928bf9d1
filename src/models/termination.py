"""
Termination conditions for tree induction
"""

from dataclasses import dataclass

from .classification_properties import ClassificationProperties
from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class TerminationConditions:
    """Decides whether a node keeps splitting"""

    max_depth: int = 8
    min_leaf_instances: int = 1
    min_leaf_weight: float = 0.0
    min_score: float = 1e-7

    def __post_init__(self):
        if self.max_depth < 0:
            raise ConfigurationError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.min_leaf_instances < 0:
            raise ConfigurationError(f"min_leaf_instances must be >= 0, got {self.min_leaf_instances}")
        if self.min_leaf_weight < 0:
            raise ConfigurationError(f"min_leaf_weight must be >= 0, got {self.min_leaf_weight}")
        if self.min_score < 0:
            raise ConfigurationError(f"min_score must be >= 0, got {self.min_score}")

    def should_stop(self, depth: int, properties: ClassificationProperties, weight: float) -> bool:
        """Checked before any candidate split is evaluated"""
        if depth >= self.max_depth or properties.is_pure():
            return True
        # two children must each be admissible
        count = properties.total
        if count < 2 or count < 2 * self.min_leaf_instances:
            return True
        return weight < 2 * self.min_leaf_weight

    def is_admissible(self, count: int, weight: float) -> bool:
        return count > 0 and count >= self.min_leaf_instances and weight >= self.min_leaf_weight

    def gain_is_sufficient(self, score: float) -> bool:
        return score > self.min_score


__all__ = ["TerminationConditions"]
