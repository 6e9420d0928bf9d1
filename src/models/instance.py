"""
Instances and Predictions
=========================

Immutable labeled observations and the prediction containers passed
between tree models and loss functions.
"""

import math
from dataclasses import dataclass, field
from numbers import Real
from types import MappingProxyType
from typing import Any, Hashable, Mapping

from ..exceptions import InvalidInputError


@dataclass(frozen=True, eq=False)
class Instance:
    """Labeled observation with an attribute map and a non-negative weight"""

    attributes: Mapping[str, Any]
    label: Hashable
    weight: float = 1.0

    def __post_init__(self):
        weight = self.weight
        if not isinstance(weight, Real) or isinstance(weight, bool) or not math.isfinite(weight):
            raise InvalidInputError(f"Instance weight must be a finite number, got {weight!r}")
        if weight < 0:
            raise InvalidInputError(f"Instance weight must be non-negative, got {weight}")
        object.__setattr__(self, "weight", float(weight))
        # read-only view over a private copy
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @classmethod
    def create(cls, label: Hashable, *attribute_pairs: Any, weight: float = 1.0) -> "Instance":
        """
        Build an instance from alternating attribute names and values.

        >>> Instance.create("true", "k1", 2, "k2", 1)
        """
        if len(attribute_pairs) % 2 != 0:
            raise InvalidInputError("Attributes must be given as name, value pairs")
        names = attribute_pairs[0::2]
        values = attribute_pairs[1::2]
        return cls(attributes=dict(zip(names, values)), label=label, weight=weight)


class PredictionMap(dict):
    """Mapping of label -> probability produced by a model"""

    def probability_of(self, label: Hashable) -> float:
        return self.get(label, 0.0)

    def most_likely(self) -> Hashable:
        if not self:
            raise InvalidInputError("Empty prediction has no most likely label")
        return max(self.items(), key=lambda item: item[1])[0]


@dataclass(frozen=True)
class LabelPredictionWeight:
    """Label, prediction and weight triple consumed by loss functions"""

    label: Hashable
    prediction: PredictionMap = field(compare=False)
    weight: float = 1.0


__all__ = [
    "Instance",
    "PredictionMap",
    "LabelPredictionWeight",
]
