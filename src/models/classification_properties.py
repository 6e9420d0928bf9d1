"""
Classification Properties
=========================

Label-count summaries computed once per tree node or dataset.
"""

from collections import Counter
from types import MappingProxyType
from typing import Dict, FrozenSet, Hashable, Iterable, Mapping, Optional

from .instance import Instance, PredictionMap
from ..exceptions import InvalidInputError


def canonical_sort_key(label: Hashable):
    return (type(label).__name__, str(label))


class ClassificationProperties:
    """Immutable snapshot of label -> count for a set of instances"""

    def __init__(self, classifications_and_counts: Mapping[Hashable, int]):
        if not classifications_and_counts:
            raise InvalidInputError("Classification properties need at least one label")
        self._counts = MappingProxyType(dict(classifications_and_counts))
        self._total = sum(self._counts.values())

    @property
    def classifications_and_counts(self) -> Mapping[Hashable, int]:
        return self._counts

    @property
    def classifications(self) -> FrozenSet[Hashable]:
        return frozenset(self._counts)

    @property
    def total(self) -> int:
        return self._total

    def classifications_are_binary(self) -> bool:
        return len(self._counts) == 2

    def is_pure(self) -> bool:
        return len(self._counts) == 1

    def count_of(self, label: Hashable) -> int:
        return self._counts.get(label, 0)

    def probability_of(self, label: Hashable) -> float:
        return self._counts.get(label, 0) / self._total

    def to_prediction_map(self, labels: Optional[Iterable[Hashable]] = None) -> PredictionMap:
        """Label frequencies over ``labels`` (defaults to the labels seen here)"""
        labels = self._counts if labels is None else labels
        return PredictionMap((label, self.probability_of(label)) for label in labels)

    def most_common(self) -> Hashable:
        # highest count, ties resolved by canonical label order
        return sorted(self._counts.items(), key=lambda item: (-item[1], canonical_sort_key(item[0])))[0][0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassificationProperties):
            return NotImplemented
        return dict(self._counts) == dict(other._counts)

    def __hash__(self) -> int:
        return hash(frozenset(self._counts.items()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self._counts)!r})"


class BinaryClassificationProperties(ClassificationProperties):
    """Two-label specialization with precomputed class probabilities"""

    def __init__(self, classifications_and_counts: Mapping[Hashable, int]):
        super().__init__(classifications_and_counts)
        if len(self._counts) != 2:
            raise InvalidInputError(
                f"Binary classification properties need exactly two labels, got {len(self._counts)}"
            )
        first, second = sorted(
            self._counts.items(), key=lambda item: (item[1], canonical_sort_key(item[0]))
        )
        self.minority_label: Hashable = first[0]
        self.majority_label: Hashable = second[0]
        self._minority_probability = first[1] / self._total

    def probability_of(self, label: Hashable) -> float:
        if label == self.minority_label:
            return self._minority_probability
        if label == self.majority_label:
            return 1.0 - self._minority_probability
        return 0.0

    def classifications_are_binary(self) -> bool:
        return True


def count_labels(instances: Iterable[Instance]) -> Dict[Hashable, int]:
    return dict(Counter(instance.label for instance in instances))


def get_classification_properties(instances: Iterable[Instance]) -> ClassificationProperties:
    """
    Count label occurrences of ``instances``.

    Returns the binary specialization when exactly two distinct labels are
    observed. The result does not depend on instance order.
    """
    counts = count_labels(instances)
    if not counts:
        raise InvalidInputError("Cannot compute classification properties of zero instances")
    if len(counts) == 2:
        return BinaryClassificationProperties(counts)
    return ClassificationProperties(counts)


__all__ = [
    "ClassificationProperties",
    "BinaryClassificationProperties",
    "count_labels",
    "canonical_sort_key",
    "get_classification_properties",
]
