"""
Decision Tree Model
===================

Node types and the built tree artifact. A tree is a single-owner recursive
structure: branches own their two children and nothing points back up.

Prediction walks from the root to a leaf and reads the leaf's label
frequencies over every label seen during training.
"""

import math
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from numbers import Real
from typing import Any, Collection, Dict, Hashable, Iterable, Iterator, List, Mapping, Sequence, Union

import pandas as pd

from .classification_properties import ClassificationProperties
from .instance import Instance, LabelPredictionWeight, PredictionMap


def is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def is_datetime(value: Any) -> bool:
    return isinstance(value, datetime) and value is not pd.NaT


def is_comparable(value: Any, threshold: Any) -> bool:
    """Whether ``value`` can be ordered against a split ``threshold``"""
    if is_number(threshold):
        return is_number(value)
    return (
        is_datetime(value)
        and is_datetime(threshold)
        and (value.tzinfo is None) == (threshold.tzinfo is None)
    )


def is_present(value: Any) -> bool:
    """None, NaN and NaT count as missing"""
    if value is None or value is pd.NaT:
        return False
    return not (isinstance(value, float) and math.isnan(value))


@dataclass(frozen=True)
class Leaf:
    """Terminal node holding the label counts of the instances reaching it"""

    classification_properties: ClassificationProperties
    depth: int = 0


@dataclass(frozen=True)
class Branch(ABC):
    """Internal node routing on a single attribute"""

    attribute: str
    left: "Node"
    right: "Node"
    score: float
    depth: int

    @abstractmethod
    def goes_left(self, value: Any) -> bool:
        """Routing rule for a present attribute value"""
        pass

    def choose_child(self, attributes: Mapping[str, Any]) -> "Node":
        value = attributes.get(self.attribute)
        # missing values always route right
        if is_present(value) and self.goes_left(value):
            return self.left
        return self.right


@dataclass(frozen=True)
class NumericBranch(Branch):
    """Threshold split on an ordered attribute (numbers or datetimes)"""

    threshold: Any

    def goes_left(self, value: Any) -> bool:
        return is_comparable(value, self.threshold) and value <= self.threshold

    def describe(self) -> str:
        return f"{self.attribute} <= {self.threshold}"


@dataclass(frozen=True)
class CategoricalBranch(Branch):
    category: Any

    def goes_left(self, value: Any) -> bool:
        return value == self.category

    def describe(self) -> str:
        return f"{self.attribute} == {self.category!r}"


Node = Union[Leaf, Branch]


class DecisionTree:
    """Built decision tree supporting prediction and evaluation"""

    def __init__(self, root: Node, classifications: Sequence[Hashable]):
        self.root = root
        self.classifications = tuple(classifications)

    def _find_leaf(self, attributes: Mapping[str, Any]) -> Leaf:
        node = self.root
        while isinstance(node, Branch):
            node = node.choose_child(attributes)
        return node

    def _pooled_counts(
        self,
        node: Node,
        attributes: Mapping[str, Any],
        attributes_to_ignore: Collection[str],
    ) -> Counter:
        if isinstance(node, Leaf):
            return Counter(node.classification_properties.classifications_and_counts)
        if node.attribute in attributes_to_ignore:
            return (
                self._pooled_counts(node.left, attributes, attributes_to_ignore)
                + self._pooled_counts(node.right, attributes, attributes_to_ignore)
            )
        return self._pooled_counts(node.choose_child(attributes), attributes, attributes_to_ignore)

    def predict(self, attributes: Mapping[str, Any]) -> PredictionMap:
        """Label probabilities for ``attributes``"""
        leaf = self._find_leaf(attributes)
        return leaf.classification_properties.to_prediction_map(self.classifications)

    def get_probability(self, attributes: Mapping[str, Any], label: Hashable) -> float:
        return self._find_leaf(attributes).classification_properties.probability_of(label)

    def predict_without_attributes(
        self,
        attributes: Mapping[str, Any],
        attributes_to_ignore: Collection[str],
    ) -> PredictionMap:
        """
        Predict as if ``attributes_to_ignore`` were unknown.

        Branches on an ignored attribute follow both children and pool their
        leaf counts, so each side contributes in proportion to the training
        instances that reached it.
        """
        counts = self._pooled_counts(self.root, attributes, frozenset(attributes_to_ignore))
        total = sum(counts.values())
        return PredictionMap((label, counts.get(label, 0) / total) for label in self.classifications)

    def score_all(self, instances: Iterable[Instance]) -> List[LabelPredictionWeight]:
        return [
            LabelPredictionWeight(
                label=instance.label,
                prediction=self.predict(instance.attributes),
                weight=instance.weight,
            )
            for instance in instances
        ]

    def evaluate(self, instances: Iterable[Instance], loss_function: Any) -> float:
        """Loss of this tree over ``instances`` under ``loss_function``"""
        return loss_function.get_loss(self.score_all(instances))

    def leaves(self) -> Iterator[Leaf]:
        stack: List[Node] = [self.root]
        while stack:
            node = stack.pop()
            if isinstance(node, Leaf):
                yield node
            else:
                stack.append(node.right)
                stack.append(node.left)

    def branches(self) -> Iterator[Branch]:
        stack: List[Node] = [self.root]
        while stack:
            node = stack.pop()
            if isinstance(node, Branch):
                yield node
                stack.append(node.right)
                stack.append(node.left)

    @property
    def n_leaves(self) -> int:
        return sum(1 for _ in self.leaves())

    @property
    def depth(self) -> int:
        return max(leaf.depth for leaf in self.leaves())

    def get_feature_importance(self) -> pd.DataFrame:
        """
        Split count and summed gain per attribute.

        Returns:
            DataFrame with columns ``attribute``, ``split_count`` and
            ``total_gain`` sorted by gain, highest first.
        """
        stats: Dict[str, Dict[str, float]] = {}
        for branch in self.branches():
            entry = stats.setdefault(branch.attribute, {"split_count": 0, "total_gain": 0.0})
            entry["split_count"] += 1
            entry["total_gain"] += branch.score

        importance = pd.DataFrame(
            [{"attribute": name, **values} for name, values in stats.items()],
            columns=["attribute", "split_count", "total_gain"],
        )
        return importance.sort_values(
            ["total_gain", "attribute"], ascending=[False, True]
        ).reset_index(drop=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecisionTree):
            return NotImplemented
        return self.root == other.root and self.classifications == other.classifications

    def __repr__(self) -> str:
        return f"DecisionTree(leaves={self.n_leaves}, depth={self.depth}, classes={list(self.classifications)})"


__all__ = [
    "Leaf",
    "Branch",
    "NumericBranch",
    "CategoricalBranch",
    "Node",
    "DecisionTree",
    "is_number",
    "is_datetime",
    "is_comparable",
    "is_present",
]
