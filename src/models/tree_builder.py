"""
Decision Tree Builder
=====================

Recursive induction of binary decision trees under a pluggable split
scorer and termination policy.

Per node the builder:
- stops early when the termination policy says so
- evaluates every candidate split of every attribute
  (numeric or datetime thresholds via an incremental sweep,
  categorical one-vs-rest)
- keeps the best scoring candidate, the first one in canonical
  (attribute, threshold) order winning ties
- emits a leaf when the best gain does not exceed ``min_score``

Attributes can be evaluated on a thread pool (``n_jobs``). Per-attribute
winners are reduced in attribute order, so the tree does not depend on
thread scheduling.

Author: ML Decision Tree Contributors
Version: 1.0.0
"""

import time
from collections import Counter
from dataclasses import dataclass, replace
from typing import Any, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from joblib import Parallel, delayed
from loguru import logger

from .classification_properties import (
    ClassificationProperties,
    canonical_sort_key,
    get_classification_properties,
)
from .decision_tree import (
    CategoricalBranch,
    DecisionTree,
    Leaf,
    Node,
    NumericBranch,
    is_comparable,
    is_datetime,
    is_number,
    is_present,
)
from .instance import Instance
from .scorers import Scorer, get_scorer
from .termination import TerminationConditions
from ..exceptions import ConfigurationError, InvalidInputError


@dataclass
class TreeConfig:
    """Tree induction configuration"""

    # Termination
    max_depth: int = 8
    min_leaf_instances: int = 1
    min_leaf_weight: float = 0.0
    min_score: float = 1e-7

    # Split selection
    scorer: str = "gini"
    attributes: Optional[List[str]] = None

    # Performance
    n_jobs: int = 1

    def __post_init__(self):
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero")
        # fail fast on bad values
        self.to_termination_conditions()
        self.create_scorer()

    def to_termination_conditions(self) -> TerminationConditions:
        return TerminationConditions(
            max_depth=self.max_depth,
            min_leaf_instances=self.min_leaf_instances,
            min_leaf_weight=self.min_leaf_weight,
            min_score=self.min_score,
        )

    def create_scorer(self) -> Scorer:
        return get_scorer(self.scorer)


@dataclass(frozen=True)
class SplitCandidate:
    """Best split found for one attribute"""

    attribute: str
    score: float
    value: Any
    is_numeric: bool

    def goes_left(self, attributes: Mapping[str, Any]) -> bool:
        value = attributes.get(self.attribute)
        if not is_present(value):
            return False
        if self.is_numeric:
            return is_comparable(value, self.value) and value <= self.value
        return value == self.value


def _is_ordered(values: List[Any]) -> bool:
    """All numbers, or all datetimes of one timezone awareness"""
    if all(is_number(value) for value in values):
        return True
    return all(is_datetime(value) for value in values) and len({value.tzinfo is None for value in values}) == 1


class DecisionTreeBuilder:
    """
    Builds :class:`DecisionTree` models from training instances.

    Args:
        config: Tree configuration, defaults to :class:`TreeConfig`
        scorer: Overrides the scorer named in ``config``
        termination: Overrides the termination conditions from ``config``
    """

    def __init__(
        self,
        config: Optional[TreeConfig] = None,
        scorer: Optional[Scorer] = None,
        termination: Optional[TerminationConditions] = None,
    ):
        self.config = config or TreeConfig()
        self.scorer = scorer or self.config.create_scorer()
        self.termination = termination or self.config.to_termination_conditions()
        self.n_jobs = self.config.n_jobs

    def update_config(self, **overrides: Any) -> "DecisionTreeBuilder":
        """New builder with ``overrides`` applied to the configuration"""
        return DecisionTreeBuilder(config=replace(self.config, **overrides))

    def build(self, training_data: Iterable[Instance]) -> DecisionTree:
        instances = list(training_data)
        if not instances:
            raise InvalidInputError("Cannot build a decision tree from zero instances")

        start_time = time.time()
        root_properties = get_classification_properties(instances)
        classifications = sorted(root_properties.classifications, key=canonical_sort_key)
        attributes = self._candidate_attributes(instances)

        with Parallel(n_jobs=self.n_jobs, prefer="threads") as parallel:
            root = self._grow(instances, root_properties, 0, attributes, parallel)

        tree = DecisionTree(root, classifications)
        logger.debug(
            f"🌳 Built tree from {len(instances)} instances: "
            f"{tree.n_leaves} leaves, depth {tree.depth} in {time.time() - start_time:.3f}s"
        )
        return tree

    def _candidate_attributes(self, instances: Sequence[Instance]) -> List[str]:
        if self.config.attributes is not None:
            return sorted(set(self.config.attributes))
        names = set()
        for instance in instances:
            names.update(instance.attributes)
        return sorted(names)

    def _grow(
        self,
        instances: List[Instance],
        properties: ClassificationProperties,
        depth: int,
        attributes: List[str],
        parallel: Parallel,
    ) -> Node:
        weight = sum(instance.weight for instance in instances)
        if self.termination.should_stop(depth, properties, weight):
            return Leaf(properties, depth)

        best = self._best_split(instances, properties, weight, attributes, parallel)
        if best is None or not self.termination.gain_is_sufficient(best.score):
            return Leaf(properties, depth)

        left: List[Instance] = []
        right: List[Instance] = []
        for instance in instances:
            (left if best.goes_left(instance.attributes) else right).append(instance)

        left_node = self._grow(left, get_classification_properties(left), depth + 1, attributes, parallel)
        right_node = self._grow(right, get_classification_properties(right), depth + 1, attributes, parallel)

        if best.is_numeric:
            return NumericBranch(
                attribute=best.attribute,
                left=left_node,
                right=right_node,
                score=best.score,
                depth=depth,
                threshold=best.value,
            )
        return CategoricalBranch(
            attribute=best.attribute,
            left=left_node,
            right=right_node,
            score=best.score,
            depth=depth,
            category=best.value,
        )

    def _best_split(
        self,
        instances: List[Instance],
        properties: ClassificationProperties,
        weight: float,
        attributes: List[str],
        parallel: Parallel,
    ) -> Optional[SplitCandidate]:
        total_counts = properties.classifications_and_counts
        candidates = parallel(
            delayed(self._best_split_for_attribute)(attribute, instances, total_counts, weight)
            for attribute in attributes
        )

        # reduce in attribute order, first candidate wins ties
        best: Optional[SplitCandidate] = None
        for candidate in candidates:
            if candidate is not None and (best is None or candidate.score > best.score):
                best = candidate
        return best

    def _best_split_for_attribute(
        self,
        attribute: str,
        instances: List[Instance],
        total_counts: Mapping[Hashable, int],
        total_weight: float,
    ) -> Optional[SplitCandidate]:
        present: List[Tuple[Any, Instance]] = []
        for instance in instances:
            value = instance.attributes.get(attribute)
            if is_present(value):
                present.append((value, instance))
        if not present:
            return None

        if _is_ordered([value for value, _ in present]):
            return self._best_numeric_split(attribute, present, len(instances), total_counts, total_weight)
        return self._best_categorical_split(attribute, present, len(instances), total_counts, total_weight)

    def _score_candidate(
        self,
        left_counts: Mapping[Hashable, int],
        left_n: int,
        left_weight: float,
        n: int,
        total_counts: Mapping[Hashable, int],
        total_weight: float,
    ) -> Optional[float]:
        right_n = n - left_n
        right_weight = total_weight - left_weight
        if not (
            self.termination.is_admissible(left_n, left_weight)
            and self.termination.is_admissible(right_n, right_weight)
        ):
            return None
        right_counts = {
            label: count - left_counts.get(label, 0) for label, count in total_counts.items()
        }
        return self.scorer.score(left_counts, right_counts, total_counts)

    def _best_numeric_split(
        self,
        attribute: str,
        present: List[Tuple[Any, Instance]],
        n: int,
        total_counts: Mapping[Hashable, int],
        total_weight: float,
    ) -> Optional[SplitCandidate]:
        present.sort(key=lambda pair: pair[0])

        best: Optional[SplitCandidate] = None
        left_counts: Counter = Counter()
        left_weight = 0.0
        # the largest value cannot be a threshold
        for i in range(len(present) - 1):
            value, instance = present[i]
            left_counts[instance.label] += 1
            left_weight += instance.weight
            if present[i + 1][0] == value:
                continue

            score = self._score_candidate(left_counts, i + 1, left_weight, n, total_counts, total_weight)
            if score is not None and (best is None or score > best.score):
                best = SplitCandidate(attribute=attribute, score=score, value=value, is_numeric=True)
        return best

    def _best_categorical_split(
        self,
        attribute: str,
        present: List[Tuple[Any, Instance]],
        n: int,
        total_counts: Mapping[Hashable, int],
        total_weight: float,
    ) -> Optional[SplitCandidate]:
        groups = {}
        for value, instance in present:
            counts, weight = groups.get(value, (Counter(), 0.0))
            counts[instance.label] += 1
            groups[value] = (counts, weight + instance.weight)

        best: Optional[SplitCandidate] = None
        for category in sorted(groups, key=canonical_sort_key):
            counts, weight = groups[category]
            score = self._score_candidate(
                counts, sum(counts.values()), weight, n, total_counts, total_weight
            )
            if score is not None and (best is None or score > best.score):
                best = SplitCandidate(attribute=attribute, score=score, value=category, is_numeric=False)
        return best


def build_tree(
    training_data: Iterable[Instance],
    scorer: Scorer,
    termination: TerminationConditions,
    n_jobs: int = 1,
) -> DecisionTree:
    """Build a decision tree with an explicit scorer and termination policy"""
    builder = DecisionTreeBuilder(config=TreeConfig(n_jobs=n_jobs), scorer=scorer, termination=termination)
    return builder.build(training_data)


__all__ = [
    "TreeConfig",
    "SplitCandidate",
    "DecisionTreeBuilder",
    "build_tree",
]
