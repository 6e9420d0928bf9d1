"""
Core Decision Tree Models Module
================================

Decision tree induction for labeled, weighted instances.

Models:
-------
- Instance: Immutable labeled observation
- ClassificationProperties: Label-count summaries (binary specialization included)
- GiniImpurityScorer / InformationGainScorer: Split scorers
- TerminationConditions: When to stop splitting
- DecisionTreeBuilder: Recursive tree induction
- DecisionTree: Built model with prediction and evaluation

Key Features:
- Numeric threshold and categorical one-vs-rest splits
- Deterministic tie-breaking for reproducible builds
- Optional threaded split evaluation
- Feature importance tracking
"""

from .instance import (
    Instance,
    PredictionMap,
    LabelPredictionWeight,
)

from .classification_properties import (
    ClassificationProperties,
    BinaryClassificationProperties,
    get_classification_properties,
)

from .scorers import (
    Scorer,
    GiniImpurityScorer,
    InformationGainScorer,
    get_scorer,
)

from .termination import TerminationConditions

from .decision_tree import (
    DecisionTree,
    Leaf,
    Branch,
    NumericBranch,
    CategoricalBranch,
)

from .tree_builder import (
    TreeConfig,
    DecisionTreeBuilder,
    build_tree,
)

__all__ = [
    # Data
    "Instance",
    "PredictionMap",
    "LabelPredictionWeight",

    # Classification properties
    "ClassificationProperties",
    "BinaryClassificationProperties",
    "get_classification_properties",

    # Scoring and termination
    "Scorer",
    "GiniImpurityScorer",
    "InformationGainScorer",
    "get_scorer",
    "TerminationConditions",

    # Trees
    "DecisionTree",
    "Leaf",
    "Branch",
    "NumericBranch",
    "CategoricalBranch",
    "TreeConfig",
    "DecisionTreeBuilder",
    "build_tree",
]
