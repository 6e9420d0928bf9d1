"""
ML Decision Tree - Decision Trees with Out-of-Time Validation
=============================================================

Decision tree induction for labeled, weighted instances together with a
time-aware cross-validation harness for time-ordered data.

Key Features:
- Recursive tree induction with pluggable split scorers
- Configurable termination (depth, leaf size/weight, minimum gain)
- Deterministic, reproducible trees (optionally threaded split search)
- Label-probability predictions and feature importance
- Out-of-time cross-validation over sliding time-slices
- AUC-style loss functions

Modules:
--------
models: Instances, classification properties, scorers and tree induction
validation: Out-of-time cross-validation, time extraction and loss functions
exceptions: Error hierarchy

Example Usage:
--------------
>>> from ml_decision_tree import (
...     DecisionTreeBuilder, TreeConfig, OutOfTimeCrossValidator,
...     CrossValidationConfig, NonWeightedAUCLoss,
... )
>>>
>>> # Configure tree induction
>>> builder = DecisionTreeBuilder(TreeConfig(max_depth=6, min_leaf_instances=20))
>>>
>>> # Build a single tree
>>> tree = builder.build(instances)
>>> tree.predict({"clicks": 3, "country": "fr"})
>>>
>>> # Validate on successive future day-long slices
>>> validator = OutOfTimeCrossValidator(
...     NonWeightedAUCLoss(positive_label=1.0),
...     config=CrossValidationConfig(
...         fraction_of_data_for_cross_validation=0.25,
...         validation_time_slice_hours=24,
...     ),
... )
>>> loss = validator.get_cross_validated_loss(builder, instances)
"""

__version__ = "1.0.0"
__author__ = "ML Decision Tree Contributors"
__email__ = ""
__license__ = "MIT"

import sys
from typing import Dict, Any

# Core model exports
from .models.instance import (
    Instance,
    PredictionMap,
    LabelPredictionWeight,
)

from .models.classification_properties import (
    ClassificationProperties,
    BinaryClassificationProperties,
    get_classification_properties,
)

from .models.scorers import (
    Scorer,
    GiniImpurityScorer,
    InformationGainScorer,
    get_scorer,
)

from .models.termination import TerminationConditions

from .models.decision_tree import (
    DecisionTree,
    Leaf,
    NumericBranch,
    CategoricalBranch,
)

from .models.tree_builder import (
    TreeConfig,
    DecisionTreeBuilder,
    build_tree,
)

# Validation exports
from .validation.cross_validator import (
    CrossValidationConfig,
    CrossValidationRound,
    CrossValidationReport,
    OutOfTimeCrossValidator,
)

from .validation.date_time_extractors import (
    DateTimeExtractor,
    AttributeDateTimeExtractor,
)

from .validation.loss_functions import (
    CrossValLossFunction,
    NonWeightedAUCLoss,
    WeightedAUCLoss,
)

# Errors
from .exceptions import (
    DecisionTreeError,
    ConfigurationError,
    InvalidInputError,
    InvalidStateError,
)

# Package metadata
__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__email__",
    "__license__",

    # Data
    "Instance",
    "PredictionMap",
    "LabelPredictionWeight",
    "ClassificationProperties",
    "BinaryClassificationProperties",
    "get_classification_properties",

    # Tree induction
    "Scorer",
    "GiniImpurityScorer",
    "InformationGainScorer",
    "get_scorer",
    "TerminationConditions",
    "DecisionTree",
    "Leaf",
    "NumericBranch",
    "CategoricalBranch",
    "TreeConfig",
    "DecisionTreeBuilder",
    "build_tree",

    # Validation
    "CrossValidationConfig",
    "CrossValidationRound",
    "CrossValidationReport",
    "OutOfTimeCrossValidator",
    "DateTimeExtractor",
    "AttributeDateTimeExtractor",
    "CrossValLossFunction",
    "NonWeightedAUCLoss",
    "WeightedAUCLoss",

    # Errors
    "DecisionTreeError",
    "ConfigurationError",
    "InvalidInputError",
    "InvalidStateError",

    # Package functions
    "get_package_info",
    "check_dependencies",
    "setup_logging",
]


def get_package_info() -> Dict[str, Any]:
    """
    Get package information and metadata.

    Returns:
        Dict containing package info including version, platform, features.
    """
    info = {
        "name": "ml-decision-tree",
        "version": __version__,
        "description": "Decision tree induction with out-of-time cross-validation",
        "author": __author__,
        "license": __license__,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "platform": sys.platform,
        "features": [
            "Recursive decision tree induction",
            "Gini and entropy split scorers",
            "Deterministic tie-breaking",
            "Threaded split evaluation",
            "Out-of-time cross-validation",
            "AUC loss functions",
        ],
    }

    return info


def check_dependencies() -> Dict[str, bool]:
    """
    Check if all required dependencies are available.

    Returns:
        Dict mapping dependency names to availability status.
    """
    dependencies = {
        "numpy": False,
        "pandas": False,
        "sklearn": False,
        "joblib": False,
        "loguru": False,
        "rich": False,
    }

    for dep_name in dependencies:
        try:
            __import__(dep_name)
            dependencies[dep_name] = True
        except ImportError:
            dependencies[dep_name] = False

    return dependencies


def setup_logging(level: str = "INFO", format_type: str = "rich") -> None:
    """
    Setup logging configuration for the package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Format type ('rich', 'simple', 'json')
    """
    from loguru import logger

    # Remove default handler
    logger.remove()

    if format_type == "rich":
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                   "<level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                   "<level>{message}</level>",
            colorize=True
        )
    elif format_type == "json":
        logger.add(
            sys.stderr,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
            serialize=True
        )
    else:  # simple
        logger.add(
            sys.stderr,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            colorize=False
        )

    logger.debug(f"ML-Decision-Tree logging configured (v{__version__})")


# Initialize logging on import
setup_logging(level="INFO", format_type="rich")

