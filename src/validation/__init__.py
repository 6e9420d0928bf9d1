"""
Validation and Cross-Validation Framework
=========================================

Out-of-time validation for models trained on time-ordered instances.
"""

from .cross_validator import (
    CrossValidationConfig,
    CrossValidationRound,
    CrossValidationReport,
    OutOfTimeCrossValidator,
    TimeSortedData,
    ValidationWindow,
)

from .date_time_extractors import (
    DateTimeExtractor,
    AttributeDateTimeExtractor,
)

from .loss_functions import (
    CrossValLossFunction,
    NonWeightedAUCLoss,
    WeightedAUCLoss,
)

__all__ = [
    "CrossValidationConfig",
    "CrossValidationRound",
    "CrossValidationReport",
    "OutOfTimeCrossValidator",
    "TimeSortedData",
    "ValidationWindow",
    "DateTimeExtractor",
    "AttributeDateTimeExtractor",
    "CrossValLossFunction",
    "NonWeightedAUCLoss",
    "WeightedAUCLoss",
]
