"""
Out-of-Time Cross-Validation Framework
======================================

Sliding-window validation for models trained on time-ordered instances.

Instances are sorted by extracted time. The model is trained on everything
before a validation time-slice, scored on that slice, and the slice then
joins the training data before the next one is validated:

    INIT -> (TRAIN -> VALIDATE)* -> DONE

Each slice's loss is weighted by the slice's total instance weight; the
final result is the weighted average over all slices. A model is never
evaluated on data older than the data it was trained on.
"""

import math
from bisect import bisect_left
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Protocol, Sequence

import pandas as pd
from loguru import logger
from rich.console import Console
from rich.table import Table

from .date_time_extractors import AttributeDateTimeExtractor
from .loss_functions import CrossValLossFunction
from ..exceptions import ConfigurationError, InvalidInputError, InvalidStateError
from ..models.decision_tree import is_number
from ..models.instance import Instance, LabelPredictionWeight


class PredictiveModel(Protocol):
    def score_all(self, instances: Iterable[Instance]) -> List[LabelPredictionWeight]:
        ...


class PredictiveModelBuilder(Protocol):
    def build(self, training_data: Iterable[Instance]) -> PredictiveModel:
        ...


@dataclass
class CrossValidationConfig:
    """Out-of-time cross-validation configuration"""

    # Share of the (time-sorted) data held out for validation, in (0, 1)
    fraction_of_data_for_cross_validation: float = 0.25
    # Width of every validation time-slice
    validation_time_slice_hours: float = 24.0

    def __post_init__(self):
        fraction = self.fraction_of_data_for_cross_validation
        if not 0.0 < fraction < 1.0:
            raise ConfigurationError(
                f"fraction_of_data_for_cross_validation must be in (0, 1), got {fraction}"
            )
        if not self.validation_time_slice_hours > 0:
            raise ConfigurationError(
                f"validation_time_slice_hours must be positive, got {self.validation_time_slice_hours}"
            )

    @property
    def validation_slice_duration(self) -> pd.Timedelta:
        return pd.Timedelta(hours=self.validation_time_slice_hours)


@dataclass(frozen=True)
class TimeSortedData:
    """Instances sorted ascending by time, with their extracted times"""

    instances: List[Instance]
    times: List[Any]

    def __len__(self) -> int:
        return len(self.instances)


@dataclass(frozen=True)
class ValidationWindow:
    """
    Boundaries of one round over :class:`TimeSortedData`.

    Training data is ``[0, training_end)``, validation data is
    ``[training_end, validation_end)``, everything after is unconsumed.
    """

    training_end: int
    validation_end: int
    lower_bound: Any
    upper_bound: Any
    validation_weight: float

    @property
    def training_size(self) -> int:
        return self.training_end

    @property
    def validation_size(self) -> int:
        return self.validation_end - self.training_end


@dataclass(frozen=True)
class CrossValidationRound:
    """Outcome of one TRAIN/VALIDATE round"""

    round_index: int
    window: ValidationWindow
    loss: float

    @property
    def validation_weight(self) -> float:
        return self.window.validation_weight

    @property
    def weighted_loss(self) -> float:
        return self.loss * self.window.validation_weight


@dataclass(frozen=True)
class CrossValidationReport:
    """All rounds of a run and their weight-averaged loss"""

    rounds: List[CrossValidationRound]
    average_loss: float
    total_weight: float

    @classmethod
    def from_rounds(cls, rounds: Sequence[CrossValidationRound]) -> "CrossValidationReport":
        total_weight = sum(r.validation_weight for r in rounds)
        if not rounds or total_weight <= 0:
            raise InvalidStateError(
                f"Average loss is undefined after {len(rounds)} rounds with total weight {total_weight}"
            )
        weighted_loss = sum(r.weighted_loss for r in rounds)
        return cls(rounds=list(rounds), average_loss=weighted_loss / total_weight, total_weight=total_weight)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "round": r.round_index,
                    "training_size": r.window.training_size,
                    "validation_size": r.window.validation_size,
                    "validation_start": r.window.lower_bound,
                    "validation_end": r.window.upper_bound,
                    "validation_weight": r.validation_weight,
                    "loss": r.loss,
                }
                for r in self.rounds
            ]
        )


RoundObserver = Callable[[CrossValidationRound, float], None]


class OutOfTimeCrossValidator:
    """
    Out-of-time cross-validator with a growing training window.

    Args:
        loss_function: Scores a validation slice, lower is better
        date_time_extractor: Maps an instance to its time
        config: Split fraction and slice width
        on_round: Called after every round with the round and the running average loss
        verbose: Print a table of rounds when the run completes
    """

    def __init__(
        self,
        loss_function: CrossValLossFunction,
        date_time_extractor: Optional[Callable[[Instance], Any]] = None,
        config: Optional[CrossValidationConfig] = None,
        on_round: Optional[RoundObserver] = None,
        verbose: bool = False,
    ):
        self.loss_function = loss_function
        self.date_time_extractor = date_time_extractor or AttributeDateTimeExtractor()
        self.config = config or CrossValidationConfig()
        self.on_round = on_round
        self.verbose = verbose

    def sort_by_time(self, raw_training_data: Iterable[Instance]) -> TimeSortedData:
        """Stable sort by extracted time, equal times keep input order"""
        timed = [(self._extract_time(instance), instance) for instance in raw_training_data]
        timed.sort(key=lambda pair: pair[0])
        return TimeSortedData(
            instances=[instance for _, instance in timed],
            times=[time for time, _ in timed],
        )

    def _extract_time(self, instance: Instance) -> pd.Timestamp:
        value = self.date_time_extractor(instance)
        # bare numbers are epochs of unknown unit
        if is_number(value):
            raise InvalidInputError(
                f"Extracted time {value!r} is a number, "
                "use AttributeDateTimeExtractor(unit=...) for epoch values"
            )
        try:
            timestamp = pd.Timestamp(value)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Extracted time {value!r} is not datetime-like") from e
        if timestamp is pd.NaT:
            raise InvalidInputError("Extracted time is missing (NaT)")
        return timestamp

    def iter_windows(self, data: TimeSortedData) -> Iterator[ValidationWindow]:
        """
        Validation windows over ``data``, in order.

        Raises immediately when ``data`` is empty or the split fraction
        leaves no instance for validation.
        """
        n = len(data)
        if n == 0:
            raise InvalidInputError("Cannot cross-validate zero instances")

        initial_training_size = math.floor(n * (1 - self.config.fraction_of_data_for_cross_validation))
        if initial_training_size >= n:
            raise ConfigurationError(
                f"fraction_of_data_for_cross_validation={self.config.fraction_of_data_for_cross_validation} "
                f"leaves no validation instances out of {n}"
            )
        return self._windows(data, initial_training_size)

    def _windows(self, data: TimeSortedData, initial_training_size: int) -> Iterator[ValidationWindow]:
        times = data.times
        n = len(times)
        duration = self.config.validation_slice_duration

        lower = times[initial_training_size]
        start = bisect_left(times, lower)
        while start < n:
            upper = lower + duration
            end = bisect_left(times, upper, lo=start)
            yield ValidationWindow(
                training_end=start,
                validation_end=end,
                lower_bound=lower,
                upper_bound=upper,
                validation_weight=sum(instance.weight for instance in data.instances[start:end]),
            )
            if end >= n:
                return
            # next slice opens at the first unvalidated instance
            lower = times[end]
            start = end

    def iter_rounds(
        self,
        model_builder: PredictiveModelBuilder,
        raw_training_data: Iterable[Instance],
    ) -> Iterator[CrossValidationRound]:
        """Lazily train and validate one round per window"""
        data = self.sort_by_time(raw_training_data)
        windows = self.iter_windows(data)
        return self._rounds(model_builder, data, windows)

    def _rounds(
        self,
        model_builder: PredictiveModelBuilder,
        data: TimeSortedData,
        windows: Iterator[ValidationWindow],
    ) -> Iterator[CrossValidationRound]:
        for round_index, window in enumerate(windows):
            training_data = data.instances[:window.training_end]
            validation_data = data.instances[window.training_end:window.validation_end]

            try:
                model = model_builder.build(training_data)
            except InvalidInputError as e:
                raise InvalidInputError(str(e), round_index=round_index) from e

            results = model.score_all(validation_data)
            loss = self.loss_function.get_loss(results)
            yield CrossValidationRound(round_index=round_index, window=window, loss=loss)

    def cross_validate(
        self,
        model_builder: PredictiveModelBuilder,
        raw_training_data: Iterable[Instance],
    ) -> CrossValidationReport:
        """Run every round and aggregate the weighted loss"""
        rounds: List[CrossValidationRound] = []
        running_loss = 0.0
        running_weight = 0.0

        for cv_round in self.iter_rounds(model_builder, raw_training_data):
            rounds.append(cv_round)
            running_loss += cv_round.weighted_loss
            running_weight += cv_round.validation_weight
            running_average = running_loss / running_weight if running_weight > 0 else math.nan

            logger.debug(
                f"Round {cv_round.round_index}: train={cv_round.window.training_size}, "
                f"validate={cv_round.window.validation_size}, loss={cv_round.loss:.4f}, "
                f"running average loss={running_average:.4f}, running weight={running_weight}"
            )
            if self.on_round is not None:
                self.on_round(cv_round, running_average)

        report = CrossValidationReport.from_rounds(rounds)
        logger.info(
            f"✅ Average loss: {report.average_loss:.4f} over {len(report.rounds)} rounds, "
            f"weight {report.total_weight}"
        )

        if self.verbose:
            self._display_results(report)

        return report

    def get_cross_validated_loss(
        self,
        model_builder: PredictiveModelBuilder,
        raw_training_data: Iterable[Instance],
    ) -> float:
        return self.cross_validate(model_builder, raw_training_data).average_loss

    def _display_results(self, report: CrossValidationReport):
        table = Table(title=f"Out-of-time cross-validation - {self.loss_function.name}")
        table.add_column("Round", style="cyan")
        table.add_column("Train", justify="right")
        table.add_column("Validate", justify="right")
        table.add_column("Slice start")
        table.add_column("Weight", justify="right")
        table.add_column("Loss", style="green", justify="right")

        for r in report.rounds:
            table.add_row(
                str(r.round_index),
                str(r.window.training_size),
                str(r.window.validation_size),
                str(r.window.lower_bound),
                f"{r.validation_weight:.2f}",
                f"{r.loss:.4f}",
            )
        table.add_row("avg", "", "", "", f"{report.total_weight:.2f}", f"{report.average_loss:.4f}")

        Console().print(table)


__all__ = [
    "CrossValidationConfig",
    "TimeSortedData",
    "ValidationWindow",
    "CrossValidationRound",
    "CrossValidationReport",
    "OutOfTimeCrossValidator",
    "PredictiveModelBuilder",
    "PredictiveModel",
]
