"""
Unit Tests for Out-of-Time Cross-Validation
===========================================

Covers window construction, the TRAIN/VALIDATE rounds, loss aggregation
and time extraction.

Run with: pytest tests/test_cross_validator.py -v
"""

import math

import pandas as pd
import pytest

from ml_decision_tree import (
    AttributeDateTimeExtractor,
    ConfigurationError,
    CrossValidationConfig,
    CrossValidationReport,
    CrossValLossFunction,
    DecisionTreeBuilder,
    Instance,
    InvalidInputError,
    InvalidStateError,
    LabelPredictionWeight,
    NonWeightedAUCLoss,
    NumericBranch,
    OutOfTimeCrossValidator,
    PredictionMap,
    TreeConfig,
)

START = pd.Timestamp("2024-01-01")


def _at_hours(hours, weight=1.0):
    return [
        Instance.create(1.0 if i % 2 else 0.0, "timestamp", START + pd.Timedelta(hours=h), "x", i, weight=weight)
        for i, h in enumerate(hours)
    ]


class _RecordingModel:
    def score_all(self, instances):
        return [
            LabelPredictionWeight(instance.label, PredictionMap({instance.label: 1.0}), instance.weight)
            for instance in instances
        ]


class _RecordingBuilder:
    """Records every training set it is asked to build from"""

    def __init__(self):
        self.training_sets = []

    def build(self, training_data):
        self.training_sets.append(list(training_data))
        return _RecordingModel()


class _ConstantLoss(CrossValLossFunction):
    def __init__(self, value):
        self.value = value

    def get_loss(self, results):
        return self.value


class _SizeLoss(CrossValLossFunction):
    def get_loss(self, results):
        return float(len(results))


def _validator(loss_function=None, fraction=0.25, hours=24.0, **kwargs):
    return OutOfTimeCrossValidator(
        loss_function or _ConstantLoss(0.3),
        config=CrossValidationConfig(
            fraction_of_data_for_cross_validation=fraction,
            validation_time_slice_hours=hours,
        ),
        **kwargs,
    )


class TestCrossValidationConfig:
    @pytest.mark.parametrize("fraction", [0.0, 1.0, -0.1, 1.5])
    def test_fraction_out_of_range(self, fraction):
        with pytest.raises(ConfigurationError):
            CrossValidationConfig(fraction_of_data_for_cross_validation=fraction)

    @pytest.mark.parametrize("hours", [0.0, -24.0])
    def test_slice_width_must_be_positive(self, hours):
        with pytest.raises(ConfigurationError):
            CrossValidationConfig(validation_time_slice_hours=hours)

    def test_defaults(self):
        config = CrossValidationConfig()
        assert config.fraction_of_data_for_cross_validation == 0.25
        assert config.validation_slice_duration == pd.Timedelta(hours=24)


class TestValidationWindows:
    """Window boundaries over time-sorted data."""

    def test_hourly_data_daily_slices(self, timed_instances):
        validator = _validator()
        windows = list(validator.iter_windows(validator.sort_by_time(timed_instances)))

        assert len(windows) == 11
        assert (windows[0].training_end, windows[0].validation_end) == (750, 774)
        assert windows[0].lower_bound == START + pd.Timedelta(hours=750)
        assert windows[0].upper_bound == START + pd.Timedelta(hours=774)
        assert [w.validation_size for w in windows] == [24] * 10 + [10]

    def test_windows_partition_the_validated_data(self, timed_instances):
        validator = _validator()
        data = validator.sort_by_time(timed_instances)
        windows = list(validator.iter_windows(data))

        for previous, current in zip(windows, windows[1:]):
            assert current.training_end == previous.validation_end
            assert current.lower_bound >= previous.upper_bound
            assert current.training_size > previous.training_size
        assert windows[-1].validation_end == len(data)

        expected_weight = sum(instance.weight for instance in data.instances[750:])
        assert sum(w.validation_weight for w in windows) == pytest.approx(expected_weight)

    def test_ties_at_boundary_stay_out_of_training(self):
        validator = _validator()
        data = validator.sort_by_time(_at_hours([0, 1, 2, 3, 4, 5, 6, 6, 6, 7]))
        windows = list(validator.iter_windows(data))

        # the split index lands inside the run of 6h instances
        assert len(windows) == 1
        assert windows[0].training_end == 6
        assert windows[0].validation_end == 10

    def test_next_slice_starts_at_next_instance(self):
        validator = _validator()
        data = validator.sort_by_time(_at_hours([0, 1, 2, 3, 4, 5, 30, 100]))
        windows = list(validator.iter_windows(data))

        assert len(windows) == 2
        assert windows[0].lower_bound == START + pd.Timedelta(hours=30)
        assert windows[0].upper_bound == START + pd.Timedelta(hours=54)
        assert (windows[0].training_end, windows[0].validation_end) == (6, 7)
        # the gap between 54h and 100h is never validated
        assert windows[1].lower_bound == START + pd.Timedelta(hours=100)
        assert windows[1].upper_bound == START + pd.Timedelta(hours=124)
        assert (windows[1].training_end, windows[1].validation_end) == (7, 8)

    def test_slice_after_gap_collects_every_instance_within_width(self):
        validator = _validator()
        data = validator.sort_by_time(_at_hours([0, 1, 2, 3, 4, 5, 10, 40, 60]))
        windows = list(validator.iter_windows(data))

        assert [(w.training_end, w.validation_end) for w in windows] == [(6, 7), (7, 9)]
        assert windows[1].lower_bound == START + pd.Timedelta(hours=40)
        assert windows[1].upper_bound == START + pd.Timedelta(hours=64)

    def test_empty_data(self):
        validator = _validator()
        with pytest.raises(InvalidInputError):
            validator.iter_windows(validator.sort_by_time([]))

    def test_fraction_too_small_to_leave_validation_data(self):
        validator = _validator(fraction=1e-17)
        data = validator.sort_by_time(_at_hours(range(10)))

        with pytest.raises(ConfigurationError):
            validator.iter_windows(data)

    def test_sort_is_stable_for_equal_times(self):
        hours = [5, 1, 5, 1, 3]
        instances = _at_hours(hours)
        data = _validator().sort_by_time(instances)

        assert [instance.attributes["x"] for instance in data.instances] == [1, 3, 4, 0, 2]
        assert data.times == sorted(data.times)


class TestCrossValidationRounds:
    """TRAIN/VALIDATE rounds driven by a model builder."""

    def test_training_data_precedes_validation_slice(self, timed_instances):
        builder = _RecordingBuilder()
        validator = _validator()
        rounds = list(validator.iter_rounds(builder, timed_instances))

        assert len(builder.training_sets) == len(rounds) == 11
        for cv_round, training_set in zip(rounds, builder.training_sets):
            assert len(training_set) == cv_round.window.training_size
            assert max(i.attributes["timestamp"] for i in training_set) < cv_round.window.lower_bound

    def test_rounds_are_lazy(self, timed_instances):
        builder = _RecordingBuilder()
        rounds = _validator().iter_rounds(builder, timed_instances)
        assert builder.training_sets == []

        first = next(rounds)
        assert first.round_index == 0
        assert len(builder.training_sets) == 1

    def test_constant_loss_averages_to_itself(self, timed_instances):
        report = _validator(_ConstantLoss(0.3)).cross_validate(_RecordingBuilder(), timed_instances)
        assert report.average_loss == pytest.approx(0.3)

    def test_losses_weighted_by_slice_weight(self, timed_instances):
        report = _validator(_SizeLoss()).cross_validate(_RecordingBuilder(), timed_instances)

        weighted = sum(r.loss * r.validation_weight for r in report.rounds)
        total = sum(r.validation_weight for r in report.rounds)
        assert report.total_weight == pytest.approx(total)
        assert report.average_loss == pytest.approx(weighted / total)
        # the short final slice pulls the average below a full slice
        assert 10.0 < report.average_loss < 24.0

    def test_configuration_error_before_any_training(self):
        builder = _RecordingBuilder()
        with pytest.raises(ConfigurationError):
            _validator(fraction=1e-17).cross_validate(builder, _at_hours(range(10)))
        assert builder.training_sets == []

    def test_empty_training_window_reports_round(self):
        same_time = _at_hours([4] * 8)
        with pytest.raises(InvalidInputError, match=r"round=0") as error:
            _validator().cross_validate(DecisionTreeBuilder(), same_time)
        assert error.value.round_index == 0

    def test_zero_validation_weight(self):
        with pytest.raises(InvalidStateError):
            _validator().cross_validate(_RecordingBuilder(), _at_hours(range(10), weight=0.0))

    def test_on_round_observer(self, timed_instances):
        seen = []
        validator = _validator(_SizeLoss(), on_round=lambda r, average: seen.append((r.round_index, average)))
        report = validator.cross_validate(_RecordingBuilder(), timed_instances)

        assert [index for index, _ in seen] == list(range(11))
        assert seen[0][1] == pytest.approx(24.0)
        assert seen[-1][1] == pytest.approx(report.average_loss)

    def test_get_cross_validated_loss(self, timed_instances):
        loss = _validator(_ConstantLoss(0.7)).get_cross_validated_loss(_RecordingBuilder(), timed_instances)
        assert loss == pytest.approx(0.7)

    def test_verbose_prints_table(self, timed_instances, capsys):
        _validator(verbose=True).cross_validate(_RecordingBuilder(), timed_instances)
        assert "avg" in capsys.readouterr().out


class TestDecisionTreeCrossValidation:
    """End-to-end runs with the tree builder."""

    def test_hourly_data_daily_slices(self, timed_instances):
        builder = DecisionTreeBuilder(TreeConfig(attributes=["signal", "color"], max_depth=4))
        validator = _validator(NonWeightedAUCLoss(positive_label=1.0))

        report = validator.cross_validate(builder, timed_instances)

        assert len(report.rounds) == 11
        assert math.isfinite(report.average_loss)
        assert 0.0 <= report.average_loss <= 1.0
        # the label mostly follows the signal attribute
        assert report.average_loss < 0.5

    def test_result_is_deterministic(self, timed_instance_factory):
        instances = timed_instance_factory(n=400, seed=3)
        builder = DecisionTreeBuilder(TreeConfig(attributes=["signal", "color"], max_depth=4))
        validator = _validator(NonWeightedAUCLoss())

        first = validator.get_cross_validated_loss(builder, instances)
        second = validator.get_cross_validated_loss(builder, list(reversed(instances)))
        assert first == second

    def test_default_config_splits_time_as_ordered(self, timed_instances):
        trees = []

        class Builder(DecisionTreeBuilder):
            def build(self, training_data):
                tree = super().build(training_data)
                trees.append(tree)
                return tree

        report = _validator(NonWeightedAUCLoss()).cross_validate(Builder(), timed_instances)

        assert len(trees) == 11
        assert 0.0 <= report.average_loss <= 1.0
        for tree in trees:
            for branch in tree.branches():
                if branch.attribute == "timestamp":
                    assert isinstance(branch, NumericBranch)


class TestCrossValidationReport:
    def test_no_rounds(self):
        with pytest.raises(InvalidStateError):
            CrossValidationReport.from_rounds([])

    def test_to_dataframe(self, timed_instances):
        report = _validator().cross_validate(_RecordingBuilder(), timed_instances)
        frame = report.to_dataframe()

        assert list(frame.columns) == [
            "round",
            "training_size",
            "validation_size",
            "validation_start",
            "validation_end",
            "validation_weight",
            "loss",
        ]
        assert len(frame) == 11
        assert frame["validation_size"].sum() == 250


class TestDateTimeExtractors:
    def test_string_timestamps(self):
        instance = Instance.create(1.0, "timestamp", "2024-03-01 05:00")
        assert AttributeDateTimeExtractor()(instance) == pd.Timestamp("2024-03-01 05:00")

    def test_epoch_milliseconds(self):
        instance = Instance.create(1.0, "ts", 1_700_000_000_000)
        extractor = AttributeDateTimeExtractor("ts", unit="ms")
        assert extractor.extract_date_time(instance) == pd.Timestamp("2023-11-14 22:13:20")

    def test_missing_attribute(self):
        with pytest.raises(InvalidInputError):
            AttributeDateTimeExtractor()(Instance.create(1.0, "other", 1))

    def test_callable_extractor(self):
        instances = [
            Instance.create(float(i % 2), "when", START + pd.Timedelta(hours=i), "x", i) for i in range(8)
        ]
        validator = OutOfTimeCrossValidator(
            _ConstantLoss(0.1),
            date_time_extractor=lambda instance: instance.attributes["when"],
            config=CrossValidationConfig(validation_time_slice_hours=1.0),
        )
        report = validator.cross_validate(_RecordingBuilder(), instances)

        assert len(report.rounds) == 2
        assert [r.window.training_size for r in report.rounds] == [6, 7]

    def test_callable_returning_strings(self):
        instances = _at_hours([0, 1, 2, 3, 4, 5, 6, 7])
        validator = OutOfTimeCrossValidator(
            _ConstantLoss(0.1),
            date_time_extractor=lambda instance: str(instance.attributes["timestamp"]),
            config=CrossValidationConfig(validation_time_slice_hours=1.0),
        )
        data = validator.sort_by_time(instances)

        assert data.times[0] == START
        assert len(validator.cross_validate(_RecordingBuilder(), instances).rounds) == 2

    @pytest.mark.parametrize("extracted", [1_700_000_000, 12.5, None, "not a time"])
    def test_callable_returning_non_datetime(self, extracted):
        validator = OutOfTimeCrossValidator(_ConstantLoss(0.1), date_time_extractor=lambda instance: extracted)

        with pytest.raises(InvalidInputError):
            validator.sort_by_time(_at_hours([0, 1]))
