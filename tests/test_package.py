import pytest
from loguru import logger

import ml_decision_tree
from ml_decision_tree import DecisionTreeError, InvalidInputError, check_dependencies, get_package_info, setup_logging


def test_package_info():
    info = get_package_info()
    assert info["name"] == "ml-decision-tree"
    assert info["version"] == ml_decision_tree.__version__


def test_dependencies_available():
    assert all(check_dependencies().values())


@pytest.mark.parametrize("format_type", ["rich", "json", "simple"])
def test_setup_logging(format_type, capsys):
    setup_logging(level="WARNING", format_type=format_type)
    logger.warning("tree check")
    logger.info("hidden")

    err = capsys.readouterr().err
    assert "tree check" in err
    assert "hidden" not in err


def test_errors_share_a_base_class():
    error = InvalidInputError("bad input", round_index=3)
    assert isinstance(error, DecisionTreeError)
    assert isinstance(error, ValueError)
    assert str(error) == "bad input (round=3)"
