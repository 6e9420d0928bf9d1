from __future__ import annotations

from typing import List

import numpy as np
import pandas as pd
import pytest
from loguru import logger

from ml_decision_tree import Instance


@pytest.fixture(autouse=True)
def disable_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def four_instances() -> List[Instance]:
    """Two labels split evenly, k2=1 only ever seen with 'true'"""
    return [
        Instance.create("true", "k1", 2, "k2", 1),
        Instance.create("true", "k1", 1, "k2", 2),
        Instance.create("false", "k1", 2, "k2", 2),
        Instance.create("false", "k1", 1, "k2", 2),
    ]


def make_timed_instances(
    n: int = 1000,
    start: str = "2024-01-01",
    freq: str = "1h",
    seed: int = 42,
) -> List[Instance]:
    """Time-ordered binary instances whose label mostly follows ``signal``"""
    rng = np.random.default_rng(seed)
    timestamps = pd.date_range(start=start, periods=n, freq=freq)
    signal = rng.uniform(0, 1, n)
    noise = rng.uniform(0, 1, n)
    color = rng.choice(["red", "green", "blue"], n)

    instances = []
    for i in range(n):
        label = 1.0 if (signal[i] > 0.5) != (noise[i] < 0.15) else 0.0
        instances.append(
            Instance(
                attributes={
                    "timestamp": timestamps[i],
                    "signal": float(signal[i]),
                    "color": str(color[i]),
                },
                label=label,
                weight=float(1 + i % 3),
            )
        )
    return instances


@pytest.fixture
def timed_instance_factory():
    return make_timed_instances


@pytest.fixture
def timed_instances() -> List[Instance]:
    return make_timed_instances()
