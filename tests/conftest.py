"""Shared fixtures for the binning framework test suite."""

import logging

import pytest

from binning_framework.binning.engine import BinningEngine
from binning_framework.binning.models import DataPoint, Dataset
from binning_framework.binning.normalizer import Normalizer


@pytest.fixture
def make_points():
    """Build row references for values laid out one per row."""
    def _make(values, column_index=0):
        return [DataPoint(value, row, column_index) for row, value in enumerate(values)]
    return _make


@pytest.fixture
def normalizer():
    return Normalizer()


@pytest.fixture
def engine():
    return BinningEngine()


@pytest.fixture
def sales_dataset():
    """Six rows; region and channel are categorical, amount is numeric."""
    return Dataset.from_rows(
        ["region", "channel", "amount"],
        [
            ["north", "web", "10"],
            ["north", "web", "20"],
            ["south", "store", "30"],
            ["north", "store", "40"],
            ["south", "web", "50"],
            ["north", "web", "60"],
        ],
        name="sales",
    )


@pytest.fixture
def sales_csv(tmp_path):
    """The sales dataset written as a CSV file."""
    path = tmp_path / "sales.csv"
    path.write_text(
        "region,channel,amount\n"
        "north,web,10\n"
        "north,web,20\n"
        "south,store,30\n"
        "north,store,40\n"
        "south,web,50\n"
        "north,web,60\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attaches so streams from one test never leak into the next."""
    yield
    logger = logging.getLogger("binning_framework")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
