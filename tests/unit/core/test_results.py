"""
Tests for the batch results module.

Covers ItemFailure, DatasetReport and JobReport status tracking and
serialization.
"""

import pytest
from datetime import datetime

from binning_framework.core.exceptions import DataLoadError, InvalidArgumentError
from binning_framework.core.results import DatasetReport, ItemFailure, JobReport, Status
from binning_framework.binning.histogram import HistogramBuilder


@pytest.fixture
def histogram(make_points):
    values = ["a", "b", "a"]
    return HistogramBuilder().build("letters", values, make_points(values), 5)


def failure(kind="histogram", item="amount"):
    return ItemFailure.from_exception(kind, item, InvalidArgumentError("Values must not be empty"))


# ============================================================================
# ITEM FAILURE TESTS
# ============================================================================

@pytest.mark.unit
class TestItemFailure:

    def test_from_framework_exception(self):
        item = ItemFailure.from_exception("dataset", "x.csv", DataLoadError("gone", file_path="x.csv"))

        assert item.error_type == "DataLoadError"
        assert item.severity == "critical"
        assert item.message == "gone"

    def test_from_foreign_exception(self):
        item = ItemFailure.from_exception("matrix", "amount", ZeroDivisionError("division by zero"))

        assert item.error_type == "ZeroDivisionError"
        assert item.severity == "recoverable"

    def test_to_dict(self):
        assert failure().to_dict() == {
            "kind": "histogram",
            "item": "amount",
            "error_type": "InvalidArgumentError",
            "message": "Values must not be empty",
            "severity": "recoverable",
        }


# ============================================================================
# DATASET REPORT TESTS
# ============================================================================

@pytest.mark.unit
class TestDatasetReport:

    def test_passed_without_failures(self, histogram):
        report = DatasetReport(dataset_name="d", histograms={"letters": histogram})

        assert report.status == Status.PASSED
        assert report.item_count == 1
        assert not report.has_failures()

    def test_warning_with_partial_failures(self, histogram):
        report = DatasetReport(dataset_name="d", histograms={"letters": histogram}, failures=[failure()])
        assert report.status == Status.WARNING

    def test_failed_when_nothing_produced(self):
        report = DatasetReport(dataset_name="d", failures=[failure("dataset", "d.csv")])
        assert report.status == Status.FAILED

    def test_to_dict(self, histogram):
        data = DatasetReport(dataset_name="d", row_count=3, histograms={"letters": histogram}).to_dict()

        assert data["status"] == "PASSED"
        assert data["row_count"] == 3
        assert data["histograms"]["letters"]["total_records"] == 3
        assert data["failures"] == []


# ============================================================================
# JOB REPORT TESTS
# ============================================================================

@pytest.mark.unit
class TestJobReport:

    def test_empty_job_failed(self):
        assert JobReport(job_name="j").overall_status == Status.FAILED

    def test_overall_status(self, histogram):
        report = JobReport(job_name="j")
        report.add_dataset_report(DatasetReport(dataset_name="a", histograms={"letters": histogram}))
        assert report.overall_status == Status.PASSED

        report.add_dataset_report(DatasetReport(dataset_name="b", failures=[failure("dataset", "b.csv")]))
        assert report.overall_status == Status.WARNING
        assert report.total_failures == 1
        assert report.has_failures()

    def test_all_datasets_failed(self):
        report = JobReport(job_name="j")
        report.add_dataset_report(DatasetReport(dataset_name="a", failures=[failure("dataset", "a.csv")]))
        assert report.overall_status == Status.FAILED

    def test_to_dict(self):
        report = JobReport(job_name="j", execution_time=datetime(2025, 1, 2, 3, 4, 5), description="demo")
        data = report.to_dict()

        assert data["job_name"] == "j"
        assert data["execution_time"] == "2025-01-02T03:04:05"
        assert data["description"] == "demo"
        assert data["datasets"] == []
