"""
Observer Pattern for Batch Engine Event Notifications.

The batch engine reports its progress through observers so that binning
logic stays free of terminal formatting and logging concerns. Observers are
always called from the thread that runs the engine, never from worker
threads.

Design Pattern: Observer (Behavioral)
Purpose: Decouple the engine from the presentation layer
"""

import logging
from abc import ABC, abstractmethod

from binning_framework.core.results import DatasetReport, ItemFailure, JobReport, Status


class EngineObserver(ABC):
    """
    Abstract base class for batch engine observers.

    Example:
        >>> class MyObserver(QuietObserver):
        ...     def on_item_failed(self, failure):
        ...         print(f"{failure.kind} {failure.item} failed")
        ...
        >>> engine = BatchEngine(observers=[MyObserver()])
    """

    @abstractmethod
    def on_job_start(self, job_name: str, dataset_count: int) -> None:
        """Called when a job starts."""
        pass

    @abstractmethod
    def on_dataset_start(self, dataset_name: str, file_path: str, column_count: int) -> None:
        """Called before a dataset's columns are processed."""
        pass

    @abstractmethod
    def on_item_complete(self, kind: str, item: str) -> None:
        """
        Called when a histogram, matrix or graph has been produced.

        Args:
            kind: "histogram", "matrix" or "bipartite"
            item: Column name or "left -> right" pair name
        """
        pass

    @abstractmethod
    def on_item_failed(self, failure: ItemFailure) -> None:
        """Called when a column or pair failed; processing continues."""
        pass

    @abstractmethod
    def on_dataset_complete(self, report: DatasetReport) -> None:
        """Called when a dataset has been processed."""
        pass

    @abstractmethod
    def on_job_complete(self, report: JobReport) -> None:
        """Called when the whole job is done."""
        pass


class CLIProgressObserver(EngineObserver):
    """
    Observer for CLI pretty output and progress reporting.

    Attributes:
        verbose (bool): Whether to show per-item progress
        po (PrettyOutput): Pretty output utility class
    """

    def __init__(self, verbose: bool = True):
        self.verbose = verbose

        # Import here to avoid circular dependency
        from binning_framework.core.pretty_output import PrettyOutput
        self.po = PrettyOutput

    def on_job_start(self, job_name: str, dataset_count: int) -> None:
        if self.verbose:
            self.po.logo()
            self.po.header("BINNING JOB")
            self.po.key_value("Job Name", job_name, indent=2)
            self.po.key_value("Datasets", dataset_count, indent=2)
            self.po.blank_line()

    def on_dataset_start(self, dataset_name: str, file_path: str, column_count: int) -> None:
        if self.verbose:
            self.po.section(f"Dataset: {dataset_name}")
            self.po.key_value("Path", file_path, indent=2)
            self.po.key_value("Columns", column_count, indent=2)
            self.po.blank_line()

    def on_item_complete(self, kind: str, item: str) -> None:
        if self.verbose:
            print(f"  {self.po.SUCCESS}{self.po.CHECK} {kind}: {item}{self.po.RESET}")

    def on_item_failed(self, failure: ItemFailure) -> None:
        print(f"  {self.po.ERROR}{self.po.CROSS} {failure.kind}: {failure.item} ({failure.message}){self.po.RESET}")

    def on_dataset_complete(self, report: DatasetReport) -> None:
        if self.verbose:
            self.po.blank_line()
            self.po.info(f"Dataset '{report.dataset_name}' completed: {report.status.value}")

    def on_job_complete(self, report: JobReport) -> None:
        if not self.verbose:
            return

        self.po.header("BINNING SUMMARY")
        histograms = sum(len(r.histograms) for r in report.dataset_reports)
        matrices = sum(len(r.matrices) for r in report.dataset_reports)
        graphs = sum(len(r.graphs) for r in report.dataset_reports)
        status_color = self.po.SUCCESS if report.overall_status == Status.PASSED else self.po.ERROR

        summary_items = [
            ("Datasets", len(report.dataset_reports), self.po.INFO),
            ("Histograms", histograms, self.po.INFO),
            ("Matrices", matrices, self.po.INFO),
            ("Bipartite Graphs", graphs, self.po.INFO),
            ("Failures", report.total_failures, self.po.ERROR if report.total_failures else self.po.SUCCESS),
            ("Status", report.overall_status.value, status_color),
            ("Duration", f"{report.duration_seconds:.2f}s", self.po.DIM),
        ]
        self.po.summary_box("Results", summary_items)


class LoggingObserver(EngineObserver):
    """Observer that records every engine event through the logging module."""

    def __init__(self):
        self.logger = logging.getLogger('binning_framework.batch')

    def on_job_start(self, job_name: str, dataset_count: int) -> None:
        self.logger.info(f"Binning job started: {job_name} ({dataset_count} datasets)")

    def on_dataset_start(self, dataset_name: str, file_path: str, column_count: int) -> None:
        self.logger.info(f"Dataset started: {dataset_name} ({column_count} columns) from {file_path}")

    def on_item_complete(self, kind: str, item: str) -> None:
        self.logger.debug(f"{kind} completed: {item}")

    def on_item_failed(self, failure: ItemFailure) -> None:
        self.logger.warning(
            f"{failure.kind} failed for {failure.item}: {failure.error_type}: {failure.message}"
        )

    def on_dataset_complete(self, report: DatasetReport) -> None:
        self.logger.info(
            f"Dataset completed: {report.dataset_name} - {report.status.value} "
            f"({report.item_count} items, {len(report.failures)} failures)"
        )

    def on_job_complete(self, report: JobReport) -> None:
        self.logger.info(
            f"Binning job completed - {report.overall_status.value} "
            f"in {report.duration_seconds:.2f}s"
        )


class QuietObserver(EngineObserver):
    """Observer that produces no output, for programmatic use."""

    def on_job_start(self, job_name: str, dataset_count: int) -> None:
        pass

    def on_dataset_start(self, dataset_name: str, file_path: str, column_count: int) -> None:
        pass

    def on_item_complete(self, kind: str, item: str) -> None:
        pass

    def on_item_failed(self, failure: ItemFailure) -> None:
        pass

    def on_dataset_complete(self, report: DatasetReport) -> None:
        pass

    def on_job_complete(self, report: JobReport) -> None:
        pass
