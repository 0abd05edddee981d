"""
Batch Result Classes.

This module defines dataclasses for the outcome of batch runs:
- ItemFailure: One column or column pair that could not be processed
- DatasetReport: Everything produced for one dataset
- JobReport: Overall report for a configured job
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from binning_framework.binning.models import BiPartiteGraph, Histogram, Matrix


class Status(Enum):
    """
    Outcome of a batch run.

    - PASSED: Every item was produced
    - WARNING: Some items failed, the rest were produced
    - FAILED: Nothing could be produced (or the dataset did not load)
    """
    PASSED = "PASSED"
    WARNING = "WARNING"
    FAILED = "FAILED"


@dataclass
class ItemFailure:
    """
    A single column or column pair that failed.

    Attributes:
        kind: "histogram", "matrix", "bipartite" or "dataset"
        item: Column name, "left -> right" pair name or file path
        error_type: Exception class name
        message: Exception message
        severity: Severity value of the exception ("recoverable" for foreign errors)
    """
    kind: str
    item: str
    error_type: str
    message: str
    severity: str = "recoverable"

    @classmethod
    def from_exception(cls, kind: str, item: str, error: Exception) -> "ItemFailure":
        severity = getattr(error, "severity", None)
        return cls(
            kind=kind,
            item=item,
            error_type=error.__class__.__name__,
            message=str(error),
            severity=severity.value if severity is not None else "recoverable",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "item": self.item,
            "error_type": self.error_type,
            "message": self.message,
            "severity": self.severity,
        }


@dataclass
class DatasetReport:
    """
    Results for one dataset.

    Maps are keyed by column name (histograms, matrices) or by the
    (left, right) column pair (graphs) and keep header order.
    """
    dataset_name: str
    file_path: str = ""
    bin_count: int = 0
    row_count: int = 0
    histograms: Dict[str, Histogram] = field(default_factory=dict)
    matrices: Dict[str, Matrix] = field(default_factory=dict)
    graphs: Dict[Tuple[str, str], BiPartiteGraph] = field(default_factory=dict)
    failures: List[ItemFailure] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def item_count(self) -> int:
        return len(self.histograms) + len(self.matrices) + len(self.graphs)

    @property
    def status(self) -> Status:
        if not self.failures:
            return Status.PASSED
        if self.item_count == 0:
            return Status.FAILED
        return Status.WARNING

    def has_failures(self) -> bool:
        return bool(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset_name": self.dataset_name,
            "file_path": self.file_path,
            "status": self.status.value,
            "bin_count": self.bin_count,
            "row_count": self.row_count,
            "duration_seconds": round(self.duration_seconds, 3),
            "histograms": {name: h.to_dict() for name, h in self.histograms.items()},
            "matrices": {name: m.to_dict() for name, m in self.matrices.items()},
            "graphs": [g.to_dict() for g in self.graphs.values()],
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass
class JobReport:
    """Overall report for every dataset in a job."""

    job_name: str
    execution_time: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0
    dataset_reports: List[DatasetReport] = field(default_factory=list)
    description: Optional[str] = None

    def add_dataset_report(self, report: DatasetReport) -> None:
        self.dataset_reports.append(report)

    @property
    def total_failures(self) -> int:
        return sum(len(r.failures) for r in self.dataset_reports)

    @property
    def overall_status(self) -> Status:
        statuses = [r.status for r in self.dataset_reports]
        if not statuses or all(s == Status.FAILED for s in statuses):
            return Status.FAILED
        if any(s != Status.PASSED for s in statuses):
            return Status.WARNING
        return Status.PASSED

    def has_failures(self) -> bool:
        return self.total_failures > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_name": self.job_name,
            "description": self.description,
            "execution_time": self.execution_time.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "overall_status": self.overall_status.value,
            "total_failures": self.total_failures,
            "datasets": [r.to_dict() for r in self.dataset_reports],
        }
