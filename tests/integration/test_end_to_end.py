"""
End-to-end tests: YAML configuration and CSV files in, JSON summary out.
"""

import json

import pytest
import yaml

from binning_framework.core.engine import BatchEngine
from binning_framework.core.results import Status


READINGS = [
    ("ok", "21.5", "A"),
    ("ok", "22.0", "A"),
    ("warn", "27.3", "B"),
    ("ok", "n/a", "B"),
    ("fail", "35.9", "C"),
    ("", "23.1", "A"),
    ("ok", "21.9", "A"),
    ("warn", "28.4", "C"),
    ("ok", "22.6", "B"),
    ("ok", "20.8", "A"),
]


@pytest.fixture
def readings_csv(tmp_path):
    path = tmp_path / "data" / "readings.csv"
    path.parent.mkdir()
    lines = ["status;temperature;zone"] + [";".join(row) for row in READINGS]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def job_file(tmp_path, readings_csv, sales_csv):
    config = {
        "binning_job": {
            "name": "Sensor and sales binning",
            "files": [
                {"name": "readings", "path": "data/readings.csv", "delimiter": ";"},
                {"path": sales_csv.name},
            ],
            "binning": {"bin_count": 4},
            "processing": {"max_workers": 3},
            "output": {"json_summary": "reports/summary.json"},
        }
    }
    path = tmp_path / "job.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


@pytest.mark.integration
class TestConfiguredJob:
    """Run a whole job and inspect the written summary."""

    def test_summary(self, tmp_path, job_file):
        report = BatchEngine.from_config(str(job_file)).run()

        assert report.overall_status == Status.PASSED
        summary = json.loads((tmp_path / "reports" / "summary.json").read_text(encoding="utf-8"))

        assert summary["job_name"] == "Sensor and sales binning"
        assert summary["total_failures"] == 0
        assert [d["dataset_name"] for d in summary["datasets"]] == ["readings", "sales"]

        readings = summary["datasets"][0]
        assert readings["row_count"] == len(READINGS)
        assert list(readings["histograms"]) == ["status", "temperature", "zone"]
        assert [(g["left_column_name"], g["right_column_name"]) for g in readings["graphs"]] == [
            ("status", "temperature"), ("temperature", "zone")
        ]

    def test_histograms_cover_every_row(self, job_file):
        report = BatchEngine.from_config(str(job_file)).run()

        for dataset in report.dataset_reports:
            for histogram in dataset.histograms.values():
                assert sum(histogram.frequency.values()) == dataset.row_count
                assert histogram.actual_bin_count <= 4

    def test_numeric_column_keeps_null_bin(self, job_file):
        report = BatchEngine.from_config(str(job_file)).run()
        temperature = report.dataset_reports[0].histograms["temperature"]

        assert temperature.ordered_labels[-1] == "<NULL>"
        assert temperature.frequency["<NULL>"] == 1
        assert sum(temperature.frequency.values()) == 10

    def test_matrices_count_consecutive_rows(self, job_file):
        report = BatchEngine.from_config(str(job_file)).run()

        for dataset in report.dataset_reports:
            for matrix in dataset.matrices.values():
                assert matrix.total_sequences == dataset.row_count - 1
                assert sum(sum(row) for row in matrix.counts) == matrix.total_sequences

    def test_graphs_account_for_every_row(self, job_file):
        report = BatchEngine.from_config(str(job_file)).run()

        for dataset in report.dataset_reports:
            for graph in dataset.graphs.values():
                assert graph.total_weight + graph.unresolved_rows == dataset.row_count
                weights = [link.weight for link in graph.links]
                assert weights == sorted(weights, reverse=True)

    def test_single_worker_matches_pool(self, job_file):
        pooled = BatchEngine.from_config(str(job_file)).run()
        engine = BatchEngine.from_config(str(job_file))
        engine.max_workers = 1
        inline = engine.run()

        for left, right in zip(pooled.dataset_reports, inline.dataset_reports):
            assert left.to_dict()["histograms"] == right.to_dict()["histograms"]
            assert left.to_dict()["matrices"] == right.to_dict()["matrices"]
            assert left.to_dict()["graphs"] == right.to_dict()["graphs"]
