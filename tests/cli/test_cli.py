"""
Tests for the data-bin command-line interface.

Each command is invoked through click's CliRunner against small CSV files.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from binning_framework.cli import cli, decode_delimiter
from binning_framework.core.config import BinningConfig


@pytest.fixture
def runner():
    return CliRunner()


def write_job(tmp_path, files, **output):
    config = {"binning_job": {"name": "CLI Job", "files": files, "output": output}}
    path = tmp_path / "job.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


class TestHistogramCommand:
    """Test the histogram command."""

    def test_histogram(self, runner, sales_csv):
        result = runner.invoke(cli, ["histogram", str(sales_csv), "--column", "region"])

        assert result.exit_code == 0, result.output
        assert "Histogram: region" in result.output
        assert "north" in result.output
        assert "TOP_K" in result.output

    def test_json_output(self, runner, sales_csv, tmp_path):
        out = tmp_path / "hist.json"
        result = runner.invoke(cli, ["histogram", str(sales_csv), "-c", "amount", "-b", "3", "-j", str(out)])

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["histogram"]["column_name"] == "amount"
        assert data["histogram"]["actual_bin_count"] <= 3
        assert data["statistics"]["total_records"] == 6

    def test_bin_count_out_of_range(self, runner, sales_csv):
        result = runner.invoke(cli, ["histogram", str(sales_csv), "--column", "region", "--bins", "0"])

        assert result.exit_code == 1
        assert "between 1 and 50" in result.output

    def test_unknown_column(self, runner, sales_csv):
        result = runner.invoke(cli, ["histogram", str(sales_csv), "--column", "nope"])

        assert result.exit_code == 1
        assert "Columns not found" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["histogram", str(tmp_path / "absent.csv"), "--column", "a"])
        assert result.exit_code == 2

    def test_log_file(self, runner, sales_csv, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        result = runner.invoke(cli, [
            "histogram", str(sales_csv), "-c", "region", "--log-level", "INFO", "--log-file", str(log_file)
        ])

        assert result.exit_code == 0, result.output
        assert "Histogram of 'region'" in log_file.read_text(encoding="utf-8")


class TestMatrixCommand:
    """Test the matrix command."""

    def test_matrix(self, runner, sales_csv):
        result = runner.invoke(cli, ["matrix", str(sales_csv), "--column", "channel"])

        assert result.exit_code == 0, result.output
        assert "Transition Matrix: channel" in result.output
        assert "2x2" in result.output

    def test_header_only_file(self, runner, tmp_path):
        path = tmp_path / "header.csv"
        path.write_text("state\n", encoding="utf-8")
        result = runner.invoke(cli, ["matrix", str(path), "--column", "state", "-d", ","])

        assert result.exit_code == 0, result.output
        assert "matrix is empty" in result.output


class TestBipartiteCommand:
    """Test the bipartite command."""

    def test_bipartite(self, runner, sales_csv, tmp_path):
        out = tmp_path / "graph.json"
        result = runner.invoke(cli, [
            "bipartite", str(sales_csv), "--left", "region", "--right", "channel", "-j", str(out)
        ])

        assert result.exit_code == 0, result.output
        assert "Bipartite Graph: region" in result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["graph"]["links"][0] == {
            "left_bin": "north",
            "right_bin": "web",
            "weight": 3,
            "percentage": 50.0,
            "normalized_weight": 1.0,
            "visual_weight": 10,
        }
        assert data["statistics"]["strong_connections"] == 1

    def test_non_adjacent_columns(self, runner, sales_csv):
        result = runner.invoke(cli, ["bipartite", str(sales_csv), "-l", "region", "-r", "amount"])

        assert result.exit_code == 1
        assert "not adjacent" in result.output


class TestProfileCommand:
    """Test the profile command."""

    def test_profile(self, runner, sales_csv, tmp_path):
        out = tmp_path / "profile.json"
        result = runner.invoke(cli, ["profile", str(sales_csv), "--bins", "4", "--workers", "2", "-j", str(out)])

        assert result.exit_code == 0, result.output
        assert "Profile" in result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert list(data["histograms"]) == ["region", "channel", "amount"]
        assert [(g["left_column_name"], g["right_column_name"]) for g in data["graphs"]] == [
            ("region", "channel"), ("channel", "amount")
        ]
        assert data["status"] == "PASSED"

    def test_quiet(self, runner, sales_csv):
        result = runner.invoke(cli, ["profile", str(sales_csv), "--quiet"])

        assert result.exit_code == 0, result.output
        assert "Histogram: region" not in result.output

    def test_failures_exit_non_zero(self, runner, tmp_path):
        path = tmp_path / "header.csv"
        path.write_text("a,b\n", encoding="utf-8")
        result = runner.invoke(cli, ["profile", str(path), "-d", ","])

        assert result.exit_code == 1
        assert "FAILED" in result.output or "WARNING" in result.output


class TestRunCommand:
    """Test the run command."""

    def test_run(self, runner, sales_csv, tmp_path):
        config = write_job(tmp_path, [{"path": sales_csv.name}], json_summary="summary.json")
        result = runner.invoke(cli, ["run", str(config)])

        assert result.exit_code == 0, result.output
        assert "BINNING JOB COMPLETED" in result.output
        data = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))
        assert data["overall_status"] == "PASSED"

    def test_json_output_override(self, runner, sales_csv, tmp_path):
        config = write_job(tmp_path, [{"path": sales_csv.name}])
        out = tmp_path / "override.json"
        result = runner.invoke(cli, ["run", str(config), "-j", str(out), "--workers", "1", "--quiet"])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["job_name"] == "CLI Job"

    def test_failures_exit_non_zero(self, runner, sales_csv, tmp_path):
        config = write_job(tmp_path, [{"path": "missing.csv"}, {"path": sales_csv.name}])
        result = runner.invoke(cli, ["run", str(config), "--quiet"])

        assert result.exit_code == 1
        assert "FAILURE" in result.output

    def test_failures_tolerated_when_configured(self, runner, sales_csv, tmp_path):
        config = write_job(tmp_path, [{"path": "missing.csv"}, {"path": sales_csv.name}], fail_on_error=False)
        result = runner.invoke(cli, ["run", str(config), "--quiet"])

        assert result.exit_code == 0, result.output
        assert "fail_on_error disabled" in result.output

    def test_invalid_config(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("binning_job:\n  files: []\n", encoding="utf-8")
        result = runner.invoke(cli, ["run", str(path)])

        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestMiscCommands:
    """Test init-config, version and helpers."""

    def test_init_config(self, runner, tmp_path):
        path = tmp_path / "conf" / "job.yaml"
        result = runner.invoke(cli, ["init-config", str(path)])

        assert result.exit_code == 0, result.output
        config = BinningConfig.from_yaml(str(path))
        assert config.job_name == "Sample Binning Job"
        assert config.bin_count == 10

    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert "v0.1.0" in result.output

    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_decode_delimiter(self):
        assert decode_delimiter("\\t") == "\t"
        assert decode_delimiter("|") == "|"
        assert decode_delimiter(None) is None
