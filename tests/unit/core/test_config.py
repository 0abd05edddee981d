"""
Tests for BinningConfig parsing and YAML safety checks.
"""

import pytest
import yaml

from binning_framework.binning.normalizer import IntervalType
from binning_framework.core.config import BinningConfig
from binning_framework.core.exceptions import ConfigError, ConfigValidationError, YAMLSizeError


def create_config_dict(files=None, **job):
    """Helper to create a minimal valid configuration dictionary."""
    config = {"files": files if files is not None else [{"path": "data/sales.csv"}]}
    config.update(job)
    return {"binning_job": config}


@pytest.mark.unit
class TestParsing:
    """Test configuration values and defaults."""

    def test_defaults(self):
        config = BinningConfig(create_config_dict())

        assert config.job_name == "Unnamed Binning Job"
        assert config.bin_count == 10
        assert config.interval_type is None
        assert config.frequency_threshold == 0.01
        assert config.outputs == ["histogram", "matrix", "bipartite"]
        assert config.max_workers == 4
        assert config.json_summary_path is None
        assert config.fail_on_error is True

    def test_file_entries(self):
        config = BinningConfig(create_config_dict(files=[
            {"path": "data/sales.csv", "delimiter": ";", "columns": ["region", 7]},
        ]))
        entry = config.files[0]

        assert entry["name"] == "sales"
        assert entry["delimiter"] == ";"
        assert entry["encoding"] is None
        assert entry["columns"] == ["region", "7"]

    def test_relative_paths_resolved_against_base_dir(self, tmp_path):
        config = BinningConfig(create_config_dict(), base_dir=str(tmp_path))
        assert config.files[0]["path"] == str(tmp_path / "data" / "sales.csv")

    def test_binning_section(self):
        config = BinningConfig(create_config_dict(
            binning={"bin_count": 5, "interval_style": "right_open", "frequency_threshold": 0.2},
            outputs=["matrix", "Histogram", "matrix"],
            processing={"max_workers": 1},
            output={"json_summary": "out.json", "fail_on_error": False},
        ))

        assert config.bin_count == 5
        assert config.interval_type == IntervalType.RIGHT_OPEN
        assert config.frequency_threshold == 0.2
        assert config.outputs == ["matrix", "histogram"]
        assert config.max_workers == 1
        assert config.json_summary_path == "out.json"
        assert config.fail_on_error is False

    def test_single_output_string(self):
        assert BinningConfig(create_config_dict(outputs="bipartite")).outputs == ["bipartite"]


@pytest.mark.unit
class TestValidation:
    """Test rejected configurations."""

    def test_missing_job_key(self):
        with pytest.raises(ConfigError, match="binning_job"):
            BinningConfig({"validation_job": {}})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            BinningConfig(["binning_job"])

    def test_no_files(self):
        with pytest.raises(ConfigError) as exc_info:
            BinningConfig(create_config_dict(files=[]))
        assert exc_info.value.field == "files"

    def test_file_without_path(self):
        with pytest.raises(ConfigError, match="missing 'path'"):
            BinningConfig(create_config_dict(files=[{"name": "x"}]))

    @pytest.mark.parametrize("bin_count", [0, 51, "ten", True, 2.5])
    def test_bad_bin_count(self, bin_count):
        with pytest.raises(ConfigValidationError) as exc_info:
            BinningConfig(create_config_dict(binning={"bin_count": bin_count}))
        assert exc_info.value.field == "binning.bin_count"

    def test_bad_interval_style(self):
        with pytest.raises(ConfigValidationError, match="interval_style"):
            BinningConfig(create_config_dict(binning={"interval_style": "HALF_OPEN"}))

    @pytest.mark.parametrize("threshold", [0, 1, 1.5, "0.1"])
    def test_bad_frequency_threshold(self, threshold):
        with pytest.raises(ConfigValidationError):
            BinningConfig(create_config_dict(binning={"frequency_threshold": threshold}))

    def test_bad_output(self):
        with pytest.raises(ConfigValidationError, match="Invalid output"):
            BinningConfig(create_config_dict(outputs=["heatmap"]))

    def test_empty_outputs(self):
        with pytest.raises(ConfigValidationError):
            BinningConfig(create_config_dict(outputs=[]))

    @pytest.mark.parametrize("workers", [0, -2, "4"])
    def test_bad_max_workers(self, workers):
        with pytest.raises(ConfigValidationError):
            BinningConfig(create_config_dict(processing={"max_workers": workers}))

    def test_columns_must_be_list(self):
        with pytest.raises(ConfigValidationError):
            BinningConfig(create_config_dict(files=[{"path": "x.csv", "columns": "region"}]))


@pytest.mark.unit
class TestFromYaml:
    """Test loading configuration files."""

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text(yaml.safe_dump(create_config_dict(name="Sales")), encoding="utf-8")
        config = BinningConfig.from_yaml(str(path))

        assert config.job_name == "Sales"
        assert config.files[0]["path"] == str(tmp_path / "data" / "sales.csv")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            BinningConfig.from_yaml(str(tmp_path / "absent.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="empty"):
            BinningConfig.from_yaml(str(path))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("binning_job: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to parse"):
            BinningConfig.from_yaml(str(path))

    def test_file_too_large(self, tmp_path, monkeypatch):
        path = tmp_path / "big.yaml"
        path.write_text(yaml.safe_dump(create_config_dict()), encoding="utf-8")
        monkeypatch.setattr(BinningConfig, "MAX_YAML_FILE_SIZE", 10)

        with pytest.raises(YAMLSizeError) as exc_info:
            BinningConfig.from_yaml(str(path))
        assert exc_info.value.details["max_size"] == 10

    def test_nesting_too_deep(self):
        nested = {}
        current = nested
        for _ in range(BinningConfig.MAX_YAML_NESTING_DEPTH + 2):
            current["level"] = {}
            current = current["level"]

        with pytest.raises(ConfigValidationError, match="nesting depth"):
            BinningConfig._validate_yaml_structure(nested)

    def test_too_many_keys(self, monkeypatch):
        monkeypatch.setattr(BinningConfig, "MAX_YAML_KEYS", 5)
        with pytest.raises(ConfigValidationError, match="keys/items"):
            BinningConfig._validate_yaml_structure({"items": list(range(10))})
