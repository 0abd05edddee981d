"""Configuration parsing and validation for binning jobs."""

import yaml
import os
from typing import Dict, Any, List, Optional
from pathlib import Path

from binning_framework.core.exceptions import (
    ConfigError,
    YAMLSizeError,
    ConfigValidationError
)
from binning_framework.core.constants import (
    MAX_YAML_FILE_SIZE,
    MAX_YAML_NESTING_DEPTH,
    MAX_YAML_KEY_COUNT,
    MAX_STRING_LENGTH,
    MIN_BIN_COUNT,
    MAX_BIN_COUNT,
    DEFAULT_BIN_COUNT,
    DEFAULT_MAX_WORKERS,
    DEFAULT_FREQUENCY_THRESHOLD,
    SUPPORTED_OUTPUTS,
)
from binning_framework.binning.normalizer import IntervalType


class BinningConfig:
    """
    Configuration for a binning job.

    Example YAML:
        binning_job:
          name: "Sales binning"
          files:
            - path: data/sales.csv
              delimiter: ","
          binning:
            bin_count: 10
            interval_style: RIGHT_OPEN
          outputs: [histogram, matrix, bipartite]
          processing:
            max_workers: 4
          output:
            json_summary: binning_summary.json
    """

    # Security limits for YAML files
    MAX_YAML_FILE_SIZE = MAX_YAML_FILE_SIZE
    MAX_YAML_NESTING_DEPTH = MAX_YAML_NESTING_DEPTH
    MAX_YAML_KEYS = MAX_YAML_KEY_COUNT

    def __init__(self, config_dict: Dict[str, Any], base_dir: Optional[str] = None):
        """
        Initialize from configuration dictionary.

        Args:
            config_dict: Parsed configuration
            base_dir: Directory that relative file paths are resolved against
        """
        if not isinstance(config_dict, dict):
            raise ConfigError("Configuration must be a mapping")
        self.raw_config = config_dict
        self.base_dir = Path(base_dir) if base_dir else None
        self._parse_config()

    @classmethod
    def from_yaml(cls, config_path: str) -> "BinningConfig":
        """
        Load configuration from YAML file with security validations.

        Raises:
            ConfigError: If file not found or invalid
            YAMLSizeError: If file exceeds size limit
            ConfigValidationError: If YAML structure is too complex
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        file_size = os.path.getsize(config_file)
        if file_size > cls.MAX_YAML_FILE_SIZE:
            raise YAMLSizeError(
                f"Configuration file too large: {file_size:,} bytes. "
                f"Maximum allowed: {cls.MAX_YAML_FILE_SIZE:,} bytes",
                file_size=file_size,
                max_size=cls.MAX_YAML_FILE_SIZE,
            )

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file: {str(e)}")
        except UnicodeDecodeError as e:
            raise ConfigError(f"Invalid file encoding (expected UTF-8): {str(e)}")

        if config_dict is None:
            raise ConfigError(f"Configuration file is empty: {config_path}")

        cls._validate_yaml_structure(config_dict)
        return cls(config_dict, base_dir=str(config_file.parent))

    @classmethod
    def _validate_yaml_structure(cls, obj: Any, current_depth: int = 0, total_keys: List[int] = None) -> None:
        """
        Reject YAML documents that are too deep, too large or hold huge strings.

        Raises:
            ConfigValidationError: If structure is too complex
        """
        if total_keys is None:
            total_keys = [0]

        if current_depth > cls.MAX_YAML_NESTING_DEPTH:
            raise ConfigValidationError(
                f"YAML nesting depth exceeds maximum of {cls.MAX_YAML_NESTING_DEPTH} levels."
            )

        if isinstance(obj, dict):
            total_keys[0] += len(obj)
            if total_keys[0] > cls.MAX_YAML_KEYS:
                raise ConfigValidationError(
                    f"YAML structure contains more than {cls.MAX_YAML_KEYS:,} keys/items."
                )
            for key, value in obj.items():
                if isinstance(key, str) and len(key) > 1000:
                    raise ConfigValidationError(
                        f"YAML key exceeds maximum length of 1000 characters: '{key[:50]}...'"
                    )
                cls._validate_yaml_structure(value, current_depth + 1, total_keys)

        elif isinstance(obj, list):
            total_keys[0] += len(obj)
            if total_keys[0] > cls.MAX_YAML_KEYS:
                raise ConfigValidationError(
                    f"YAML structure contains more than {cls.MAX_YAML_KEYS:,} keys/items."
                )
            for item in obj:
                cls._validate_yaml_structure(item, current_depth + 1, total_keys)

        elif isinstance(obj, str) and len(obj) > MAX_STRING_LENGTH:
            raise ConfigValidationError(
                f"YAML contains string exceeding maximum length ({MAX_STRING_LENGTH:,} bytes): '{obj[:50]}...'"
            )

    def _parse_config(self) -> None:
        """Parse and validate configuration."""
        if "binning_job" not in self.raw_config:
            raise ConfigError("Configuration must have 'binning_job' key", field="binning_job")

        job_config = self.raw_config["binning_job"] or {}

        self.job_name: str = job_config.get("name", "Unnamed Binning Job")
        self.description: Optional[str] = job_config.get("description", None)

        files_list = job_config.get("files")
        if not files_list:
            raise ConfigError("Configuration must specify at least one file to bin", field="files")
        self.files = self._parse_files(files_list)

        binning = job_config.get("binning", {}) or {}
        self.bin_count: int = self._parse_bin_count(binning.get("bin_count", DEFAULT_BIN_COUNT))
        self.interval_type: Optional[IntervalType] = self._parse_interval(binning.get("interval_style"))
        self.frequency_threshold: float = self._parse_threshold(
            binning.get("frequency_threshold", DEFAULT_FREQUENCY_THRESHOLD)
        )

        self.outputs: List[str] = self._parse_outputs(job_config.get("outputs", list(SUPPORTED_OUTPUTS)))

        processing = job_config.get("processing", {}) or {}
        self.max_workers: int = self._parse_workers(processing.get("max_workers", DEFAULT_MAX_WORKERS))

        output_config = job_config.get("output", {}) or {}
        self.json_summary_path: Optional[str] = self._resolve_path(output_config.get("json_summary"))
        self.fail_on_error: bool = bool(output_config.get("fail_on_error", True))

    def _parse_files(self, files_config: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Parse files configuration."""
        if not isinstance(files_config, list):
            raise ConfigValidationError("'files' must be a list", field="files", expected="list")

        parsed_files = []
        for idx, file_config in enumerate(files_config):
            if not isinstance(file_config, dict) or "path" not in file_config:
                raise ConfigError(f"File configuration {idx} missing 'path'", field=f"files[{idx}].path")

            path = Path(self._resolve_path(file_config["path"]))

            columns = file_config.get("columns")
            if columns is not None and not isinstance(columns, list):
                raise ConfigValidationError(
                    f"File configuration {idx}: 'columns' must be a list",
                    field=f"files[{idx}].columns",
                    value=columns,
                    expected="list of column names",
                )

            parsed_files.append({
                "name": file_config.get("name", path.stem or f"file_{idx}"),
                "path": str(path),
                "delimiter": file_config.get("delimiter"),
                "encoding": file_config.get("encoding"),
                "columns": [str(c) for c in columns] if columns else None,
            })

        return parsed_files

    def _resolve_path(self, path: Optional[str]) -> Optional[str]:
        """Resolve a relative path against the configuration file's directory."""
        if path is None:
            return None
        resolved = Path(str(path))
        if self.base_dir is not None and not resolved.is_absolute():
            resolved = self.base_dir / resolved
        return str(resolved)

    @staticmethod
    def _parse_bin_count(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_BIN_COUNT <= value <= MAX_BIN_COUNT:
            raise ConfigValidationError(
                f"Invalid bin_count: {value!r}. Must be an integer between {MIN_BIN_COUNT} and {MAX_BIN_COUNT}",
                field="binning.bin_count",
                value=value,
                expected=f"{MIN_BIN_COUNT}-{MAX_BIN_COUNT}",
            )
        return value

    @staticmethod
    def _parse_interval(value: Any) -> Optional[IntervalType]:
        if value is None:
            return None
        try:
            return IntervalType[str(value).strip().upper()]
        except KeyError:
            valid = ", ".join(t.value for t in IntervalType)
            raise ConfigValidationError(
                f"Invalid interval_style: {value!r}. Must be one of {valid}",
                field="binning.interval_style",
                value=value,
                expected=valid,
            )

    @staticmethod
    def _parse_threshold(value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 < value < 1:
            raise ConfigValidationError(
                f"Invalid frequency_threshold: {value!r}. Must be a fraction between 0 and 1",
                field="binning.frequency_threshold",
                value=value,
            )
        return float(value)

    @staticmethod
    def _parse_outputs(value: Any) -> List[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not value:
            raise ConfigValidationError(
                "'outputs' must be a non-empty list", field="outputs", expected=", ".join(SUPPORTED_OUTPUTS)
            )
        outputs = []
        for item in value:
            name = str(item).strip().lower()
            if name not in SUPPORTED_OUTPUTS:
                raise ConfigValidationError(
                    f"Invalid output: {item!r}. Must be one of {', '.join(SUPPORTED_OUTPUTS)}",
                    field="outputs",
                    value=item,
                )
            if name not in outputs:
                outputs.append(name)
        return outputs

    @staticmethod
    def _parse_workers(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigValidationError(
                f"Invalid max_workers: {value!r}. Must be a positive integer",
                field="processing.max_workers",
                value=value,
            )
        return value
