"""
JSON serialization utilities for binning results.

Handles numpy scalars, enums, dates and sets so that to_dict() output of
histograms, matrices, graphs and reports can be written as JSON.
"""

import json
from datetime import datetime, date
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np


class NumpyJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for numpy types and other non-standard types.

    Converts:
    - numpy integers, floats and bools to their Python equivalents
    - numpy NaN/inf to null
    - numpy arrays and sets to lists
    - enums to their value
    - datetime/date to ISO format strings
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, np.integer):
            return int(obj)

        if isinstance(obj, np.floating):
            if np.isnan(obj) or np.isinf(obj):
                return None
            return float(obj)

        if isinstance(obj, np.bool_):
            return bool(obj)

        if isinstance(obj, np.ndarray):
            return obj.tolist()

        if isinstance(obj, Enum):
            return obj.value

        if isinstance(obj, (datetime, date)):
            return obj.isoformat()

        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)

        return super().default(obj)


def safe_json_dumps(obj: Any, **kwargs) -> str:
    """Serialize to a JSON string with NumpyJSONEncoder and 2-space indent by default."""
    kwargs.setdefault('cls', NumpyJSONEncoder)
    kwargs.setdefault('indent', 2)
    kwargs.setdefault('ensure_ascii', False)
    return json.dumps(obj, **kwargs)


def write_json(obj: Any, output_path: str) -> str:
    """
    Write obj as JSON, creating parent directories.

    Returns:
        The path written
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(safe_json_dumps(obj))
    return str(path)
