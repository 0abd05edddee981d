"""CSV loader producing row-referenced datasets of raw string values."""

import csv
import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from binning_framework.core.exceptions import DataLoadError
from binning_framework.binning.models import Dataset

logger = logging.getLogger(__name__)


def detect_delimiter(file_path: str, sample_size: int = 8192) -> str:
    """
    Auto-detect the delimiter used in a CSV file.

    Args:
        file_path: Path to the CSV file
        sample_size: Number of characters to sample for detection

    Returns:
        Detected delimiter character, defaults to ',' if detection fails
    """
    encodings = ['utf-8', 'utf-8-sig', 'cp1252', 'latin-1']

    for encoding in encodings:
        try:
            with open(file_path, 'r', newline='', encoding=encoding) as f:
                sample = f.read(sample_size)

            sniffer = csv.Sniffer()
            dialect = sniffer.sniff(sample, delimiters=',\t|;:')
            return dialect.delimiter
        except (UnicodeDecodeError, csv.Error):
            continue
        except OSError:
            break

    return ','


def detect_encoding(file_path: str) -> str:
    """
    Detect the encoding of a file by trying common encodings.

    Returns:
        Detected encoding name, defaults to 'utf-8'
    """
    encodings = ['utf-8', 'utf-8-sig', 'cp1252', 'latin-1']

    for encoding in encodings:
        try:
            with open(file_path, 'r', encoding=encoding) as f:
                f.read(8192)
            return encoding
        except UnicodeDecodeError:
            continue

    return 'utf-8'


class CSVLoader:
    """
    Load a delimited text file as a Dataset.

    Every cell is read as its raw string. pandas' own missing-value handling
    is disabled so that tokens such as "NA" or "-" reach the normalizer
    unchanged; the header row supplies the column order.

    Example:
        >>> dataset = CSVLoader("sales.csv").load()
        >>> dataset.headers
        ('region', 'amount', 'channel')
    """

    def __init__(
        self,
        file_path: str,
        delimiter: Optional[str] = None,
        encoding: Optional[str] = None,
        columns: Optional[Sequence[str]] = None,
        name: Optional[str] = None
    ):
        """
        Args:
            file_path: Path to CSV file
            delimiter: Column delimiter (auto-detected when None)
            encoding: File encoding (auto-detected when None)
            columns: Optional subset of columns to keep, in header order
            name: Dataset name (defaults to the file stem)
        """
        self.file_path = Path(file_path)
        self.columns = list(columns) if columns else None
        self.name = name or self.file_path.stem

        if not self.file_path.exists():
            raise DataLoadError(f"File not found: {self.file_path}", file_path=str(self.file_path))

        self.delimiter = delimiter or detect_delimiter(str(self.file_path))
        if delimiter is None and self.delimiter != ',':
            logger.info(f"Auto-detected delimiter: {repr(self.delimiter)}")

        self.encoding = encoding or detect_encoding(str(self.file_path))
        if encoding is None and self.encoding != 'utf-8':
            logger.info(f"Auto-detected encoding: {self.encoding}")

    def load(self) -> Dataset:
        """
        Read the whole file.

        Raises:
            DataLoadError: If the file cannot be parsed or decoded
        """
        try:
            frame = pd.read_csv(
                self.file_path,
                sep=self.delimiter,
                encoding=self.encoding,
                dtype=str,
                keep_default_na=False,
                na_filter=False,
            )
        except pd.errors.EmptyDataError:
            logger.warning(f"Empty CSV file: {self.file_path}")
            return Dataset(headers=(), rows=(), name=self.name)
        except pd.errors.ParserError as e:
            raise DataLoadError(
                f"CSV parsing error in {self.file_path}: rows have an inconsistent number of columns. "
                f"Check the delimiter (current: {repr(self.delimiter)}).",
                file_path=str(self.file_path),
                original_exception=e,
            )
        except UnicodeDecodeError as e:
            raise DataLoadError(
                f"Encoding error in {self.file_path}: cannot decode file with {self.encoding} encoding",
                file_path=str(self.file_path),
                original_exception=e,
            )

        headers = [str(column) for column in frame.columns]
        source_headers = list(headers)
        if self.columns:
            missing = [c for c in self.columns if c not in headers]
            if missing:
                raise DataLoadError(
                    f"Columns not found in {self.file_path}: {', '.join(missing)}",
                    file_path=str(self.file_path),
                )
            headers = [h for h in headers if h in self.columns]
            frame = frame[headers]

        rows = frame.itertuples(index=False, name=None)
        dataset = Dataset.from_rows(headers, list(rows), name=self.name, source_headers=source_headers)
        logger.debug(f"Loaded {dataset.row_count} rows x {len(headers)} columns from {self.file_path}")
        return dataset


def load_csv(
    file_path: str,
    delimiter: Optional[str] = None,
    encoding: Optional[str] = None,
    columns: Optional[Sequence[str]] = None
) -> Dataset:
    """Convenience wrapper around CSVLoader(...).load()."""
    return CSVLoader(file_path, delimiter=delimiter, encoding=encoding, columns=columns).load()
