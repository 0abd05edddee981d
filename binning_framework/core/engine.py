"""
Batch engine - fans column and column-pair builds out over a worker pool.

The engine:
1. Loads each configured dataset
2. Builds histograms and matrices, one task per column
3. Builds bipartite graphs, one task per adjacent column pair whose
   histograms both succeeded
4. Records failures per item and carries on with the rest
5. Collects results in header order and writes an optional JSON summary
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from binning_framework.core.config import BinningConfig
from binning_framework.core.constants import DEFAULT_BIN_COUNT, DEFAULT_MAX_WORKERS, SUPPORTED_OUTPUTS
from binning_framework.core.exceptions import DataLoadError
from binning_framework.core.logging_config import get_logger
from binning_framework.core.results import DatasetReport, ItemFailure, JobReport
from binning_framework.binning.bipartite import BipartiteConnectionBuilder
from binning_framework.binning.engine import BinningEngine, validate_bin_count
from binning_framework.binning.histogram import HistogramBuilder
from binning_framework.binning.matrix import SequenceMatrixBuilder
from binning_framework.binning.models import Dataset
from binning_framework.loaders.csv_loader import CSVLoader
from binning_framework.utils.json_utils import write_json

logger = get_logger(__name__)


def pair_label(pair: Tuple[str, str]) -> str:
    """Display name of an adjacent column pair."""
    return f"{pair[0]} -> {pair[1]}"


class BatchEngine:
    """
    Builds every requested structure for every column of one or more datasets.

    Builders are pure, so tasks share nothing and need no locking. Results
    are gathered on the calling thread in header order, whatever order the
    workers finish in.

    Example usage:
        # From config file
        engine = BatchEngine.from_config('binning_job.yaml')
        report = engine.run()

        # On an in-memory dataset
        engine = BatchEngine(bin_count=5, max_workers=1)
        dataset_report = engine.process_dataset(dataset)
    """

    def __init__(
        self,
        bin_count: int = DEFAULT_BIN_COUNT,
        outputs: Sequence[str] = SUPPORTED_OUTPUTS,
        max_workers: int = DEFAULT_MAX_WORKERS,
        engine: Optional[BinningEngine] = None,
        observers: Optional[List['EngineObserver']] = None,
        config: Optional[BinningConfig] = None
    ) -> None:
        """
        Initialize the batch engine.

        Args:
            bin_count: Bin count requested for every column (1-50)
            outputs: Structures to build ("histogram", "matrix", "bipartite")
            max_workers: Worker threads; 1 runs every task inline
            engine: Binning engine shared by all builders
            observers: Observers notified of progress and failures
            config: Job configuration used by run()
        """
        validate_bin_count(bin_count)
        self.bin_count = bin_count
        self.outputs = [o for o in SUPPORTED_OUTPUTS if o in outputs]
        self.max_workers = max(1, max_workers)
        self.binning_engine = engine or BinningEngine()
        self.histogram_builder = HistogramBuilder(self.binning_engine)
        self.matrix_builder = SequenceMatrixBuilder(self.binning_engine)
        self.bipartite_builder = BipartiteConnectionBuilder(self.binning_engine.normalizer)
        self.observers: List['EngineObserver'] = observers if observers is not None else []
        self.config = config

    @classmethod
    def from_config(
        cls,
        config_path: str,
        observers: Optional[List['EngineObserver']] = None
    ) -> "BatchEngine":
        """
        Create engine from YAML configuration file.

        Raises:
            ConfigError: If configuration is invalid
        """
        config = BinningConfig.from_yaml(config_path)
        return cls.from_config_object(config, observers)

    @classmethod
    def from_config_object(
        cls,
        config: BinningConfig,
        observers: Optional[List['EngineObserver']] = None
    ) -> "BatchEngine":
        engine = BinningEngine(
            interval_type=config.interval_type,
            frequency_threshold=config.frequency_threshold,
        )
        return cls(
            bin_count=config.bin_count,
            outputs=config.outputs,
            max_workers=config.max_workers,
            engine=engine,
            observers=observers,
            config=config,
        )

    # Observer notification methods
    def _notify(self, event: str, *args: Any) -> None:
        for observer in self.observers:
            try:
                getattr(observer, event)(*args)
            except Exception as e:
                logger.warning(f"Observer {observer.__class__.__name__} failed {event}: {e}")

    def run(self) -> JobReport:
        """
        Process every dataset in the configuration.

        A dataset that cannot be loaded is reported as failed; the remaining
        datasets are still processed.
        """
        if self.config is None:
            raise ValueError("BatchEngine.run() requires a configuration; use process_dataset() instead")

        config = self.config
        logger.info(f"Starting binning job: {config.job_name}")
        self._notify("on_job_start", config.job_name, len(config.files))

        start_time = time.time()
        report = JobReport(
            job_name=config.job_name,
            execution_time=datetime.now(),
            description=config.description,
        )

        for file_idx, file_config in enumerate(config.files, 1):
            logger.info(f"Processing file {file_idx}/{len(config.files)}: {file_config['name']}")
            try:
                dataset = CSVLoader(
                    file_config["path"],
                    delimiter=file_config.get("delimiter"),
                    encoding=file_config.get("encoding"),
                    columns=file_config.get("columns"),
                    name=file_config["name"],
                ).load()
            except DataLoadError as e:
                logger.error(f"Could not load {file_config['path']}: {e}")
                failed = DatasetReport(
                    dataset_name=file_config["name"],
                    file_path=file_config["path"],
                    bin_count=self.bin_count,
                )
                failure = ItemFailure.from_exception("dataset", file_config["path"], e)
                failed.failures.append(failure)
                self._notify("on_item_failed", failure)
                self._notify("on_dataset_complete", failed)
                report.add_dataset_report(failed)
                continue

            report.add_dataset_report(self.process_dataset(dataset, file_config["path"]))

        report.duration_seconds = time.time() - start_time
        logger.info(
            f"Binning job completed in {report.duration_seconds:.2f}s - "
            f"{report.overall_status.value} ({report.total_failures} failures)"
        )

        if config.json_summary_path:
            self.generate_json_report(report, config.json_summary_path)

        self._notify("on_job_complete", report)
        return report

    def process_dataset(self, dataset: Dataset, file_path: str = "") -> DatasetReport:
        """
        Build the configured structures for one dataset.

        Returns:
            DatasetReport with results keyed in header order and any failures
        """
        start_time = time.time()
        self._notify("on_dataset_start", dataset.name, file_path, len(dataset.headers))

        report = DatasetReport(
            dataset_name=dataset.name,
            file_path=file_path,
            bin_count=self.bin_count,
            row_count=dataset.row_count,
        )
        columns = list(dataset.headers)

        histograms = {}
        if "histogram" in self.outputs or "bipartite" in self.outputs:
            histograms = self._fan_out(
                "histogram",
                [(column, column) for column in columns],
                lambda column: self.histogram_builder.build_from_dataset(dataset, column, self.bin_count),
                report,
            )
            if "histogram" in self.outputs:
                report.histograms = histograms

        if "matrix" in self.outputs:
            report.matrices = self._fan_out(
                "matrix",
                [(column, column) for column in columns],
                lambda column: self.matrix_builder.build_from_dataset(dataset, column, self.bin_count),
                report,
            )

        if "bipartite" in self.outputs:
            pairs = []
            for left, right in dataset.adjacent_pairs():
                if left in histograms and right in histograms:
                    pairs.append(((left, right), (left, right)))
                else:
                    logger.warning(f"Skipping bipartite graph {pair_label((left, right))}: histogram missing")
            report.graphs = self._fan_out(
                "bipartite",
                pairs,
                lambda pair: self.bipartite_builder.build(dataset, histograms[pair[0]], histograms[pair[1]]),
                report,
                describe=pair_label,
            )

        report.duration_seconds = time.time() - start_time
        logger.info(
            f"Dataset '{dataset.name}' completed: {report.item_count} items, "
            f"{len(report.failures)} failures in {report.duration_seconds:.2f}s"
        )
        self._notify("on_dataset_complete", report)
        return report

    def _fan_out(
        self,
        kind: str,
        items: List[Tuple[Any, Any]],
        task: Callable[[Any], Any],
        report: DatasetReport,
        describe: Callable[[Any], str] = str
    ) -> Dict[Any, Any]:
        """
        Run task for every (key, argument) item and collect results by key.

        describe turns a key into the name used in failures and observer events.

        Failures are logged, recorded in the report and passed to observers;
        they never stop the remaining items.
        """
        outcomes: List[Tuple[Any, Any, Optional[Exception]]] = []

        if self.max_workers == 1 or len(items) <= 1:
            for key, argument in items:
                try:
                    outcomes.append((key, task(argument), None))
                except Exception as e:
                    outcomes.append((key, None, e))
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as executor:
                futures = [(key, executor.submit(task, argument)) for key, argument in items]
                for key, future in futures:
                    try:
                        outcomes.append((key, future.result(), None))
                    except Exception as e:
                        outcomes.append((key, None, e))

        results: Dict[Any, Any] = {}
        for key, value, error in outcomes:
            name = describe(key)
            if error is not None:
                logger.error(f"{kind} failed for '{name}': {error}")
                failure = ItemFailure.from_exception(kind, name, error)
                report.failures.append(failure)
                self._notify("on_item_failed", failure)
                continue
            results[key] = value
            self._notify("on_item_complete", kind, name)
        return results

    def generate_json_report(self, report: Any, output_path: str) -> str:
        """
        Write a report's to_dict() as JSON.

        Args:
            report: JobReport or DatasetReport
            output_path: Path for output JSON file
        """
        path = write_json(report.to_dict(), output_path)
        logger.info(f"JSON summary written to {path}")
        return path
