"""
Command-line interface for the Column Binning Framework.

Provides commands for:
- Binning one column into a histogram or a transition matrix
- Connecting two adjacent columns as a bipartite graph
- Profiling every column of a file in one batch
- Running a batch job described by a YAML configuration
"""

import click
import sys
from pathlib import Path

from binning_framework import __version__
from binning_framework.core.constants import DEFAULT_BIN_COUNT, DEFAULT_MAX_WORKERS
from binning_framework.core.engine import BatchEngine
from binning_framework.core.exceptions import BinningFrameworkError, ConfigError
from binning_framework.core.logging_config import setup_logging, get_logger
from binning_framework.core.observers import CLIProgressObserver
from binning_framework.core.pretty_output import PrettyOutput as po
from binning_framework.binning.bipartite import BipartiteConnectionBuilder
from binning_framework.binning.histogram import HistogramBuilder
from binning_framework.binning.matrix import SequenceMatrixBuilder
from binning_framework.loaders.csv_loader import CSVLoader
from binning_framework.utils.json_utils import write_json

logger = get_logger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def decode_delimiter(delimiter):
    """Turn an escaped delimiter such as "\\t" into the character itself."""
    if not delimiter:
        return None
    return delimiter.encode().decode('unicode_escape')


def load_dataset(file_path, delimiter=None, columns=None):
    """Load a CSV file, honouring a delimiter given on the command line."""
    delim_char = decode_delimiter(delimiter)
    if delim_char:
        logger.info(f"Using delimiter: {repr(delim_char)}")
    return CSVLoader(file_path, delimiter=delim_char, columns=columns).load()


def fail(message, tip=None):
    """Print an error and exit with status 1."""
    po.blank_line()
    po.error(message)
    if tip:
        po.info(tip)
    sys.exit(1)


def print_histogram(histogram, stats):
    po.section(f"Histogram: {histogram.column_name}")
    po.key_value("Strategy", histogram.strategy.value, indent=2)
    po.key_value("Bins", f"{histogram.actual_bin_count} of {histogram.requested_bin_count} requested", indent=2)
    po.key_value("Records", histogram.total_records, indent=2)
    po.blank_line()

    rows = []
    for label in histogram.ordered_labels:
        frequency = histogram.frequency[label]
        share = frequency / histogram.total_records * 100 if histogram.total_records else 0.0
        rows.append((label, frequency, f"{share:.1f}%", po.bar(frequency, stats.max_frequency, width=25)))
    po.compact_table(["Bin", "Count", "Share", ""], rows)


def print_matrix(matrix, stats):
    po.section(f"Transition Matrix: {matrix.column_name}")
    po.key_value("Strategy", matrix.strategy.value if matrix.strategy else "-", indent=2)
    po.key_value("Size", f"{matrix.size}x{matrix.size}", indent=2)
    po.key_value("Transitions", matrix.total_sequences, indent=2)
    po.key_value("Self-transition rate", f"{stats.self_transition_rate:.1%}", indent=2)
    po.blank_line()

    if not matrix.size:
        po.info("Column has no rows; matrix is empty", indent=2)
        return

    headers = ["from \\ to"] + list(matrix.ordered_labels)
    rows = [
        (label,) + tuple(matrix.counts[i])
        for i, label in enumerate(matrix.ordered_labels)
    ]
    po.compact_table(headers, rows)


def print_graph(graph, stats, limit=20):
    po.section(f"Bipartite Graph: {graph.left_column_name} {po.ARROW} {graph.right_column_name}")
    po.key_value("Rows", graph.total_connections, indent=2)
    po.key_value("Connections", stats.total_unique_connections, indent=2)
    po.key_value("Strong / Medium / Weak",
                 f"{stats.strong_connections} / {stats.medium_connections} / {stats.weak_connections}", indent=2)
    po.key_value("Density", f"{stats.connection_density:.1f}%", indent=2)
    if graph.unresolved_rows:
        po.warning(f"{graph.unresolved_rows} rows did not resolve to a bin", indent=2)
    po.blank_line()

    rows = [
        (link.left_bin, link.right_bin, link.weight, f"{link.percentage:.1f}%",
         po.bar(link.visual_weight, 10, width=10))
        for link in graph.links[:limit]
    ]
    po.compact_table(["Left", "Right", "Weight", "Share", ""], rows)
    if len(graph.links) > limit:
        po.info(f"... and {len(graph.links) - limit} more connections", indent=2)


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Column Binning Framework - histograms, transition matrices and
    bipartite connections for tabular data.

    Columns are normalized, classified as numeric or categorical and
    partitioned into at most N labelled bins. Bins feed three views:
    per-column frequency, row-to-row transitions and co-occurrence
    between adjacent columns.
    """
    pass


@cli.command()
@click.argument('file_path', type=click.Path(exists=True))
@click.option('--column', '-c', required=True, help='Column to bin')
@click.option('--bins', '-b', type=int, default=DEFAULT_BIN_COUNT, show_default=True,
              help='Maximum number of bins (1-50)')
@click.option('--json-output', '-j', help='Path for JSON output')
@click.option('--delimiter', '-d', default=None, help='Column delimiter (auto-detected if omitted). Use "\\t" for tab.')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def histogram(file_path, column, bins, json_output, delimiter, log_level, log_file):
    """
    Build the histogram of one column.

    FILE_PATH: CSV file to read

    Examples:

    \b
    data-bin histogram sales.csv --column amount
    data-bin histogram sales.csv -c region --bins 5 -j region.json
    """
    setup_logging(level=log_level, log_file=log_file)
    logger.info(f"Histogram of '{column}' in {file_path} ({bins} bins)")

    try:
        dataset = load_dataset(file_path, delimiter, columns=[column])
        builder = HistogramBuilder()
        result = builder.build_from_dataset(dataset, column, bins)
        stats = builder.statistics(result)
    except BinningFrameworkError as e:
        fail(str(e))

    print_histogram(result, stats)

    if json_output:
        path = write_json({"histogram": result.to_dict(), "statistics": stats.to_dict()}, json_output)
        po.output_file("JSON", path)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True))
@click.option('--column', '-c', required=True, help='Column to bin')
@click.option('--bins', '-b', type=int, default=DEFAULT_BIN_COUNT, show_default=True,
              help='Maximum number of bins (1-50)')
@click.option('--json-output', '-j', help='Path for JSON output')
@click.option('--delimiter', '-d', default=None, help='Column delimiter (auto-detected if omitted). Use "\\t" for tab.')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def matrix(file_path, column, bins, json_output, delimiter, log_level, log_file):
    """
    Build the row-to-row transition matrix of one column.

    FILE_PATH: CSV file to read

    Example:

    \b
    data-bin matrix readings.csv --column status --bins 4
    """
    setup_logging(level=log_level, log_file=log_file)
    logger.info(f"Transition matrix of '{column}' in {file_path} ({bins} bins)")

    try:
        dataset = load_dataset(file_path, delimiter, columns=[column])
        builder = SequenceMatrixBuilder()
        values, data_points = dataset.column_values(column)
        result = builder.build(column, values, data_points, bins)
        stats = builder.statistics(result)
    except BinningFrameworkError as e:
        fail(str(e))

    print_matrix(result, stats)

    if json_output:
        path = write_json({"matrix": result.to_dict(), "statistics": stats.to_dict()}, json_output)
        po.output_file("JSON", path)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True))
@click.option('--left', '-l', required=True, help='Left column')
@click.option('--right', '-r', required=True, help='Right column (must be next to the left column)')
@click.option('--bins', '-b', type=int, default=DEFAULT_BIN_COUNT, show_default=True,
              help='Maximum number of bins per column (1-50)')
@click.option('--json-output', '-j', help='Path for JSON output')
@click.option('--delimiter', '-d', default=None, help='Column delimiter (auto-detected if omitted). Use "\\t" for tab.')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def bipartite(file_path, left, right, bins, json_output, delimiter, log_level, log_file):
    """
    Connect the bins of two adjacent columns.

    FILE_PATH: CSV file to read

    Example:

    \b
    data-bin bipartite sales.csv --left region --right amount
    """
    setup_logging(level=log_level, log_file=log_file)
    logger.info(f"Bipartite graph '{left}' -> '{right}' in {file_path} ({bins} bins)")

    try:
        # Full header is kept so adjacency is judged on the file's own column order
        dataset = load_dataset(file_path, delimiter)
        histograms = HistogramBuilder()
        left_histogram = histograms.build_from_dataset(dataset, left, bins)
        right_histogram = histograms.build_from_dataset(dataset, right, bins)
        builder = BipartiteConnectionBuilder(histograms.engine.normalizer)
        graph = builder.build(dataset, left_histogram, right_histogram)
        stats = builder.statistics(graph)
    except BinningFrameworkError as e:
        fail(str(e), tip="Columns must sit next to each other in the file header")

    print_graph(graph, stats)

    if json_output:
        path = write_json({"graph": graph.to_dict(), "statistics": stats.to_dict()}, json_output)
        po.output_file("JSON", path)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True))
@click.option('--bins', '-b', type=int, default=DEFAULT_BIN_COUNT, show_default=True,
              help='Maximum number of bins per column (1-50)')
@click.option('--workers', '-w', type=int, default=DEFAULT_MAX_WORKERS, show_default=True,
              help='Worker threads (1 processes columns one at a time)')
@click.option('--json-output', '-j', help='Path for JSON output')
@click.option('--verbose/--quiet', '-v/-q', default=True, help='Verbose output')
@click.option('--delimiter', '-d', default=None, help='Column delimiter (auto-detected if omitted). Use "\\t" for tab.')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def profile(file_path, bins, workers, json_output, verbose, delimiter, log_level, log_file):
    """
    Build histograms, matrices and bipartite graphs for every column.

    FILE_PATH: CSV file to read

    A column that cannot be binned is reported and skipped; the exit code
    is 1 when any column or column pair failed.

    Example:

    \b
    data-bin profile sales.csv --bins 8 -j profile.json
    """
    setup_logging(level=log_level, log_file=log_file)
    logger.info(f"Profiling {file_path} ({bins} bins, {workers} workers)")

    try:
        dataset = load_dataset(file_path, delimiter)
        engine = BatchEngine(
            bin_count=bins,
            max_workers=workers,
            observers=[CLIProgressObserver(verbose=verbose)],
        )
        report = engine.process_dataset(dataset, file_path)
    except BinningFrameworkError as e:
        fail(str(e))

    if verbose:
        histograms = HistogramBuilder(engine.binning_engine)
        for name in report.histograms:
            print_histogram(report.histograms[name], histograms.statistics(report.histograms[name]))

    po.summary_box("Profile", [
        ("Rows", report.row_count, po.INFO),
        ("Histograms", len(report.histograms), po.INFO),
        ("Matrices", len(report.matrices), po.INFO),
        ("Bipartite Graphs", len(report.graphs), po.INFO),
        ("Failures", len(report.failures), po.ERROR if report.failures else po.SUCCESS),
        ("Status", report.status.value, po.SUCCESS if not report.failures else po.ERROR),
    ])

    if json_output:
        po.output_file("JSON", engine.generate_json_report(report, json_output))

    if report.has_failures():
        sys.exit(1)


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--json-output', '-j', help='Path for JSON output (overrides config)')
@click.option('--workers', '-w', type=int, default=None, help='Worker threads (overrides config)')
@click.option('--verbose/--quiet', '-v/-q', default=True, help='Verbose output')
@click.option('--delimiter', '-d', default=None, help='Column delimiter for every file (overrides config). Use "\\t" for tab.')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def run(config_file, json_output, workers, verbose, delimiter, log_level, log_file):
    """
    Run a binning job from a configuration file.

    CONFIG_FILE: Path to YAML configuration file

    Examples:

    \b
    data-bin run binning_job.yaml
    data-bin run binning_job.yaml -j summary.json --workers 8
    """
    setup_logging(level=log_level, log_file=log_file)
    logger.info(f"Starting binning job: {config_file}")

    try:
        engine = BatchEngine.from_config(config_file, observers=[CLIProgressObserver(verbose=verbose)])
    except ConfigError as e:
        fail(f"Configuration error: {e}")

    delim_char = decode_delimiter(delimiter)
    if delim_char:
        for file_config in engine.config.files:
            file_config['delimiter'] = delim_char
        logger.info(f"Using delimiter: {repr(delim_char)}")
    if workers is not None:
        engine.max_workers = max(1, workers)
    if json_output:
        engine.config.json_summary_path = json_output

    try:
        report = engine.run()
    except BinningFrameworkError as e:
        fail(str(e))

    if engine.config.json_summary_path:
        po.output_file("JSON", engine.config.json_summary_path)

    if report.has_failures() and engine.config.fail_on_error:
        po.blank_line()
        po.error(f"BINNING JOB COMPLETED WITH {report.total_failures} FAILURE(S)")
        sys.exit(1)

    po.blank_line()
    if report.has_failures():
        po.warning("Binning job completed with failures (fail_on_error disabled)")
    else:
        po.success("BINNING JOB COMPLETED")


@cli.command()
@click.argument('output_path', type=click.Path())
def init_config(output_path):
    """
    Generate a sample configuration file.

    OUTPUT_PATH: Path where sample config should be written

    Example:

    \b
    data-bin init-config binning_job.yaml
    """
    sample_config = '''# Binning Job Configuration
# Generated by Column Binning Framework

binning_job:
  name: "Sample Binning Job"
  description: "Histograms, transitions and column connections"

  files:
    - name: "sales"
      path: "data/sales.csv"
      delimiter: ","
      encoding: "utf-8"
      # columns: [region, amount, channel]   # optional subset, header order kept

  binning:
    bin_count: 10                 # 1-50
    # interval_style: RIGHT_OPEN  # CLOSED, OPEN, LEFT_OPEN, RIGHT_OPEN
    frequency_threshold: 0.01

  outputs: [histogram, matrix, bipartite]

  processing:
    max_workers: 4

  output:
    json_summary: "binning_summary.json"
    fail_on_error: true
'''

    output_file = Path(output_path)
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(sample_config)
    except OSError as e:
        click.echo(f"❌ Error creating config file: {str(e)}", err=True)
        sys.exit(1)

    click.echo(f"✓ Sample configuration written to: {output_path}")
    click.echo("\nEdit the file to describe your data, then run:")
    click.echo(f"  data-bin run {output_path}")


@cli.command()
def version():
    """Display version information."""
    click.echo(f"Column Binning Framework v{__version__}")
    click.echo("Histograms, transition matrices and bipartite connections for tabular data")


if __name__ == '__main__':
    cli()
