#!/usr/bin/env python
"""
Run the full benchmark and generate the experiment report.

Loads the configured datasets, evaluates all models, prints the accuracy
table and writes the boxplot, the table and a snapshot of the run.
"""

import argparse
import logging
from pathlib import Path

import joblib
import pandas as pd
import matplotlib.pyplot as plt

from utils.config import ALL_MODELS, ExperimentConfig
from utils.evaluation import build_accuracy_table, save_results
from utils.preprocessing import generate_synthetic_datasets, load_datasets
from utils.visualization import MicroarrayVisualizer, accuracy_ranks, print_accuracy_table
from experiments.driver import run_experiments, summarize_runs

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class ExperimentReporter:
    """Writes the table, figures and snapshot of a finished run."""

    def __init__(self, config: ExperimentConfig):
        self.config = config
        self.output_dir = Path(config.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.visualizer = MicroarrayVisualizer()

    def build_table(self, runs) -> pd.DataFrame:
        summaries = summarize_runs(runs, self.config)
        save_results(summaries, str(self.output_dir / 'summaries.json'))
        return build_accuracy_table(summaries, self.config.aliases)

    def generate_report(self, table: pd.DataFrame) -> None:
        """Print the transposed table and save table and boxplots."""
        print_accuracy_table(table)

        ranks = accuracy_ranks(table)
        logger.info("Mean rank across datasets: " +
                    ", ".join(f"{model}={rank:.2f}" for model, rank in ranks.items()))

        table.to_csv(self.output_dir / 'accuracy_table.csv')
        fig = self.visualizer.plot_accuracy_boxplot(
            table, save_path=str(self.output_dir / 'accuracy_boxplot.png'))
        plt.close(fig)
        self.visualizer.create_interactive_boxplot(
            table, save_path=str(self.output_dir / 'accuracy_boxplot.html'))

    def save_snapshot(self, datasets, runs, table) -> Path:
        """Dump configuration, data, per-fold records and the final table in one file."""
        path = self.output_dir / 'snapshot.joblib'
        joblib.dump({
            'config': self.config,
            'datasets': datasets,
            'runs': runs,
            'table': table
        }, path)
        logger.info(f"Snapshot saved to {path}")
        return path


def run(config: ExperimentConfig) -> pd.DataFrame:
    """Complete pipeline: load, evaluate, aggregate, report, snapshot."""
    datasets = load_datasets(config)
    runs = run_experiments(datasets, config)

    reporter = ExperimentReporter(config)
    table = reporter.build_table(runs)
    reporter.generate_report(table)
    reporter.save_snapshot(datasets, runs, table)

    return table


def parse_args(argv=None):
    defaults = ExperimentConfig()
    parser = argparse.ArgumentParser(description='Benchmark rank-based and kernel classifiers on microarray data')
    parser.add_argument('--data_dir', default=defaults.data_dir,
                        help='Directory with one <dataset>.npz file per dataset')
    parser.add_argument('--output_dir', default=defaults.output_dir,
                        help='Directory for the table, figures and snapshot')
    parser.add_argument('--n_jobs', type=int, default=defaults.n_jobs,
                        help='Number of worker processes')
    parser.add_argument('--models', nargs='+', default=list(defaults.models), choices=ALL_MODELS,
                        help='Models to evaluate')
    parser.add_argument('--generate_synthetic', action='store_true',
                        help='Write synthetic datasets into data_dir before running')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = ExperimentConfig(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        n_jobs=args.n_jobs,
        models=tuple(args.models)
    )

    try:
        if args.generate_synthetic:
            generate_synthetic_datasets(config)
        return run(config)
    except Exception:
        logger.exception("Benchmark run failed")
        raise


if __name__ == "__main__":
    main()
