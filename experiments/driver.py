"""
Experiment driver: per-dataset evaluation loops and the parallel map over datasets.

Datasets with an independent validation set are evaluated once on their
fixed train/test split. The other datasets are evaluated on 10 repeats of
stratified 5-fold cross-validation (50 folds), run sequentially inside one
worker. Both groups of datasets are spread over a joblib process pool.
"""

from dataclasses import dataclass
import logging
from typing import Dict, List, Optional

import numpy as np
from joblib import Parallel, delayed
from tqdm import tqdm

from classifiers import estimate_rbf_gamma
from utils.config import ExperimentConfig
from utils.evaluation import ModelEvaluator, ModelResult, summarize_records
from utils.preprocessing import MicroarrayDataset, make_cv_folds

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@dataclass
class DatasetRun:
    """All per-fold model records of one dataset."""

    dataset: str
    independent_validation: bool
    records: List[Dict[str, ModelResult]]
    rbf_gamma: Optional[float] = None

    @property
    def n_folds(self) -> int:
        return len(self.records)


def dataset_rbf_gamma(dataset: MicroarrayDataset, config: ExperimentConfig) -> Optional[float]:
    """
    Gaussian kernel width for a whole dataset.

    Estimated once on the full training data and shared by every fold, so the
    width does not change between cross-validation folds.
    """
    if not any(model.startswith('SVMrbf') for model in config.models):
        return None
    return estimate_rbf_gamma(dataset.xtrain, random_state=config.random_state)


def evaluate_independent_dataset(dataset: MicroarrayDataset, config: ExperimentConfig) -> DatasetRun:
    """Evaluate all models once on the dataset's fixed train/test split."""
    logger.info(f"[{dataset.name}] independent validation: "
                f"{dataset.xtrain.shape[0]} train / {dataset.xtest.shape[0]} test samples")

    gamma = dataset_rbf_gamma(dataset, config)
    evaluator = ModelEvaluator(config)
    record = evaluator.perf_classification(dataset.xtrain, dataset.ytrain,
                                           dataset.xtest, dataset.ytest, rbf_gamma=gamma)

    return DatasetRun(dataset.name, True, [record], gamma)


def evaluate_cv_dataset(dataset: MicroarrayDataset, config: ExperimentConfig) -> DatasetRun:
    """Evaluate all models on every fold of repeated stratified cross-validation."""
    X, y = dataset.xtrain, np.asarray(dataset.ytrain)
    folds = make_cv_folds(y, n_splits=config.cv_folds, n_repeats=config.cv_repeats,
                          random_state=config.random_state)
    logger.info(f"[{dataset.name}] cross-validation: {len(folds)} folds over {X.shape[0]} samples")

    gamma = dataset_rbf_gamma(dataset, config)
    evaluator = ModelEvaluator(config)

    records = []
    for fold in tqdm(folds, desc=dataset.name, disable=config.verbose < 1):
        records.append(evaluator.perf_classification(
            X[fold.train_index], y[fold.train_index],
            X[fold.test_index], y[fold.test_index],
            rbf_gamma=gamma
        ))

    return DatasetRun(dataset.name, False, records, gamma)


def run_experiments(datasets: Dict[str, MicroarrayDataset],
                    config: ExperimentConfig) -> Dict[str, DatasetRun]:
    """
    Evaluate every configured dataset.

    Two process-pool maps with config.n_jobs workers: one over the
    independent validation datasets, one over the cross-validation datasets.
    Results are collected after all workers finish.
    """
    independent = [datasets[name] for name in config.independent_validation_datasets]
    cross_validated = [datasets[name] for name in config.cross_validation_datasets]

    independent_runs = Parallel(n_jobs=config.n_jobs)(
        delayed(evaluate_independent_dataset)(dataset, config) for dataset in independent
    )
    cv_runs = Parallel(n_jobs=config.n_jobs)(
        delayed(evaluate_cv_dataset)(dataset, config) for dataset in cross_validated
    )

    runs = {run.dataset: run for run in list(independent_runs) + list(cv_runs)}
    logger.info(f"Finished {len(runs)} datasets")
    return runs


def summarize_runs(runs: Dict[str, DatasetRun],
                   config: ExperimentConfig) -> Dict[str, Dict[str, float]]:
    """Per-dataset mean best-grid-point accuracy of every model, in configuration order."""
    return {name: summarize_records(runs[name].records)
            for name in config.dataset_names if name in runs}
