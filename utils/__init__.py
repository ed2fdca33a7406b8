"""
Configuration, data loading, evaluation and plotting utilities for the
microarray classifier benchmark.
"""

from .config import ExperimentConfig, ModelCategory, make_k_grid
from .preprocessing import (
    DatasetSplitError,
    Fold,
    MicroarrayDataset,
    check_split_consistency,
    load_dataset,
    load_datasets,
    make_cv_folds
)
from .evaluation import (
    ModelEvaluator,
    ModelResult,
    build_accuracy_table,
    select_best_index,
    summarize_records
)

__all__ = [
    "ExperimentConfig",
    "ModelCategory",
    "make_k_grid",
    "DatasetSplitError",
    "Fold",
    "MicroarrayDataset",
    "check_split_consistency",
    "load_dataset",
    "load_datasets",
    "make_cv_folds",
    "ModelEvaluator",
    "ModelResult",
    "build_accuracy_table",
    "select_best_index",
    "summarize_records"
]
