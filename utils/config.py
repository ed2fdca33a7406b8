"""
Experiment configuration for the microarray classifier benchmark.

All settings of a run (dataset lists, display aliases, hyperparameter grids,
model lists, fold counts, seeds) live in a single immutable object that is
passed explicitly to the driver.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from itertools import product
from typing import Dict, List, Optional, Tuple

import numpy as np


INDEPENDENT_VALIDATION_DATASETS = ('bc', 'leukemia', 'lung', 'prostate')

CROSS_VALIDATION_DATASETS = ('bc2', 'Wang_Breastcancer', 'colon', 'ovarian',
                             'prostate2', 'cns')

DATASET_ALIASES = {
    'bc': 'BC1',
    'bc2': 'BC2',
    'Wang_Breastcancer': 'BC3',
    'leukemia': 'LEU',
    'lung': 'LC1',
    'prostate': 'PC1',
    'prostate2': 'PC2',
    'colon': 'CT',
    'ovarian': 'OC',
    'cns': 'CNS',
}

C_GRID = (0.01, 0.1, 1, 10, 100, 1000)

SVM_KERNELS = ('linear', 'kdt', 'rbf', 'poly')

ALL_MODELS = (
    ('APMV', 'TSP', 'kTSP')
    + tuple(f'SVM{kernel}' for kernel in SVM_KERNELS)
    + tuple(f'SVM{kernel}TOP' for kernel in SVM_KERNELS)
)

PARAMETER_FREE_MODELS = ('APMV', 'TSP')

# C-only SVMs and the TSP family: both are tuned over a single grid
SINGLE_GRID_MODELS = ('SVMlinear', 'SVMkdt', 'SVMrbf', 'SVMpoly', 'kTSP')

TSP_FAMILY = ('TSP', 'kTSP')


class ModelCategory(Enum):
    PARAMETER_FREE = 'parameter_free'
    SINGLE_GRID = 'single_grid'
    C_AND_K = 'c_and_k'


def make_k_grid(k_max: int = 5000, n_points: int = 30) -> Tuple[int, ...]:
    """
    Odd integers log-spaced between 1 and k_max.

    Each log-spaced value is rounded down to the nearest odd integer, then
    the sequence is deduplicated and sorted.
    """
    if k_max < 1:
        raise ValueError(f"k_max must be >= 1, got {k_max}")

    values = np.logspace(0, np.log10(k_max), num=n_points)
    odd = 2 * np.floor((values - 1) / 2) + 1
    return tuple(int(v) for v in np.unique(odd.astype(int)))


def is_svm_model(name: str) -> bool:
    return name.startswith('SVM')


def kfd_name(name: str) -> str:
    """Name of the kernel Fisher discriminant sharing the kernel of an SVM model."""
    if not is_svm_model(name):
        raise ValueError(f"{name} is not an SVM model")
    return 'KFD' + name[len('SVM'):]


@dataclass(frozen=True)
class ExperimentConfig:
    independent_validation_datasets: Tuple[str, ...] = INDEPENDENT_VALIDATION_DATASETS
    cross_validation_datasets: Tuple[str, ...] = CROSS_VALIDATION_DATASETS
    aliases: Dict[str, str] = field(default_factory=lambda: dict(DATASET_ALIASES))

    c_grid: Tuple[float, ...] = C_GRID
    k_grid: Tuple[int, ...] = field(default_factory=make_k_grid)

    models: Tuple[str, ...] = ALL_MODELS
    parameter_free_models: Tuple[str, ...] = PARAMETER_FREE_MODELS
    single_grid_models: Tuple[str, ...] = SINGLE_GRID_MODELS

    # Outer resampling for datasets without a held-out test set
    cv_folds: int = 5
    cv_repeats: int = 10
    # Hyperparameter selection inside each training split
    inner_folds: int = 5
    random_state: int = 42
    n_jobs: int = 8

    pair_genes: int = 500
    kfd_regularization: float = 1e-3
    poly_degree: int = 2
    rank_backend: str = 'scipy'

    data_dir: str = 'data/processed'
    output_dir: str = 'results'
    verbose: int = 1

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ValueError on an inconsistent configuration."""
        if not self.c_grid:
            raise ValueError("c_grid must not be empty")
        if not self.k_grid:
            raise ValueError("k_grid must not be empty")
        if any(c <= 0 for c in self.c_grid):
            raise ValueError(f"c_grid values must be positive: {self.c_grid}")
        if any(k < 1 for k in self.k_grid):
            raise ValueError(f"k_grid values must be >= 1: {self.k_grid}")

        unknown = [m for m in self.models if m not in ALL_MODELS]
        if unknown:
            raise ValueError(f"Unknown model(s): {unknown}. Available: {list(ALL_MODELS)}")

        overlap = set(self.parameter_free_models) & set(self.single_grid_models)
        if overlap:
            raise ValueError(f"Models listed in more than one category: {sorted(overlap)}")
        for name in self.parameter_free_models + self.single_grid_models:
            if name not in ALL_MODELS:
                raise ValueError(f"Unknown model in category list: {name}")
        for name in self.models:
            if name in TSP_FAMILY and self.category_of(name) is ModelCategory.C_AND_K:
                raise ValueError(f"{name} cannot be tuned over C")

        shared = set(self.independent_validation_datasets) & set(self.cross_validation_datasets)
        if shared:
            raise ValueError(f"Datasets declared in both lists: {sorted(shared)}")
        missing = [d for d in self.dataset_names if d not in self.aliases]
        if missing:
            raise ValueError(f"No display alias for dataset(s): {missing}")

        if self.cv_folds < 2 or self.inner_folds < 2:
            raise ValueError("cv_folds and inner_folds must be >= 2")
        if self.cv_repeats < 1:
            raise ValueError("cv_repeats must be >= 1")
        if self.pair_genes < 2:
            raise ValueError("pair_genes must be >= 2")

    @property
    def dataset_names(self) -> List[str]:
        return list(self.independent_validation_datasets) + list(self.cross_validation_datasets)

    @property
    def n_outer_folds(self) -> int:
        return self.cv_folds * self.cv_repeats

    def alias_for(self, dataset_name: str) -> str:
        return self.aliases[dataset_name]

    def category_of(self, model: str) -> ModelCategory:
        if model in self.parameter_free_models:
            return ModelCategory.PARAMETER_FREE
        if model in self.single_grid_models:
            return ModelCategory.SINGLE_GRID
        return ModelCategory.C_AND_K

    def grid_for(self, model: str) -> List[Dict[str, Optional[float]]]:
        """
        Ordered hyperparameter grid of a model.

        Parameter-free models have a single empty grid point. Single-grid
        models are tuned over C (SVMs) or over k (TSP family). C-and-k models
        use the product with k as the outer loop and C varying fastest.
        """
        category = self.category_of(model)

        if category is ModelCategory.PARAMETER_FREE:
            return [{}]
        if category is ModelCategory.SINGLE_GRID:
            if model in TSP_FAMILY:
                return [{'k': k} for k in self.k_grid]
            return [{'C': c} for c in self.c_grid]
        return [{'k': k, 'C': c} for k, c in product(self.k_grid, self.c_grid)]

    def with_overrides(self, **changes) -> 'ExperimentConfig':
        """Copy of the configuration with some fields replaced (re-validated)."""
        return replace(self, **changes)
