"""
Shared fixtures for the benchmark tests.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from utils.config import ExperimentConfig
from utils.preprocessing import generate_synthetic_dataset, write_dataset


@pytest.fixture
def small_config(tmp_path):
    """Two datasets, fast models and short grids."""
    return ExperimentConfig(
        independent_validation_datasets=('bc',),
        cross_validation_datasets=('Wang_Breastcancer',),
        c_grid=(0.1, 1, 10),
        k_grid=(1, 3, 5),
        models=('APMV', 'TSP', 'kTSP', 'SVMlinear', 'SVMrbf', 'SVMlinearTOP'),
        inner_folds=3,
        n_jobs=1,
        pair_genes=20,
        data_dir=str(tmp_path / 'data'),
        output_dir=str(tmp_path / 'results'),
        verbose=0
    )


@pytest.fixture
def written_datasets(small_config):
    """Synthetic files for the datasets of small_config."""
    independent = generate_synthetic_dataset('bc', n_samples=40, n_genes=30,
                                             test_fraction=0.3, random_state=0)
    cross_validated = generate_synthetic_dataset('Wang_Breastcancer', n_samples=40,
                                                 n_genes=30, random_state=1)
    write_dataset(independent, small_config.data_dir)
    write_dataset(cross_validated, small_config.data_dir)
    return {'bc': independent, 'Wang_Breastcancer': cross_validated}


@pytest.fixture
def planted_pair_data():
    """
    Binary data where gene 0 is below gene 1 in every class-0 sample and
    above it in every class-1 sample; the other genes are noise.
    """
    np.random.seed(42)
    n_samples, n_genes = 40, 12
    y = np.repeat([0, 1], n_samples // 2)
    X = np.random.normal(10, 1, (n_samples, n_genes))
    X[y == 0, 0] = X[y == 0, 1] - 0.5
    X[y == 1, 0] = X[y == 1, 1] + 0.5
    return X, y
