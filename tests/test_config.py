"""
Tests for the experiment configuration and hyperparameter grids.
"""

import dataclasses

import pytest

from classifiers import KERNELS
from utils.config import (
    ALL_MODELS,
    C_GRID,
    SVM_KERNELS,
    ExperimentConfig,
    ModelCategory,
    kfd_name,
    make_k_grid
)


def test_k_grid_is_odd_sorted_and_bounded():
    """The gene-count grid holds unique odd values between 1 and 5000."""
    k_grid = make_k_grid()

    assert k_grid[0] == 1
    assert all(k % 2 == 1 for k in k_grid)
    assert list(k_grid) == sorted(set(k_grid))
    assert max(k_grid) <= 5000
    assert 20 <= len(k_grid) <= 30


def test_c_grid_values():
    config = ExperimentConfig()
    assert config.c_grid == (0.01, 0.1, 1, 10, 100, 1000)
    assert len(C_GRID) == 6


def test_default_datasets_and_aliases():
    """Ten datasets, split 4 / 6, each with a display alias."""
    config = ExperimentConfig()

    assert len(config.dataset_names) == 10
    assert len(config.independent_validation_datasets) == 4
    assert len(config.cross_validation_datasets) == 6
    assert config.alias_for('Wang_Breastcancer') == 'BC3'
    assert config.alias_for('bc') == 'BC1'
    assert config.n_outer_folds == 50


def test_model_categories():
    config = ExperimentConfig()

    assert config.category_of('APMV') is ModelCategory.PARAMETER_FREE
    assert config.category_of('TSP') is ModelCategory.PARAMETER_FREE
    assert config.category_of('kTSP') is ModelCategory.SINGLE_GRID
    assert config.category_of('SVMkdt') is ModelCategory.SINGLE_GRID
    assert config.category_of('SVMrbfTOP') is ModelCategory.C_AND_K


def test_grid_for_each_category():
    config = ExperimentConfig(k_grid=(1, 3, 5))

    assert config.grid_for('APMV') == [{}]
    assert config.grid_for('kTSP') == [{'k': 1}, {'k': 3}, {'k': 5}]
    assert config.grid_for('SVMlinear') == [{'C': c} for c in C_GRID]

    grid = config.grid_for('SVMpolyTOP')
    assert len(grid) == 3 * len(C_GRID)


def test_c_and_k_grid_order():
    """k is the outer loop, C varies fastest."""
    config = ExperimentConfig(k_grid=(1, 3, 5))
    grid = config.grid_for('SVMkdtTOP')
    n_c = len(config.c_grid)

    for i_k, k in enumerate(config.k_grid):
        for i_c, c in enumerate(config.c_grid):
            assert grid[i_k * n_c + i_c] == {'k': k, 'C': c}


def test_invalid_configurations_raise():
    with pytest.raises(ValueError):
        ExperimentConfig(models=('APMV', 'NotAModel'))

    with pytest.raises(ValueError):
        ExperimentConfig(parameter_free_models=('APMV',), single_grid_models=('APMV',))

    with pytest.raises(ValueError):
        ExperimentConfig(independent_validation_datasets=('bc',),
                         cross_validation_datasets=('bc',))

    with pytest.raises(ValueError):
        ExperimentConfig(c_grid=())

    with pytest.raises(ValueError):
        ExperimentConfig(independent_validation_datasets=('unknown',))


def test_config_is_immutable():
    config = ExperimentConfig()

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.n_jobs = 1

    changed = config.with_overrides(n_jobs=1)
    assert changed.n_jobs == 1
    assert config.n_jobs == 8


def test_kfd_names():
    assert kfd_name('SVMrbf') == 'KFDrbf'
    assert kfd_name('SVMkdtTOP') == 'KFDkdtTOP'

    with pytest.raises(ValueError):
        kfd_name('TSP')


def test_all_models_listed_once():
    assert len(ALL_MODELS) == len(set(ALL_MODELS)) == 11


def test_svm_models_match_available_kernels():
    """Every kernel has an all-genes and a top-k SVM, and nothing else."""
    assert SVM_KERNELS == KERNELS

    svm_models = [m for m in ALL_MODELS if m.startswith('SVM')]
    expected = [f'SVM{k}' for k in KERNELS] + [f'SVM{k}TOP' for k in KERNELS]
    assert svm_models == expected
