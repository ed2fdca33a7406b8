"""
Data loading and resampling utilities for the microarray benchmark.

Datasets are stored one per file as <data_dir>/<name>.npz with arrays
'xtrain' and 'ytrain' and, for datasets shipped with an independent
validation set, 'xtest' and 'ytest'.
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from sklearn.model_selection import RepeatedStratifiedKFold

from .config import ExperimentConfig

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class DatasetSplitError(ValueError):
    """A dataset's train/test split contradicts the list it is declared in."""


@dataclass
class MicroarrayDataset:
    """Expression matrix (samples x genes) and labels, with an optional test split."""

    name: str
    xtrain: np.ndarray
    ytrain: np.ndarray
    xtest: Optional[np.ndarray] = None
    ytest: Optional[np.ndarray] = None

    @property
    def has_test_split(self) -> bool:
        return self.xtest is not None and self.ytest is not None

    @property
    def n_genes(self) -> int:
        return self.xtrain.shape[1]

    @property
    def n_samples(self) -> int:
        n = self.xtrain.shape[0]
        if self.has_test_split:
            n += self.xtest.shape[0]
        return n


@dataclass
class Fold:
    """Train/test partition of sample indices."""

    train_index: np.ndarray
    test_index: np.ndarray
    repeat: int = 0
    fold: int = 0


def _check_shapes(name: str, X: np.ndarray, y: np.ndarray, split: str) -> None:
    if X.ndim != 2:
        raise ValueError(f"{name}: x{split} must be 2-dimensional, got shape {X.shape}")
    if X.shape[0] != y.shape[0]:
        raise ValueError(f"{name}: x{split} has {X.shape[0]} samples but y{split} has {y.shape[0]}")


def load_dataset(name: str, data_dir: str) -> MicroarrayDataset:
    """
    Load one dataset file.

    Parameters:
    -----------
    name : str
        Dataset identifier (file stem)
    data_dir : str
        Directory holding the .npz files

    Returns:
    --------
    dataset : MicroarrayDataset
    """
    filepath = Path(data_dir) / f"{name}.npz"
    if not filepath.exists():
        raise FileNotFoundError(f"Dataset '{name}' not found at {filepath}")

    with np.load(filepath, allow_pickle=False) as data:
        xtrain = data['xtrain'].astype(float)
        ytrain = np.asarray(data['ytrain']).ravel()
        xtest = data['xtest'].astype(float) if 'xtest' in data.files else None
        ytest = np.asarray(data['ytest']).ravel() if 'ytest' in data.files else None

    _check_shapes(name, xtrain, ytrain, 'train')
    if (xtest is None) != (ytest is None):
        raise ValueError(f"{name}: xtest and ytest must be both present or both absent")
    if xtest is not None:
        _check_shapes(name, xtest, ytest, 'test')
        if xtest.shape[1] != xtrain.shape[1]:
            raise ValueError(f"{name}: xtest has {xtest.shape[1]} genes, xtrain has {xtrain.shape[1]}")

    dataset = MicroarrayDataset(name, xtrain, ytrain, xtest, ytest)
    logger.info(f"Loaded {name}: {dataset.n_samples} samples, {dataset.n_genes} genes, "
                f"test split: {dataset.has_test_split}")
    return dataset


def check_split_consistency(dataset: MicroarrayDataset, independent_validation: bool) -> None:
    """
    Raise DatasetSplitError when a dataset declared as independent validation
    lacks a test split, or a cross-validation-only dataset has one.
    """
    if independent_validation and not dataset.has_test_split:
        raise DatasetSplitError(
            f"Dataset '{dataset.name}' is declared for independent validation but has no test split"
        )
    if not independent_validation and (dataset.xtest is not None or dataset.ytest is not None):
        raise DatasetSplitError(
            f"Dataset '{dataset.name}' is declared for cross-validation only but has a test split"
        )


def load_datasets(config: ExperimentConfig) -> Dict[str, MicroarrayDataset]:
    """Load and validate every dataset of the configuration, keyed by identifier."""
    datasets = {}

    for name in config.independent_validation_datasets:
        dataset = load_dataset(name, config.data_dir)
        check_split_consistency(dataset, independent_validation=True)
        datasets[name] = dataset

    for name in config.cross_validation_datasets:
        dataset = load_dataset(name, config.data_dir)
        check_split_consistency(dataset, independent_validation=False)
        datasets[name] = dataset

    logger.info(f"Loaded {len(datasets)} datasets")
    return datasets


def make_cv_folds(y: np.ndarray, n_splits: int = 5, n_repeats: int = 10,
                  random_state: int = 42) -> List[Fold]:
    """
    Repeated stratified k-fold partitions of all samples.

    Returns n_splits * n_repeats folds; in each repeat every sample is in
    exactly one test fold.
    """
    y = np.asarray(y)
    splitter = RepeatedStratifiedKFold(n_splits=n_splits, n_repeats=n_repeats,
                                       random_state=random_state)
    folds = []
    placeholder = np.zeros((len(y), 1))
    for i, (train_idx, test_idx) in enumerate(splitter.split(placeholder, y)):
        folds.append(Fold(train_idx, test_idx, repeat=i // n_splits, fold=i % n_splits))

    return folds


def write_dataset(dataset: MicroarrayDataset, data_dir: str) -> Path:
    """Save a dataset as <data_dir>/<name>.npz."""
    directory = Path(data_dir)
    directory.mkdir(parents=True, exist_ok=True)
    filepath = directory / f"{dataset.name}.npz"

    arrays = {'xtrain': dataset.xtrain, 'ytrain': dataset.ytrain}
    if dataset.has_test_split:
        arrays['xtest'] = dataset.xtest
        arrays['ytest'] = dataset.ytest

    np.savez_compressed(filepath, **arrays)
    logger.info(f"Saved {dataset.name} to {filepath}")
    return filepath


def generate_synthetic_dataset(name: str, n_samples: int = 80, n_genes: int = 200,
                               n_informative: int = 10, test_fraction: Optional[float] = None,
                               effect_size: float = 2.0, random_state: int = 42) -> MicroarrayDataset:
    """
    Generate a synthetic binary microarray dataset for dry runs.

    Expression is log-normal-like noise. Informative genes sit effect_size
    apart between the classes, half a shift on each side of the common
    mean: up in class 1 for even indices, down for odd indices. This flips
    their relative order against the other genes.

    Parameters:
    -----------
    name : str
        Dataset identifier
    n_samples : int
        Total number of samples
    n_genes : int
        Number of genes
    n_informative : int
        Number of shifted genes
    test_fraction : float or None
        If given, this fraction of samples forms an independent test split
    effect_size : float
        Distance between the class means of an informative gene
    random_state : int
        Random seed
    """
    rng = np.random.RandomState(random_state)

    y = np.arange(n_samples) % 2
    rng.shuffle(y)

    X = rng.normal(loc=8.0, scale=1.0, size=(n_samples, n_genes))
    n_informative = min(n_informative, n_genes)
    shift = np.where(np.arange(n_informative) % 2 == 0, 0.5, -0.5) * effect_size
    X[y == 1, :n_informative] += shift
    X[y == 0, :n_informative] -= shift

    if test_fraction is None:
        dataset = MicroarrayDataset(name, X, y)
    else:
        n_test = max(2, int(round(test_fraction * n_samples)))
        dataset = MicroarrayDataset(name, X[n_test:], y[n_test:], X[:n_test], y[:n_test])

    logger.info(f"Generated synthetic {name}: {n_samples} samples, {n_genes} genes, "
                f"{n_informative} informative, class distribution {np.bincount(y)}")
    return dataset


def generate_synthetic_datasets(config: ExperimentConfig, n_samples: int = 80,
                                n_genes: int = 200) -> List[Path]:
    """Write one synthetic dataset per configured identifier into config.data_dir."""
    paths = []
    for offset, name in enumerate(config.dataset_names):
        independent = name in config.independent_validation_datasets
        dataset = generate_synthetic_dataset(
            name,
            n_samples=n_samples,
            n_genes=n_genes,
            test_fraction=0.3 if independent else None,
            random_state=config.random_state + offset
        )
        paths.append(write_dataset(dataset, config.data_dir))
    return paths
