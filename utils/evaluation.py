"""
Model evaluation and result aggregation for the microarray benchmark.

ModelEvaluator.perf_classification runs the nested cross-validation of every
configured model on one train/test split. The aggregation helpers turn the
per-fold records into the final accuracy table.
"""

from dataclasses import dataclass
import json
import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score
from sklearn.model_selection import StratifiedKFold
from sklearn.preprocessing import LabelEncoder

from classifiers import (
    AllPairsMajorityVote,
    KernelFisherDiscriminant,
    SVMClassifier,
    TopScoringPairs,
    compute_kernel,
    estimate_rbf_gamma,
    scaled_rbf_gamma
)
from feature_selection import WilcoxonRankSumSelector, get_rank_backend
from .config import TSP_FAMILY, ExperimentConfig, is_svm_model, kfd_name

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

AVERAGE_ROW = 'AVERAGE'


def select_best_index(cv_accuracy) -> int:
    """
    Index of the best grid point.

    The maximum inner cross-validation accuracy wins; among equal maxima the
    lowest index (first grid point) is selected. NaN entries never win.
    """
    values = np.asarray(cv_accuracy, dtype=float)
    if values.size == 0:
        raise ValueError("Cannot select a grid point from an empty accuracy sequence")
    if np.all(np.isnan(values)):
        raise ValueError("All cross-validation accuracies are NaN")

    return int(np.argmax(np.where(np.isnan(values), -np.inf, values)))


@dataclass
class ModelResult:
    """Accuracies of one model on one train/test split, per grid point."""

    model: str
    grid: List[Dict[str, float]]
    cv_accuracy: np.ndarray
    test_accuracy: np.ndarray
    kfd_accuracy: Optional[np.ndarray] = None

    @property
    def best_index(self) -> int:
        return select_best_index(self.cv_accuracy)

    @property
    def best_params(self) -> Dict[str, float]:
        return self.grid[self.best_index]

    @property
    def best_test_accuracy(self) -> float:
        return float(self.test_accuracy[self.best_index])

    @property
    def best_kfd_accuracy(self) -> Optional[float]:
        if self.kfd_accuracy is None:
            return None
        return float(self.kfd_accuracy[self.best_index])


class ModelEvaluator:
    """
    Nested cross-validation of the benchmark models on a train/test split.
    """

    def __init__(self, config: ExperimentConfig):
        """
        Initialize evaluator.

        Parameters:
        -----------
        config : ExperimentConfig
            Grids, model lists, inner fold count and seeds
        """
        self.config = config
        self.backend = get_rank_backend(config.rank_backend)

    def perf_classification(self, xtrain, ytrain, xtest, ytest,
                            rbf_gamma: Optional[float] = None) -> Dict[str, ModelResult]:
        """
        Evaluate every configured model.

        For each model and grid point, the inner cross-validation accuracy on
        the training split is computed, and the model is refit on the full
        training split to obtain the test accuracy. SVM models also report the
        accuracy of a kernel Fisher discriminant on the same kernel.

        Parameters:
        -----------
        xtrain, ytrain : np.ndarray
            Training split
        xtest, ytest : np.ndarray
            Test split
        rbf_gamma : float, optional
            Gaussian kernel width; estimated on xtrain if not given

        Returns:
        --------
        results : Dict[str, ModelResult]
            One record per model name
        """
        xtrain = np.asarray(xtrain, dtype=float)
        xtest = np.asarray(xtest, dtype=float)

        encoder = LabelEncoder().fit(np.concatenate([np.asarray(ytrain), np.asarray(ytest)]))
        y_train = encoder.transform(ytrain)
        y_test = encoder.transform(ytest)

        splitter = StratifiedKFold(n_splits=self.config.inner_folds, shuffle=True,
                                   random_state=self.config.random_state)
        inner_folds = list(splitter.split(xtrain, y_train))

        if rbf_gamma is None and any(m.startswith('SVMrbf') for m in self.config.models):
            rbf_gamma = estimate_rbf_gamma(xtrain, random_state=self.config.random_state)

        split = {
            'xtrain': xtrain, 'ytrain': y_train,
            'xtest': xtest, 'ytest': y_test,
            'inner_folds': inner_folds,
            'rbf_gamma': rbf_gamma,
            'kernel_cache': {},
            'ranking_cache': {}
        }

        results = {}
        for name in self.config.models:
            if name == 'APMV':
                result = self._evaluate_apmv(name, split)
            elif name in TSP_FAMILY:
                result = self._evaluate_tsp(name, split)
            elif is_svm_model(name):
                result = self._evaluate_svm(name, split)
            else:
                raise ValueError(f"No evaluation rule for model {name}")

            results[name] = result
            logger.info(f"{name}: best {result.best_params} "
                        f"cv acc = {result.cv_accuracy[result.best_index]:.4f}, "
                        f"test acc = {result.best_test_accuracy:.4f}")

        return results

    def _evaluate_apmv(self, name, split) -> ModelResult:
        X, y = split['xtrain'], split['ytrain']

        fold_scores = []
        for train_idx, val_idx in split['inner_folds']:
            model = AllPairsMajorityVote(max_genes=self.config.pair_genes,
                                         backend=self.config.rank_backend)
            model.fit(X[train_idx], y[train_idx])
            fold_scores.append(accuracy_score(y[val_idx], model.predict(X[val_idx])))

        model = AllPairsMajorityVote(max_genes=self.config.pair_genes,
                                     backend=self.config.rank_backend)
        model.fit(X, y)
        test_score = accuracy_score(split['ytest'], model.predict(split['xtest']))

        return ModelResult(name, [{}], np.array([np.mean(fold_scores)]), np.array([test_score]))

    def _evaluate_tsp(self, name, split) -> ModelResult:
        """
        TSP family: one fit with the largest k, predictions with the first k
        pairs for every k of the grid.
        """
        X, y = split['xtrain'], split['ytrain']
        grid = self.config.grid_for(name)
        ks = [int(point.get('k', 1)) for point in grid]

        def fit_pairs(X_fit, y_fit):
            model = TopScoringPairs(k=max(ks), max_genes=self.config.pair_genes,
                                    backend=self.config.rank_backend)
            return model.fit(X_fit, y_fit)

        fold_scores = np.zeros((len(split['inner_folds']), len(ks)))
        for f, (train_idx, val_idx) in enumerate(split['inner_folds']):
            model = fit_pairs(X[train_idx], y[train_idx])
            for j, k in enumerate(ks):
                fold_scores[f, j] = accuracy_score(y[val_idx], model.predict(X[val_idx], n_pairs=k))

        model = fit_pairs(X, y)
        test_scores = np.array([
            accuracy_score(split['ytest'], model.predict(split['xtest'], n_pairs=k)) for k in ks
        ])

        return ModelResult(name, grid, fold_scores.mean(axis=0), test_scores)

    def _evaluate_svm(self, name, split) -> ModelResult:
        """
        Kernel SVM over its grid, with the KFD companion on the same kernels.

        Grid points carrying 'k' use the top-k genes of a Wilcoxon rank-sum
        ranking computed on the training part only; the others use all genes.
        """
        kernel = name[len('SVM'):]
        if kernel.endswith('TOP'):
            kernel = kernel[:-len('TOP')]

        X, y = split['xtrain'], split['ytrain']
        n_genes = X.shape[1]
        grid = self.config.grid_for(name)

        # Group grid points by effective gene subset size (None = all genes)
        subsets = {}
        for idx, point in enumerate(grid):
            k = point.get('k')
            effective = None if k is None or k >= n_genes else int(k)
            subsets.setdefault(effective, []).append(idx)

        cv_accuracy = np.zeros(len(grid))
        test_accuracy = np.zeros(len(grid))
        kfd_accuracy = np.zeros(len(grid))

        for n_top, points in subsets.items():
            cs = [grid[idx].get('C', 1.0) for idx in points]

            fold_scores = np.zeros((len(split['inner_folds']), len(points)))
            for f, (train_idx, val_idx) in enumerate(split['inner_folds']):
                K_train, K_val = self._split_kernels(kernel, split, n_top, fold=f)
                for j, C in enumerate(cs):
                    svm = SVMClassifier(C=C, random_state=self.config.random_state)
                    svm.fit(K_train, y[train_idx])
                    fold_scores[f, j] = svm.score(K_val, y[val_idx])
            cv_accuracy[points] = fold_scores.mean(axis=0)

            K_train, K_test = self._split_kernels(kernel, split, n_top)
            for idx, C in zip(points, cs):
                svm = SVMClassifier(C=C, random_state=self.config.random_state)
                svm.fit(K_train, y)
                test_accuracy[idx] = svm.score(K_test, split['ytest'])

            kfd = KernelFisherDiscriminant(regularization=self.config.kfd_regularization)
            kfd.fit(K_train, y)
            kfd_accuracy[points] = accuracy_score(split['ytest'], kfd.predict(K_test))

        return ModelResult(name, grid, cv_accuracy, test_accuracy, kfd_accuracy)

    def _split_kernels(self, kernel, split, n_top, fold=None):
        """
        Training kernel and evaluation-by-training kernel.

        fold indexes split['inner_folds']; with fold None the split's own
        train/test partition is used. All-gene kernels do not depend on the
        partition, so they are computed once over train and test samples
        together and sliced.
        """
        X = split['xtrain']

        if fold is None:
            X_fit, y_fit, X_eval = X, split['ytrain'], split['xtest']
        else:
            train_idx, val_idx = split['inner_folds'][fold]
            X_fit, y_fit, X_eval = X[train_idx], split['ytrain'][train_idx], X[val_idx]

        if n_top is None:
            K_all = self._all_gene_kernel(kernel, split)
            if fold is None:
                n_train = X.shape[0]
                return K_all[:n_train, :n_train], K_all[n_train:, :n_train]
            return K_all[np.ix_(train_idx, train_idx)], K_all[np.ix_(val_idx, train_idx)]

        genes = self._gene_ranking(split, fold, X_fit, y_fit)[:n_top]
        X_sub = np.vstack([X_fit, X_eval])[:, genes]

        gamma = None
        if kernel == 'rbf':
            gamma = scaled_rbf_gamma(split['rbf_gamma'], X.shape[1], n_top)

        K = compute_kernel(kernel, X_sub, gamma=gamma, degree=self.config.poly_degree,
                           backend=self.backend)
        n_fit = X_fit.shape[0]
        return K[:n_fit, :n_fit], K[n_fit:, :n_fit]

    def _gene_ranking(self, split, fold, X_fit, y_fit):
        """Rank-sum ranking of all genes on the fitting part, computed once per fold."""
        cache = split['ranking_cache']
        if fold not in cache:
            selector = WilcoxonRankSumSelector(n_features_to_select=X_fit.shape[1])
            cache[fold] = selector.fit(X_fit, y_fit).feature_ranking
        return cache[fold]

    def _all_gene_kernel(self, kernel, split):
        cache = split['kernel_cache']
        if kernel not in cache:
            X_all = np.vstack([split['xtrain'], split['xtest']])
            cache[kernel] = compute_kernel(kernel, X_all, gamma=split['rbf_gamma'] if kernel == 'rbf' else None,
                                           degree=self.config.poly_degree, backend=self.backend)
        return cache[kernel]


def summarize_records(records: List[Dict[str, ModelResult]]) -> Dict[str, float]:
    """
    Mean best-grid-point test accuracy per model over folds.

    For SVM models the companion KFD accuracy, taken at the SVM's best grid
    point, is reported under the KFD name.
    """
    if not records:
        raise ValueError("No records to summarize")

    models = list(records[0].keys())
    for record in records[1:]:
        if list(record.keys()) != models:
            raise ValueError("All records must contain the same models")

    summary = {}
    for model in models:
        summary[model] = float(np.mean([record[model].best_test_accuracy for record in records]))
        if records[0][model].kfd_accuracy is not None:
            summary[kfd_name(model)] = float(np.mean(
                [record[model].best_kfd_accuracy for record in records]
            ))

    return summary


def build_accuracy_table(summaries: Dict[str, Dict[str, float]],
                         aliases: Dict[str, str]) -> pd.DataFrame:
    """
    Percentage accuracy table, datasets as rows and models as columns.

    The first row is the per-model average across datasets; the remaining
    rows are sorted alphabetically by alias and the columns by decreasing
    average accuracy (models with equal averages keep their input order).
    Values are rounded to 2 decimals after averaging.
    """
    if not summaries:
        raise ValueError("No dataset summaries to tabulate")

    rows = {}
    for name, summary in summaries.items():
        alias = aliases.get(name, name)
        if alias in rows:
            raise ValueError(f"Duplicate dataset alias: {alias}")
        rows[alias] = {model: 100.0 * acc for model, acc in summary.items()}

    table = pd.DataFrame.from_dict(rows, orient='index').sort_index()
    average = table.mean(axis=0)
    column_order = average.sort_values(ascending=False, kind='mergesort').index

    table = pd.concat([average.to_frame(AVERAGE_ROW).T, table])[column_order]
    table.index.name = 'dataset'

    return table.round(2)


def save_results(results: Dict, filename: str) -> None:
    """Save nested result dictionaries (numpy values allowed) as JSON."""

    class NumpyEncoder(json.JSONEncoder):
        def default(self, obj):
            if isinstance(obj, np.ndarray):
                return obj.tolist()
            if isinstance(obj, np.integer):
                return int(obj)
            if isinstance(obj, np.floating):
                return float(obj)
            return super(NumpyEncoder, self).default(obj)

    with open(filename, 'w') as f:
        json.dump(results, f, indent=2, cls=NumpyEncoder)

    logger.info(f"Results saved to {filename}")
