"""
Wilcoxon rank-sum gene selection.

Genes are ranked by the p-value of a two-sample Wilcoxon rank-sum
(Mann-Whitney U) test between the classes; with more than two classes the
Kruskal-Wallis test is used instead. Being rank based, the ranking is
invariant to monotone transformations of the expression values, which suits
the rank-based classifiers of the benchmark.
"""

import logging

import numpy as np
from scipy.stats import kruskal, mannwhitneyu

logger = logging.getLogger(__name__)


class WilcoxonRankSumSelector:
    """
    Top-k gene selector based on rank-sum test p-values.

    Genes with equal p-values keep their original column order, so the
    ranking is deterministic.
    """

    def __init__(self, n_features_to_select=100):
        """
        Initialize selector.

        Parameters:
        -----------
        n_features_to_select : int
            Number of genes to keep. Capped at the number of available genes.
        """
        self.n_features_to_select = n_features_to_select
        self.selected_features = None
        self.feature_scores = None
        self.feature_ranking = None

    def fit(self, X, y):
        """
        Compute rank-sum p-values and select the top genes.

        Parameters:
        -----------
        X : array-like, shape (n_samples, n_genes)
            Training data
        y : array-like, shape (n_samples,)
            Class labels

        Returns:
        --------
        self : object
            Returns self
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)

        if X.shape[0] != y.shape[0]:
            raise ValueError(f"X has {X.shape[0]} samples but y has {y.shape[0]}")

        self.feature_scores = rank_sum_pvalues(X, y)
        self.feature_ranking = np.argsort(self.feature_scores, kind='stable')

        k = min(self.n_features_to_select, X.shape[1])
        self.selected_features = self.feature_ranking[:k]

        return self

    def transform(self, X):
        """Reduce X to the selected genes."""
        if self.selected_features is None:
            raise ValueError("Must call fit before transform")

        return np.asarray(X)[:, self.selected_features]

    def fit_transform(self, X, y):
        self.fit(X, y)
        return self.transform(X)

    def get_support(self, indices=True):
        """
        Get a mask or indices of selected genes.

        Parameters:
        -----------
        indices : bool
            If True, return indices. If False, return boolean mask.
        """
        if self.selected_features is None:
            raise ValueError("Must call fit first")

        if indices:
            return self.selected_features.copy()

        mask = np.zeros(len(self.feature_scores), dtype=bool)
        mask[self.selected_features] = True
        return mask

    def __repr__(self):
        return f"WilcoxonRankSumSelector(n_features_to_select={self.n_features_to_select})"


def rank_sum_pvalues(X, y):
    """
    Per-gene p-values of the rank-sum test between classes.

    Genes whose p-value is undefined (constant across all samples) get 1.0.
    """
    X = np.asarray(X, dtype=float)
    classes = np.unique(y)

    if len(classes) < 2:
        raise ValueError("Rank-sum gene ranking needs at least two classes")

    groups = [X[y == c] for c in classes]

    if len(classes) == 2:
        _, pvalues = mannwhitneyu(groups[0], groups[1], alternative='two-sided', axis=0)
    else:
        _, pvalues = kruskal(*groups, axis=0)

    pvalues = np.atleast_1d(np.asarray(pvalues, dtype=float))
    undefined = np.isnan(pvalues)
    if undefined.any():
        logger.warning(f"{undefined.sum()} constant gene(s) given p-value 1.0")
        pvalues[undefined] = 1.0

    return pvalues
