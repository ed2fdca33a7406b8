"""
Rank statistics backends used by the rank-based classifiers and the Kendall kernel.

Two primitives are needed by the benchmark:

1. Pairwise order frequencies: for a set of samples, the fraction of samples
   in which gene i is expressed below gene j. Top-scoring pairs and all-pairs
   majority vote are built on these tables.
2. Rank correlation: the Kendall tau correlation between the expression
   profiles of two samples, which is the Kendall kernel.

Backends implement both behind the RankBackend interface so that a faster
implementation can be swapped in without touching the classifiers.
"""

from abc import ABC, abstractmethod
import logging
from typing import Dict, Optional, Type

import numpy as np
from scipy.stats import kendalltau, rankdata

logger = logging.getLogger(__name__)


class RankBackend(ABC):
    """Interface for the rank statistics used by TSP, APMV and the Kendall kernel."""

    name = 'abstract'

    @abstractmethod
    def pair_order_frequencies(self, X):
        """
        Fraction of samples with X[:, i] < X[:, j].

        Parameters:
        -----------
        X : array-like, shape (n_samples, n_genes)
            Expression values of one group of samples

        Returns:
        --------
        freq : array, shape (n_genes, n_genes)
            freq[i, j] = P(X_i < X_j) estimated on the samples
        """

    @abstractmethod
    def kendall_matrix(self, X, Y=None):
        """
        Kendall tau correlation between the rows of X and the rows of Y.

        Parameters:
        -----------
        X : array-like, shape (n_x, n_genes)
        Y : array-like, shape (n_y, n_genes) or None
            If None, the symmetric matrix between rows of X is returned

        Returns:
        --------
        K : array, shape (n_x, n_y)
        """

    def within_sample_ranks(self, X):
        """Rank of every gene inside each sample (average ranks for ties)."""
        return rankdata(np.asarray(X, dtype=float), axis=1)


class ScipyRankBackend(RankBackend):
    """
    numpy / scipy implementation.

    Kendall correlations use scipy.stats.kendalltau (tau-b, O(p log p) per
    pair of samples). Order frequencies are accumulated sample by sample to
    keep memory at O(n_genes^2).
    """

    name = 'scipy'

    def pair_order_frequencies(self, X):
        X = np.asarray(X, dtype=float)
        n_samples, n_genes = X.shape

        if n_samples == 0:
            raise ValueError("Cannot estimate order frequencies from zero samples")

        counts = np.zeros((n_genes, n_genes))
        for row in X:
            counts += row[:, None] < row[None, :]

        return counts / n_samples

    def kendall_matrix(self, X, Y=None):
        X = np.asarray(X, dtype=float)
        symmetric = Y is None
        Y = X if symmetric else np.asarray(Y, dtype=float)

        if X.shape[1] != Y.shape[1]:
            raise ValueError(f"Gene dimension mismatch: {X.shape[1]} vs {Y.shape[1]}")

        K = np.zeros((X.shape[0], Y.shape[0]))
        n_undefined = 0

        for i in range(X.shape[0]):
            start = i if symmetric else 0
            for j in range(start, Y.shape[0]):
                tau = kendalltau(X[i], Y[j]).statistic
                if np.isnan(tau):
                    # Constant profile: correlation undefined
                    n_undefined += 1
                    tau = 0.0
                K[i, j] = tau
                if symmetric:
                    K[j, i] = tau

        if n_undefined:
            logger.warning(f"Kendall tau undefined for {n_undefined} sample pair(s); set to 0")

        return K


_BACKENDS: Dict[str, Type[RankBackend]] = {
    ScipyRankBackend.name: ScipyRankBackend,
}


def register_rank_backend(backend_cls: Type[RankBackend]) -> None:
    _BACKENDS[backend_cls.name] = backend_cls


def get_rank_backend(name: Optional[str] = 'scipy') -> RankBackend:
    """Instantiate a registered backend by name (None selects the default)."""
    if name is None:
        name = ScipyRankBackend.name
    if name not in _BACKENDS:
        raise ValueError(f"Unknown rank backend: {name}. Available: {sorted(_BACKENDS)}")
    return _BACKENDS[name]()
