"""
Top-Scoring Pair(s) classifiers.

TSP compares the expression of two genes inside each sample: a pair (i, j)
scores highly when the event "gene i is expressed below gene j" is frequent
in one class and rare in the other. kTSP keeps the k best disjoint pairs and
predicts by majority vote; k is odd so that votes cannot tie.

Only the relative order of genes within a sample is used, so the classifiers
are invariant to per-sample monotone normalizations.

References:
-----------
Geman, D., d'Avignon, C., Naiman, D. Q., & Winslow, R. L. (2004). Classifying
gene expression profiles from pairwise mRNA comparisons. Statistical
Applications in Genetics and Molecular Biology, 3(1).

Tan, A. C., Naiman, D. Q., Xu, L., Winslow, R. L., & Geman, D. (2005). Simple
decision rules for classifying human cancers from gene expression profiles.
Bioinformatics, 21(20), 3896-3904.
"""

import logging

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from feature_selection.rank_backend import get_rank_backend
from feature_selection.ranksum import WilcoxonRankSumSelector

logger = logging.getLogger(__name__)


def prefilter_genes(X, y, max_genes):
    """Indices of the genes kept before building pair tables."""
    n_genes = X.shape[1]
    if max_genes is None or n_genes <= max_genes:
        return np.arange(n_genes)
    selector = WilcoxonRankSumSelector(n_features_to_select=max_genes).fit(X, y)
    return np.sort(selector.get_support())


def class_order_frequencies(X, y, classes, backend):
    """Order-frequency tables P(X_i < X_j | class) for the two classes."""
    return [backend.pair_order_frequencies(X[y == c]) for c in classes]


class TopScoringPairs(BaseEstimator, ClassifierMixin):
    """
    TSP / kTSP classifier for binary microarray data.

    Parameters:
    -----------
    k : int
        Number of disjoint pairs used for voting (k=1 is the original TSP)
    max_genes : int or None
        Genes kept by a Wilcoxon rank-sum prefilter before scoring pairs;
        None scores all genes
    backend : str
        Name of the rank statistics backend
    """

    def __init__(self, k=1, max_genes=500, backend='scipy'):
        self.k = k
        self.max_genes = max_genes
        self.backend = backend

    def fit(self, X, y):
        """
        Score all gene pairs and keep the k best disjoint ones.

        Pairs are ordered by primary score |P(X_i < X_j | 0) - P(X_i < X_j | 1)|,
        then by the difference in mean within-sample rank gap between the
        classes; remaining ties keep the (i, j) lexicographic order.
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)

        self.classes_ = np.unique(y)
        if len(self.classes_) != 2:
            raise ValueError(f"TSP is binary, got {len(self.classes_)} classes")
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")

        rank_backend = get_rank_backend(self.backend)
        genes = prefilter_genes(X, y, self.max_genes)
        X_f = X[:, genes]

        freq_0, freq_1 = class_order_frequencies(X_f, y, self.classes_, rank_backend)
        primary = np.abs(freq_0 - freq_1)

        ranks = rank_backend.within_sample_ranks(X_f)
        gap_0 = ranks[y == self.classes_[0]].mean(axis=0)
        gap_1 = ranks[y == self.classes_[1]].mean(axis=0)
        rank_shift = gap_0 - gap_1
        secondary = np.abs(rank_shift[:, None] - rank_shift[None, :])

        rows, cols = np.triu_indices(len(genes), k=1)
        order = np.lexsort((cols, rows, -secondary[rows, cols], -primary[rows, cols]))

        max_pairs = len(genes) // 2
        n_pairs = min(self.k, max_pairs)
        if n_pairs < self.k:
            logger.info(f"k={self.k} exceeds the {max_pairs} disjoint pairs available; using {n_pairs}")

        used = np.zeros(len(genes), dtype=bool)
        pairs, scores, below_class = [], [], []
        for idx in order:
            i, j = rows[idx], cols[idx]
            if used[i] or used[j]:
                continue
            used[i] = used[j] = True
            pairs.append((genes[i], genes[j]))
            scores.append(primary[i, j])
            # Class predicted when gene i is expressed below gene j
            below_class.append(0 if freq_0[i, j] >= freq_1[i, j] else 1)
            if len(pairs) == n_pairs:
                break

        self.pairs_ = np.array(pairs, dtype=int).reshape(-1, 2)
        self.scores_ = np.array(scores)
        self.below_class_ = np.array(below_class, dtype=int)

        return self

    @property
    def n_pairs_(self):
        return len(self.pairs_)

    def pair_votes(self, X):
        """
        Vote of every selected pair for every sample.

        Returns:
        --------
        votes : array, shape (n_samples, n_pairs)
            Index (0 or 1) of the class each pair votes for
        """
        if not hasattr(self, 'pairs_'):
            raise ValueError("Model not trained. Call fit() first.")

        X = np.asarray(X, dtype=float)
        below = X[:, self.pairs_[:, 0]] < X[:, self.pairs_[:, 1]]
        return np.where(below, self.below_class_, 1 - self.below_class_)

    def predict(self, X, n_pairs=None):
        """
        Majority vote of the first n_pairs pairs (all fitted pairs by default).

        An even number of pairs can tie; ties go to the vote of the best pair.
        """
        votes = self.pair_votes(X)
        if n_pairs is None:
            n_pairs = votes.shape[1]
        n_pairs = max(1, min(n_pairs, votes.shape[1]))
        votes = votes[:, :n_pairs]

        ones = votes.sum(axis=1)
        zeros = n_pairs - ones
        winner = np.where(ones > zeros, 1, 0)
        tied = ones == zeros
        winner[tied] = votes[tied, 0]

        return self.classes_[winner]
