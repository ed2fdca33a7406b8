"""
All-Pairs Majority Vote classifier.

Every gene pair (i, j) votes for the class in which "gene i below gene j" is
more frequent; the prediction is the class with most votes. APMV has no
hyperparameter. It is the unweighted vote over all pairs, the counterpart of
kTSP with every pair kept.
"""

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from feature_selection.rank_backend import get_rank_backend
from .tsp import class_order_frequencies, prefilter_genes


class AllPairsMajorityVote(BaseEstimator, ClassifierMixin):
    """
    APMV classifier for binary microarray data.

    Parameters:
    -----------
    max_genes : int or None
        Genes kept by a Wilcoxon rank-sum prefilter before building the pair
        table; None uses all genes (memory grows with n_genes^2)
    backend : str
        Name of the rank statistics backend
    """

    def __init__(self, max_genes=500, backend='scipy'):
        self.max_genes = max_genes
        self.backend = backend

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)

        self.classes_, counts = np.unique(y, return_counts=True)
        if len(self.classes_) != 2:
            raise ValueError(f"APMV is binary, got {len(self.classes_)} classes")

        self.genes_ = prefilter_genes(X, y, self.max_genes)
        freq_0, freq_1 = class_order_frequencies(
            X[:, self.genes_], y, self.classes_, get_rank_backend(self.backend)
        )

        # +1: "i below j" points to class 0, -1: to class 1, 0: no vote
        self.directions_ = np.triu(np.sign(freq_0 - freq_1), k=1)
        self.majority_class_ = int(np.argmax(counts))

        return self

    def decision_function(self, X):
        """
        Votes for class 0 minus votes for class 1, per sample.
        """
        if not hasattr(self, 'directions_'):
            raise ValueError("Model not trained. Call fit() first.")

        X = np.asarray(X, dtype=float)[:, self.genes_]
        scores = np.empty(X.shape[0])
        for s, row in enumerate(X):
            # +1 where gene i is below gene j, 0 for tied genes
            below = np.sign(row[None, :] - row[:, None])
            scores[s] = np.sum(self.directions_ * below)

        return scores

    def predict(self, X):
        """Class with most votes; exact ties go to the training majority class."""
        scores = self.decision_function(X)
        winner = np.where(scores > 0, 0, 1)
        winner[scores == 0] = self.majority_class_
        return self.classes_[winner]
