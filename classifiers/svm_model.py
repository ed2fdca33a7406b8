"""
Support Vector Machine classifier on precomputed kernel matrices.

The benchmark evaluates several kernels (linear, Kendall, Gaussian,
polynomial) with the same solver, so kernels are computed once per split and
passed to the SVM as Gram matrices. C is tuned over the grid
0.01, 0.1, 1, 10, 100, 1000.
"""

import numpy as np
from sklearn.svm import SVC
from sklearn.metrics import accuracy_score


class SVMClassifier:
    """
    Kernel SVM for microarray data on a precomputed kernel.

    fit() takes the (n_train, n_train) training kernel, predict() the
    (n_test, n_train) kernel between test and training samples.
    """

    def __init__(self, C=1.0, tol=1e-3, max_iter=-1, random_state=42):
        """
        Initialize SVM classifier.

        Parameters:
        -----------
        C : float
            Regularization strength (inverse)
        tol : float
            Solver tolerance
        max_iter : int
            Solver iteration limit (-1 for none)
        random_state : int
            Random seed
        """
        self.C = C
        self.tol = tol
        self.max_iter = max_iter
        self.random_state = random_state

        self.model = None
        self.classes_ = None

    def fit(self, K_train, y):
        """
        Train the SVM.

        Parameters:
        -----------
        K_train : array-like, shape (n_train, n_train)
            Training kernel matrix
        y : array-like, shape (n_train,)
            Training labels

        Returns:
        --------
        self : object
            Returns self
        """
        K_train = np.asarray(K_train, dtype=float)
        if K_train.shape[0] != K_train.shape[1]:
            raise ValueError(f"Training kernel must be square, got {K_train.shape}")

        self.model = SVC(
            C=self.C,
            kernel='precomputed',
            tol=self.tol,
            max_iter=self.max_iter,
            random_state=self.random_state
        )
        self.model.fit(K_train, y)
        self.classes_ = self.model.classes_

        return self

    def predict(self, K_test):
        """
        Predict labels from the test-by-train kernel matrix.
        """
        if self.model is None:
            raise ValueError("Model not trained. Call fit() first.")

        return self.model.predict(np.asarray(K_test, dtype=float))

    def decision_function(self, K_test):
        if self.model is None:
            raise ValueError("Model not trained. Call fit() first.")

        return self.model.decision_function(np.asarray(K_test, dtype=float))

    def score(self, K_test, y):
        """Accuracy on the given test kernel."""
        return accuracy_score(y, self.predict(K_test))

    def __str__(self):
        return f"SVMClassifier(C={self.C}, kernel='precomputed')"
