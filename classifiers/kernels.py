"""
Kernel matrices for the kernel SVM and KFD models.

Supported kernels:
- 'linear': inner product of expression profiles
- 'kdt': Kendall kernel, Kendall tau correlation between sample profiles
- 'rbf': Gaussian kernel exp(-gamma * ||x - y||^2)
- 'poly': polynomial kernel (gamma * <x, y> + 1) ** degree
"""

import logging

import numpy as np
from sklearn.metrics.pairwise import linear_kernel, polynomial_kernel, rbf_kernel

from feature_selection.rank_backend import get_rank_backend

logger = logging.getLogger(__name__)

KERNELS = ('linear', 'kdt', 'rbf', 'poly')


def estimate_rbf_gamma(X, frac=0.5, quantiles=(0.1, 0.9), random_state=None):
    """
    Estimate the Gaussian kernel width from the data.

    Squared distances are computed between randomly paired samples; the
    estimate is the mean of the lower and upper quantiles of their inverse,
    so that exp(-gamma * d^2) is neither saturated nor vanishing.

    Parameters:
    -----------
    X : array-like, shape (n_samples, n_genes)
        Training data
    frac : float
        Fraction of samples used to draw pairs
    quantiles : tuple
        Quantiles of the inverse squared distances to average
    random_state : int or None
        Random seed

    Returns:
    --------
    gamma : float
        Kernel width parameter
    """
    X = np.asarray(X, dtype=float)
    n_samples = X.shape[0]

    if n_samples < 2:
        raise ValueError("Need at least two samples to estimate the kernel width")

    rng = np.random.RandomState(random_state)
    n_pairs = max(1, int(round(frac * n_samples)))
    first = rng.randint(n_samples, size=n_pairs)
    second = rng.randint(n_samples, size=n_pairs)

    sq_dist = np.sum((X[first] - X[second]) ** 2, axis=1)
    sq_dist = sq_dist[sq_dist > 0]

    if sq_dist.size == 0:
        # Duplicated samples only: fall back to all distinct pairs
        diff = X[:, None, :] - X[None, :, :]
        sq_dist = np.sum(diff ** 2, axis=2)
        sq_dist = sq_dist[sq_dist > 0]
        if sq_dist.size == 0:
            raise ValueError("All samples are identical; kernel width is undefined")

    lower, upper = np.quantile(1.0 / sq_dist, quantiles)
    gamma = float((lower + upper) / 2.0)

    logger.info(f"Estimated rbf gamma = {gamma:.4g} from {sq_dist.size} sample pairs")
    return gamma


def compute_kernel(kernel, X, Y=None, gamma=None, degree=2, backend=None):
    """
    Kernel matrix between the rows of X and Y.

    Parameters:
    -----------
    kernel : str
        One of 'linear', 'kdt', 'rbf', 'poly'
    X : array-like, shape (n_x, n_genes)
    Y : array-like, shape (n_y, n_genes) or None
    gamma : float or None
        Width of the rbf kernel (required for 'rbf') or scale of the
        polynomial kernel (defaults to 1 / n_genes)
    degree : int
        Degree of the polynomial kernel
    backend : RankBackend or None
        Backend computing Kendall correlations

    Returns:
    --------
    K : array, shape (n_x, n_y)
    """
    X = np.asarray(X, dtype=float)
    if Y is not None:
        Y = np.asarray(Y, dtype=float)

    if kernel == 'linear':
        return linear_kernel(X, Y)
    if kernel == 'kdt':
        if backend is None:
            backend = get_rank_backend()
        return backend.kendall_matrix(X, Y)
    if kernel == 'rbf':
        if gamma is None:
            raise ValueError("rbf kernel requires gamma")
        return rbf_kernel(X, Y, gamma=gamma)
    if kernel == 'poly':
        scale = gamma if gamma is not None else 1.0 / X.shape[1]
        return polynomial_kernel(X, Y, degree=degree, gamma=scale, coef0=1.0)

    raise ValueError(f"Unknown kernel: {kernel}. Available: {list(KERNELS)}")


def scaled_rbf_gamma(gamma, n_genes_total, n_genes_used):
    """
    Rescale a width estimated on all genes to a gene subset.

    Squared distances grow roughly linearly with the number of genes, so
    the width is multiplied by n_genes_total / n_genes_used.
    """
    if n_genes_used < 1:
        raise ValueError("n_genes_used must be >= 1")
    return gamma * n_genes_total / n_genes_used
