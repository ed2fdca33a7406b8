"""
Classifier implementations for microarray data analysis.

This module provides the classifiers compared by the benchmark:
1. All-Pairs Majority Vote (APMV)
2. Top-Scoring Pair(s) (TSP / kTSP)
3. Support Vector Machines on precomputed kernels (linear, Kendall, Gaussian, polynomial)
4. Kernel Fisher Discriminant (KFD) sharing the SVM kernels
"""

from .apmv import AllPairsMajorityVote
from .tsp import TopScoringPairs
from .svm_model import SVMClassifier
from .kfd import KernelFisherDiscriminant
from .kernels import KERNELS, compute_kernel, estimate_rbf_gamma, scaled_rbf_gamma

__version__ = "1.0.0"

__all__ = [
    "AllPairsMajorityVote",
    "TopScoringPairs",
    "SVMClassifier",
    "KernelFisherDiscriminant",
    "KERNELS",
    "compute_kernel",
    "estimate_rbf_gamma",
    "scaled_rbf_gamma"
]
