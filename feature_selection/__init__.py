"""
Gene ranking and rank statistics for microarray data analysis.

This module provides:
1. Wilcoxon rank-sum gene selection (top-k genes for the TOP kernel models)
2. Rank statistics backends (pairwise order frequencies, Kendall correlation)
   shared by the rank-based classifiers and the Kendall kernel
"""

from .ranksum import WilcoxonRankSumSelector, rank_sum_pvalues
from .rank_backend import (
    RankBackend,
    ScipyRankBackend,
    get_rank_backend,
    register_rank_backend
)

__version__ = "1.0.0"

__all__ = [
    "WilcoxonRankSumSelector",
    "rank_sum_pvalues",
    "RankBackend",
    "ScipyRankBackend",
    "get_rank_backend",
    "register_rank_backend"
]
