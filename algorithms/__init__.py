"""
Analysis Algorithms Package.

This package contains the multivariate techniques applied to the rental
dataset. PCA and K-Means are implemented on top of numpy; Factor Analysis
wraps the ``factor_analyzer`` package and hierarchical clustering wraps SciPy.

Modules
-------
- pca: Principal Component Analysis via eigen-decomposition.
- factor_analysis: Factorability checks, parallel analysis and ML Factor Analysis.
- kmeans: K-Means (Lloyd's Algorithm with random restarts).
- agg_clustering: Wrapper for hierarchical (Agglomerative) Clustering.
"""

from .pca import PCA
from .kmeans import KMeans
from .agg_clustering import run_agglomerative_once
from .factor_analysis import (
    MaximumLikelihoodFA,
    check_factorability,
    compare_rotations,
    parallel_analysis,
)
