"""
Utilities package initialization.

Exposes the data loading and clustering diagnostic functions to the top-level
utils package for cleaner imports throughout the project.
"""

from .parser import (
    load_observations,
    split_identifier,
    check_missing_values,
    standardize,
    preprocess_observations,
)

from .clustering_metrics import (
    compute_clustering_metrics,
    evaluate_k_range,
    suggest_n_clusters,
    silhouette_table,
    summarize_clusters,
)
