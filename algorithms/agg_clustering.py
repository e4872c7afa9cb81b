"""
Hierarchical (Agglomerative) Clustering Wrapper.

This script provides a wrapper around SciPy's hierarchical clustering so the
rental observations can be grouped bottom-up and compared with the K-Means
partition. The full linkage matrix is returned for drawing a dendrogram.
"""

import time
import numpy as np
from scipy.cluster.hierarchy import linkage as build_linkage, fcluster
from typing import Dict, Any


VALID_LINKAGES = ("ward", "complete", "average", "single")


def run_agglomerative_once(
        X: np.ndarray,
        n_clusters: int,
        linkage: str = "ward",
        metric: str = "euclidean",
) -> Dict[str, Any]:
    """
    Runs Agglomerative Clustering once with a specific configuration.

    Parameters
    ----------
    X : np.ndarray
        The input feature matrix (e.g. the retained PCA scores).
    n_clusters : int
        The number of clusters at which the tree is cut.
    linkage : str, default="ward"
        The linkage criterion ("ward", "complete", "average", "single").
    metric : str, default="euclidean"
        The distance metric. "euclidean" is mandatory if linkage is "ward".

    Returns
    -------
    dict
        A dictionary containing:
        - Metadata (algorithm, parameters, runtime).
        - "labels": 0-based cluster labels.
        - "linkage_matrix": The SciPy linkage matrix (for dendrograms).
    """
    if linkage not in VALID_LINKAGES:
        raise ValueError(f"Linkage '{linkage}' not supported. Use one of {VALID_LINKAGES}.")
    if linkage == "ward" and metric != "euclidean":
        raise ValueError("Ward linkage requires the euclidean metric.")

    X = np.asarray(X, dtype=float)
    if not 1 <= n_clusters <= X.shape[0]:
        raise ValueError(f"n_clusters must be between 1 and {X.shape[0]}, got {n_clusters}.")

    start = time.perf_counter()

    linkage_matrix = build_linkage(X, method=linkage, metric=metric)
    # fcluster labels start at 1
    labels = fcluster(linkage_matrix, t=n_clusters, criterion="maxclust") - 1

    runtime = time.perf_counter() - start

    return {
        "algorithm": "Agglomerative",
        "n_clusters": n_clusters,
        "metric": metric,
        "linkage": linkage,
        "runtime_sec": runtime,
        "labels": labels,
        "linkage_matrix": linkage_matrix,
    }
