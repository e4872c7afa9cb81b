"""
Clustering diagnostics for the rental dataset.

This module implements the tools used to choose and validate the number of
clusters: within-cluster sum of squares (Elbow method) and average
silhouette width over a range of k, internal validation indices
(Silhouette, Davies-Bouldin, Calinski-Harabasz) and per-observation
silhouette widths. It also summarises the clusters on the original
variables for the report table.

References
----------
[1] Rousseeuw, P.J., "Silhouettes: a graphical aid to the interpretation and
    validation of cluster analysis", 1987, J. Comput. Appl. Math., 20: 53-65.
"""

import numpy as np
import pandas as pd
from tqdm import tqdm
from sklearn.metrics import (
    silhouette_score,
    silhouette_samples,
    davies_bouldin_score,
    calinski_harabasz_score,
)
from sklearn.metrics.pairwise import euclidean_distances
from typing import Dict, Iterable, Optional, Union

from algorithms.kmeans import KMeans

# Variables summarised per cluster and their report headers
DEFAULT_SUMMARY_COLUMNS = {
    "pop": "Avg_Population",
    "rnthsg": "Avg_Rented_Housing",
    "tothsg": "Avg_Total_Housing",
    "rent": "Avg_Rent",
    "avginc": "Avg_Income",
}


def evaluate_k_range(
        X: Union[np.ndarray, pd.DataFrame],
        k_values: Iterable[int] = range(1, 11),
        n_init: int = 25,
        random_state: Optional[int] = 123,
        verbose: bool = False,
) -> pd.DataFrame:
    """
    Runs K-Means for every k and records WSS and average silhouette width.

    Parameters
    ----------
    X : array-like
        Data to cluster (normally the retained PCA scores).
    k_values : iterable of int, default=range(1, 11)
        Cluster counts to try. Values above the number of samples are skipped.
    n_init : int, default=25
        Random restarts per k.
    random_state : int, optional
        Seed passed to every K-Means run.
    verbose : bool, default=False
        Show a progress bar.

    Returns
    -------
    pd.DataFrame
        Columns 'k', 'wss', 'silhouette' (NaN where undefined, i.e. k=1).
    """
    if isinstance(X, pd.DataFrame):
        X = X.values
    X = np.asarray(X, dtype=float)
    n_samples = X.shape[0]

    rows = []
    for k in tqdm(list(k_values), desc="K sweep", unit="k", disable=not verbose):
        if k < 1 or k > n_samples:
            continue
        model = KMeans(n_clusters=k, n_init=n_init, random_state=random_state)
        labels = model.fit_predict(X)

        n_labels = len(np.unique(labels))
        if 2 <= n_labels <= n_samples - 1:
            sil = silhouette_score(X, labels)
        else:
            sil = np.nan

        rows.append({"k": k, "wss": model.inertia_, "silhouette": sil})

    return pd.DataFrame(rows, columns=["k", "wss", "silhouette"])


def suggest_n_clusters(k_table: pd.DataFrame, method: str = "silhouette") -> int:
    """
    Suggests a cluster count from the output of ``evaluate_k_range``.

    Parameters
    ----------
    k_table : pd.DataFrame
        Columns 'k', 'wss', 'silhouette'.
    method : str, default="silhouette"
        - 'silhouette': k with the highest average silhouette width.
        - 'elbow': k with the largest second difference of WSS (the sharpest bend).

    Returns
    -------
    int
        The suggested number of clusters.
    """
    if method == "silhouette":
        valid = k_table.dropna(subset=["silhouette"])
        if valid.empty:
            raise ValueError("No silhouette values available to choose k.")
        return int(valid.loc[valid["silhouette"].idxmax(), "k"])

    if method == "elbow":
        table = k_table.sort_values("k").reset_index(drop=True)
        if len(table) < 3:
            raise ValueError("The elbow method needs at least three values of k.")
        second_diff = table["wss"].diff().diff().shift(-1)
        return int(table.loc[second_diff.idxmax(), "k"])

    raise ValueError(f"Unknown method '{method}'. Use 'silhouette' or 'elbow'.")


def compute_clustering_metrics(
        X: Union[np.ndarray, pd.DataFrame],
        labels: np.ndarray
) -> Dict[str, float]:
    """
    Computes internal validation indices for a partition.

    Returns
    -------
    Dict[str, float]
        'silhouette', 'davies_bouldin' and 'calinski_harabasz'.
    """
    n_labels = len(np.unique(labels))
    if n_labels < 2:
        raise ValueError("At least two clusters are required for validation metrics.")

    return {
        "silhouette": float(silhouette_score(X, labels)),
        "davies_bouldin": float(davies_bouldin_score(X, labels)),
        "calinski_harabasz": float(calinski_harabasz_score(X, labels)),
    }


def silhouette_table(
        X: Union[np.ndarray, pd.DataFrame],
        labels: np.ndarray,
        index: Optional[Iterable] = None,
) -> pd.DataFrame:
    """
    Per-observation silhouette widths with the nearest neighbouring cluster.

    Parameters
    ----------
    X : array-like
        Data the partition was computed on.
    labels : np.ndarray
        0-based cluster labels.
    index : iterable, optional
        Row labels for the result (e.g. city names).

    Returns
    -------
    pd.DataFrame
        Columns 'cluster', 'neighbor', 'sil_width' (clusters reported 1-based),
        sorted by cluster and decreasing width.
    """
    if isinstance(X, pd.DataFrame):
        X = X.values
    X = np.asarray(X, dtype=float)
    labels = np.asarray(labels)

    widths = silhouette_samples(X, labels)

    clusters = np.unique(labels)
    distances = euclidean_distances(X)
    mean_dist = np.column_stack([distances[:, labels == c].mean(axis=1) for c in clusters])
    # Exclude own cluster when looking for the neighbour
    own = np.searchsorted(clusters, labels)
    mean_dist[np.arange(len(labels)), own] = np.inf
    neighbor = clusters[np.argmin(mean_dist, axis=1)]

    table = pd.DataFrame({
        "cluster": labels + 1,
        "neighbor": neighbor + 1,
        "sil_width": widths,
    }, index=index)

    return table.sort_values(["cluster", "sil_width"], ascending=[True, False])


def summarize_clusters(
        data: pd.DataFrame,
        labels: np.ndarray,
        columns: Optional[Dict[str, str]] = None,
        decimals: int = 2,
) -> pd.DataFrame:
    """
    Mean value of selected variables per cluster.

    Parameters
    ----------
    data : pd.DataFrame
        The original (unstandardized) observation table.
    labels : np.ndarray
        0-based cluster labels, one per row of ``data``.
    columns : dict, optional
        Mapping of source column -> report header. Defaults to the rental
        variables in ``DEFAULT_SUMMARY_COLUMNS``.
    decimals : int, default=2
        Rounding of the means.

    Returns
    -------
    pd.DataFrame
        One row per cluster: 'Cluster', 'N' and one column per variable.
    """
    if columns is None:
        columns = DEFAULT_SUMMARY_COLUMNS
    if len(labels) != len(data):
        raise ValueError("labels must contain one entry per observation.")

    present = {}
    for col, header in columns.items():
        if col in data.columns:
            present[col] = header
        else:
            print(f"  [Warning] Column '{col}' not in data, left out of the cluster summary.")

    frame = data[list(present)].copy()
    frame["Cluster"] = np.asarray(labels) + 1

    grouped = frame.groupby("Cluster")
    summary = grouped.mean().round(decimals).rename(columns=present)
    summary.insert(0, "N", grouped.size())

    return summary.reset_index()
