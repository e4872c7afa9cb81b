import numpy as np
import pandas as pd
import pytest

from utils.clustering_metrics import (
    compute_clustering_metrics,
    evaluate_k_range,
    silhouette_table,
    suggest_n_clusters,
    summarize_clusters,
)


def test_evaluate_k_range_layout(blobs):
    X, _ = blobs
    table = evaluate_k_range(X, k_values=range(1, 6), n_init=5, random_state=0)

    assert list(table.columns) == ["k", "wss", "silhouette"]
    assert list(table["k"]) == [1, 2, 3, 4, 5]
    assert np.isnan(table.loc[0, "silhouette"])
    assert table["silhouette"].iloc[1:].notna().all()


def test_evaluate_k_range_skips_impossible_k():
    X = np.random.RandomState(0).normal(size=(4, 2))
    table = evaluate_k_range(X, k_values=[1, 2, 10], n_init=2, random_state=0)
    assert list(table["k"]) == [1, 2]


def test_silhouette_suggests_three_blobs(blobs):
    X, _ = blobs
    table = evaluate_k_range(X, k_values=range(1, 8), n_init=10, random_state=123)
    assert suggest_n_clusters(table, method="silhouette") == 3


def test_elbow_picks_sharpest_bend():
    table = pd.DataFrame({
        "k": [1, 2, 3, 4, 5],
        "wss": [1000.0, 500.0, 100.0, 90.0, 85.0],
        "silhouette": [np.nan, 0.4, 0.7, 0.5, 0.4],
    })
    assert suggest_n_clusters(table, method="elbow") == 3
    assert suggest_n_clusters(table, method="silhouette") == 3


def test_suggest_rejects_unknown_method():
    table = pd.DataFrame({"k": [1, 2, 3], "wss": [3.0, 2.0, 1.0], "silhouette": [np.nan, 0.1, 0.2]})
    with pytest.raises(ValueError):
        suggest_n_clusters(table, method="gap")


def test_compute_clustering_metrics(blobs):
    X, y = blobs
    metrics = compute_clustering_metrics(X, y)

    assert set(metrics) == {"silhouette", "davies_bouldin", "calinski_harabasz"}
    assert metrics["silhouette"] > 0.8


def test_compute_clustering_metrics_needs_two_clusters(blobs):
    X, _ = blobs
    with pytest.raises(ValueError):
        compute_clustering_metrics(X, np.zeros(len(X), dtype=int))


def test_silhouette_table(blobs):
    X, y = blobs
    table = silhouette_table(X, y)

    assert len(table) == len(X)
    assert set(table["cluster"]) == {1, 2, 3}
    assert (table["cluster"] != table["neighbor"]).all()
    for _, group in table.groupby("cluster"):
        assert group["sil_width"].is_monotonic_decreasing


def test_summarize_clusters(rental_frame):
    labels = np.repeat([0, 1, 2], 20)
    summary = summarize_clusters(rental_frame, labels)

    assert list(summary["Cluster"]) == [1, 2, 3]
    assert list(summary["N"]) == [20, 20, 20]
    assert "Avg_Rent" in summary.columns
    expected = round(rental_frame["rent"][:20].mean(), 2)
    assert summary.loc[0, "Avg_Rent"] == pytest.approx(expected)


def test_summarize_clusters_skips_absent_columns(rental_frame):
    labels = np.repeat([0, 1], 30)
    summary = summarize_clusters(rental_frame, labels, columns={"rent": "Avg_Rent", "beds": "Avg_Beds"})
    assert "Avg_Beds" not in summary.columns
    assert list(summary.columns) == ["Cluster", "N", "Avg_Rent"]


def test_summarize_clusters_checks_length(rental_frame):
    with pytest.raises(ValueError):
        summarize_clusters(rental_frame, np.zeros(3, dtype=int))
