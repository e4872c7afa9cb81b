import os

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from analysis import visualization
from algorithms.agg_clustering import run_agglomerative_once
from analysis.visualization import (
    plot_clusters,
    plot_dendrogram,
    plot_elbow,
    plot_loading_profile,
    plot_scree,
    plot_silhouette,
)
from utils.clustering_metrics import silhouette_table


def test_plot_scree_saves_png(tmp_path):
    path = plot_scree(np.array([0.6, 0.3, 0.1]), str(tmp_path), "scree.png")
    assert os.path.isfile(path)
    assert path.endswith("scree.png")


def test_plot_clusters_with_degenerate_hull(tmp_path, blobs):
    X, y = blobs
    # Collinear members cannot form a hull and must not break the plot
    X = X.copy()
    X[y == 0, 1] = 0.0
    path = plot_clusters(X, y, str(tmp_path), "clusters.png")
    assert os.path.isfile(path)


def test_plot_silhouette_and_elbow(tmp_path, blobs):
    X, y = blobs
    assert os.path.isfile(plot_silhouette(silhouette_table(X, y), str(tmp_path), "sil.png"))

    k_table = pd.DataFrame({"k": [1, 2, 3], "wss": [10.0, 5.0, 1.0],
                            "silhouette": [np.nan, 0.5, 0.8]})
    assert os.path.isfile(plot_elbow(k_table, str(tmp_path), "elbow.png"))


def test_plot_dendrogram(tmp_path, blobs):
    X, _ = blobs
    result = run_agglomerative_once(X, n_clusters=3)
    names = [f"c{i}" for i in range(len(X))]
    assert os.path.isfile(plot_dendrogram(result["linkage_matrix"], names, 3,
                                          str(tmp_path), "tree.png"))


def test_plot_loading_profile(tmp_path):
    loadings = pd.DataFrame({"Variable": ["a", "b", "c"], "ML1": [0.9, -0.2, 0.4]})
    path = plot_loading_profile(loadings, "ML1", "varimax", str(tmp_path), "profile.png")
    assert os.path.isfile(path)


def test_plot_dendrogram_titles_the_linkage(tmp_path, blobs, monkeypatch):
    X, _ = blobs
    titles = []

    def capture(fig, output_dir, filename, dpi=150):
        titles.append(fig.axes[0].get_title())
        plt.close(fig)
        return filename

    monkeypatch.setattr(visualization, "_save", capture)
    result = run_agglomerative_once(X, n_clusters=3, linkage="average")
    visualization.plot_dendrogram(result["linkage_matrix"], None, 3, str(tmp_path),
                                  "tree.png", linkage="average")
    assert titles == ["Hierarchical Clustering Dendrogram (Average, k=3)"]
