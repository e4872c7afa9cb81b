"""
Diagnostic plots for the PCA, Factor Analysis and Clustering runners.

Every function draws one figure, saves it as PNG inside ``output_dir`` and
closes it. The returned value is the path of the saved file so the runners
can list their artifacts.
"""

import os
import numpy as np
import pandas as pd
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import seaborn as sns
from scipy.cluster.hierarchy import dendrogram
from scipy.spatial import ConvexHull, QhullError
from typing import Dict, Optional, Sequence


def _save(fig, output_dir: str, filename: str, dpi: int = 150) -> str:
    os.makedirs(output_dir, exist_ok=True)
    save_path = os.path.join(output_dir, filename)
    fig.tight_layout()
    fig.savefig(save_path, dpi=dpi)
    plt.close(fig)
    print(f"  [Saved] {filename}")
    return save_path


# ---------------------------------------------------------
# Data inspection
# ---------------------------------------------------------
def plot_series(df: pd.DataFrame, title: str, output_dir: str, filename: str) -> str:
    """
    Plots every column against the observation index (scale inspection).
    """
    fig, ax = plt.subplots(figsize=(12, 6))
    palette = sns.color_palette("hls", df.shape[1])
    for color, col in zip(palette, df.columns):
        ax.plot(np.arange(1, len(df) + 1), df[col].values, color=color, label=str(col))
    ax.set_title(title)
    ax.set_xlabel("Observation")
    ax.set_ylabel("Value")
    ax.legend(fontsize=7, ncol=2, loc="best")
    ax.grid(True, linestyle="--", alpha=0.3)
    return _save(fig, output_dir, filename)


def plot_correlation_matrix(df: pd.DataFrame, output_dir: str,
                            filename: str = "correlation_matrix.png") -> str:
    fig, ax = plt.subplots(figsize=(10, 8))
    sns.heatmap(df.corr(), annot=True, cmap="RdBu_r", vmin=-1, vmax=1, center=0,
                fmt=".2f", annot_kws={"fontsize": 7}, ax=ax)
    ax.set_title("Correlation Matrix")
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right", fontsize=7)
    plt.setp(ax.get_yticklabels(), fontsize=7)
    return _save(fig, output_dir, filename)


# ---------------------------------------------------------
# PCA
# ---------------------------------------------------------
def plot_scree(explained_variance_ratio: np.ndarray, output_dir: str,
               filename: str = "pca_scree.png",
               title: str = "Scree Plot: Variance Explained by Principal Components") -> str:
    """
    Bar chart of the percentage of variance explained per component, with labels.
    """
    percent = np.asarray(explained_variance_ratio) * 100
    names = [f"PC{i + 1}" for i in range(len(percent))]

    fig, ax = plt.subplots(figsize=(9, 5))
    bars = ax.bar(names, percent, color="steelblue", edgecolor="black")
    ax.plot(names, percent, color="black", marker="o")
    for bar, value in zip(bars, percent):
        ax.annotate(f"{value:.1f}%", (bar.get_x() + bar.get_width() / 2, value),
                    ha="center", va="bottom", fontsize=8, xytext=(0, 3),
                    textcoords="offset points")
    ax.set_ylim(0, max(50.0, percent.max() * 1.15))
    ax.set_title(title)
    ax.set_xlabel("Dimensions")
    ax.set_ylabel("Percentage of explained variance")
    return _save(fig, output_dir, filename)


def plot_biplot(scores: np.ndarray, loadings: np.ndarray, variables: Sequence[str],
                output_dir: str, filename: str = "pca_biplot.png",
                explained_variance_ratio: Optional[np.ndarray] = None) -> str:
    """
    Observations on PC1 vs PC2 with the variable loadings drawn as arrows.
    """
    scores = np.asarray(scores)
    loadings = np.asarray(loadings)

    fig, ax = plt.subplots(figsize=(10, 8))
    ax.scatter(scores[:, 0], scores[:, 1], s=15, alpha=0.6, color="grey")

    # Stretch arrows to the score cloud so both are readable
    scale = np.abs(scores[:, :2]).max() / max(np.abs(loadings[:, :2]).max(), 1e-12)
    for i, var in enumerate(variables):
        x, y = loadings[i, 0] * scale, loadings[i, 1] * scale
        ax.arrow(0, 0, x, y, color="firebrick", alpha=0.8, head_width=0.05 * scale / 4)
        ax.text(x * 1.08, y * 1.08, var, color="firebrick", fontsize=8, ha="center", va="center")

    xlabel, ylabel = "PC1", "PC2"
    if explained_variance_ratio is not None:
        xlabel += f" ({explained_variance_ratio[0] * 100:.1f}%)"
        ylabel += f" ({explained_variance_ratio[1] * 100:.1f}%)"
    ax.axhline(0, color="black", linewidth=0.5, linestyle="--")
    ax.axvline(0, color="black", linewidth=0.5, linestyle="--")
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.set_title("PCA Biplot: Variables on PC1 vs PC2")
    ax.grid(True, linestyle="--", alpha=0.3)
    return _save(fig, output_dir, filename)


# ---------------------------------------------------------
# Clustering
# ---------------------------------------------------------
def plot_elbow(k_table: pd.DataFrame, output_dir: str,
               filename: str = "cluster_elbow.png") -> str:
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.lineplot(data=k_table, x="k", y="wss", marker="o", ax=ax)
    ax.set_title("Elbow Method: Optimal Number of Clusters")
    ax.set_xlabel("Number of clusters k")
    ax.set_ylabel("Total within-cluster sum of squares")
    ax.grid(True)
    return _save(fig, output_dir, filename)


def plot_silhouette_by_k(k_table: pd.DataFrame, output_dir: str,
                         filename: str = "cluster_silhouette_k.png") -> str:
    valid = k_table.dropna(subset=["silhouette"])
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.lineplot(data=valid, x="k", y="silhouette", marker="o", ax=ax)
    if not valid.empty:
        best_k = valid.loc[valid["silhouette"].idxmax(), "k"]
        ax.axvline(best_k, color="grey", linestyle="--")
    ax.set_title("Silhouette Analysis: Optimal Number of Clusters")
    ax.set_xlabel("Number of clusters k")
    ax.set_ylabel("Average silhouette width")
    ax.grid(True)
    return _save(fig, output_dir, filename)


def plot_clusters(points: np.ndarray, labels: np.ndarray, output_dir: str,
                  filename: str = "cluster_pca_space.png",
                  title: str = "K-Means Clusters Projected into PCA Space",
                  axis_labels: Sequence[str] = ("PC1", "PC2"),
                  hulls: bool = True) -> str:
    """
    Scatter of the first two coordinates coloured by cluster, with convex hulls.
    """
    points = np.asarray(points)
    labels = np.asarray(labels)
    df_plot = pd.DataFrame({"x": points[:, 0], "y": points[:, 1], "Cluster": labels + 1})

    fig, ax = plt.subplots(figsize=(9, 7))
    palette = sns.color_palette("tab10", len(np.unique(labels)))
    sns.scatterplot(data=df_plot, x="x", y="y", hue="Cluster", palette=palette,
                    s=40, ax=ax, legend="full")

    if hulls:
        for color, cluster in zip(palette, np.unique(labels)):
            members = points[labels == cluster, :2]
            if len(members) < 3:
                continue
            try:
                hull = ConvexHull(members)
            except QhullError:
                # Collinear members have no 2D hull
                continue
            vertices = np.append(hull.vertices, hull.vertices[0])
            ax.fill(members[vertices, 0], members[vertices, 1], color=color, alpha=0.15)
            ax.plot(members[vertices, 0], members[vertices, 1], color=color, linewidth=1)

    ax.set_xlabel(axis_labels[0])
    ax.set_ylabel(axis_labels[1])
    ax.set_title(title)
    ax.grid(True, linestyle="--", alpha=0.3)
    return _save(fig, output_dir, filename)


def plot_silhouette(sil_table: pd.DataFrame, output_dir: str,
                    filename: str = "cluster_silhouette.png") -> str:
    """
    Silhouette widths as horizontal bars grouped by cluster.

    Parameters
    ----------
    sil_table : pd.DataFrame
        Output of ``silhouette_table`` (columns 'cluster', 'sil_width').
    """
    fig, ax = plt.subplots(figsize=(9, 6))
    clusters = sorted(sil_table["cluster"].unique())
    palette = sns.color_palette("tab10", len(clusters))

    y_lower = 0
    for color, cluster in zip(palette, clusters):
        widths = np.sort(sil_table.loc[sil_table["cluster"] == cluster, "sil_width"].values)[::-1]
        y = np.arange(y_lower, y_lower + len(widths))
        ax.barh(y, widths, color=color, height=1.0, label=f"Cluster {cluster}")
        y_lower += len(widths) + 2

    avg = sil_table["sil_width"].mean()
    ax.axvline(avg, color="red", linestyle="--", label=f"Average: {avg:.2f}")
    ax.set_yticks([])
    ax.set_xlabel("Silhouette width")
    ax.set_title("Silhouette Plot: Cluster Cohesion and Separation")
    ax.legend(fontsize=8, loc="best")
    return _save(fig, output_dir, filename)


def plot_dendrogram(linkage_matrix: np.ndarray, labels: Optional[Sequence[str]],
                    n_clusters: int, output_dir: str,
                    filename: str = "cluster_dendrogram.png", linkage: str = "ward") -> str:
    fig, ax = plt.subplots(figsize=(12, 6))
    # Cut height between the merges that leave n_clusters groups
    heights = np.sort(linkage_matrix[:, 2])
    threshold = None
    if 1 < n_clusters <= len(heights):
        threshold = (heights[-n_clusters] + heights[-n_clusters + 1]) / 2
    dendrogram(linkage_matrix, labels=None if labels is None else list(labels),
               color_threshold=threshold, leaf_rotation=90, leaf_font_size=7, ax=ax)
    if threshold is not None:
        ax.axhline(threshold, color="grey", linestyle="--")
    ax.set_title(f"Hierarchical Clustering Dendrogram ({linkage.capitalize()}, k={n_clusters})")
    ax.set_ylabel("Height")
    return _save(fig, output_dir, filename)


# ---------------------------------------------------------
# Factor Analysis
# ---------------------------------------------------------
def plot_parallel_analysis(pa_result: Dict[str, np.ndarray], output_dir: str,
                           filename: str = "fa_parallel_analysis.png") -> str:
    """
    Observed vs simulated eigenvalues for factors and components.
    """
    x = np.arange(1, len(pa_result["fa_actual"]) + 1)
    fig, ax = plt.subplots(figsize=(9, 6))
    ax.plot(x, pa_result["pc_actual"], marker="x", color="steelblue", label="PC Actual Data")
    ax.plot(x, pa_result["pc_simulated"], linestyle="--", color="steelblue", label="PC Simulated Data")
    ax.plot(x, pa_result["fa_actual"], marker="^", color="firebrick", label="FA Actual Data")
    ax.plot(x, pa_result["fa_simulated"], linestyle="--", color="firebrick", label="FA Simulated Data")
    ax.axhline(1.0, color="black", linewidth=0.5)
    ax.set_xlabel("Factor/Component Number")
    ax.set_ylabel("Eigen values of principal factors and components")
    ax.set_title(f"Parallel Analysis Scree Plots (suggested factors: {pa_result['n_factors']})")
    ax.legend(fontsize=8)
    ax.grid(True, linestyle="--", alpha=0.3)
    return _save(fig, output_dir, filename)


def plot_loadings_heatmap(loadings: pd.DataFrame, output_dir: str,
                          filename: str = "fa_loadings_heatmap.png",
                          title: str = "Factor Loadings") -> str:
    """
    Heatmap of a loadings table (first column 'Variable').
    """
    matrix = loadings.set_index("Variable")
    fig, ax = plt.subplots(figsize=(2 + 1.5 * matrix.shape[1], 0.5 * matrix.shape[0] + 2))
    sns.heatmap(matrix, annot=True, fmt=".2f", cmap="RdBu_r", vmin=-1, vmax=1, center=0, ax=ax)
    ax.set_title(title)
    return _save(fig, output_dir, filename)


def plot_factor_scores_2d(scores: pd.DataFrame, output_dir: str,
                          filename: str = "fa_scores_2d.png") -> str:
    fig, ax = plt.subplots(figsize=(8, 6))
    ax.scatter(scores.iloc[:, 0], scores.iloc[:, 1], color="blue", s=25)
    ax.set_title("Factor Score Plot")
    ax.set_xlabel("Factor 1")
    ax.set_ylabel("Factor 2")
    ax.grid(True)
    return _save(fig, output_dir, filename)


def plot_factor_scores_3d(scores: pd.DataFrame, output_dir: str,
                          filename: str = "fa_scores_3d.png") -> str:
    fig = plt.figure(figsize=(9, 7))
    ax = fig.add_subplot(111, projection="3d")
    ax.scatter(scores.iloc[:, 0], scores.iloc[:, 1], scores.iloc[:, 2], color="blue", s=20)
    ax.set_title("3D Factor Score Plot")
    ax.set_xlabel("Factor 1")
    ax.set_ylabel("Factor 2")
    ax.set_zlabel("Factor 3")
    return _save(fig, output_dir, filename)


def plot_loading_profile(loadings: pd.DataFrame, factor: str, rotation: str,
                         output_dir: str, filename: str) -> str:
    """
    Loadings of one factor across the variables, with a zero reference line.
    """
    fig, ax = plt.subplots(figsize=(9, 5))
    ax.scatter(np.arange(1, len(loadings) + 1), loadings[factor], color="blue", marker="D")
    ax.axhline(0, color="black")
    ax.set_xticks(np.arange(1, len(loadings) + 1))
    ax.set_xticklabels(loadings["Variable"], rotation=45, ha="right", fontsize=8)
    ax.set_xlabel("Variables")
    ax.set_ylabel("Value")
    ax.set_title(f"{rotation.capitalize()} Rotation: Loadings of Factor {factor}")
    return _save(fig, output_dir, filename)
