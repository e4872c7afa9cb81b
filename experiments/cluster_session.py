"""
Cluster Runner: PCA, K-Means Clustering and Factor Analysis view.

This script segments the rental observations. It performs the following:
1. Loads and standardizes the data.
2. Runs PCA and keeps the first three component scores for clustering.
3. Chooses the number of clusters (Elbow and Silhouette sweeps).
4. Runs K-Means (25 restarts, fixed seed) and attaches the labels to the data.
5. Exports a table of cluster means on the original variables.
6. Shows cluster membership in the space of the first two ML factors.
7. Validates the partition with silhouette widths.
8. Builds a Ward hierarchical clustering of the same scores for comparison.
"""

import os
import pandas as pd
from typing import Any, Dict, Iterable, Optional, Union

from utils.parser import preprocess_observations
from utils.clustering_metrics import (
    DEFAULT_SUMMARY_COLUMNS,
    compute_clustering_metrics,
    evaluate_k_range,
    silhouette_table,
    suggest_n_clusters,
    summarize_clusters,
)
from algorithms.pca import PCA
from algorithms.kmeans import KMeans
from algorithms.agg_clustering import run_agglomerative_once
from algorithms.factor_analysis import MaximumLikelihoodFA, parallel_analysis
from analysis.report_generator import export_table, list_artifacts
from analysis.visualization import (
    plot_clusters,
    plot_dendrogram,
    plot_elbow,
    plot_scree,
    plot_silhouette,
    plot_silhouette_by_k,
)

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
CLUSTER_CONFIG = {
    "data_path": "rental.txt",
    "id_column": None,
    "output_directory": "results_cluster",
    "n_components": 3,  # PCA scores kept for clustering
    "k_values": list(range(1, 11)),
    "n_clusters": 3,  # or "auto" -> best silhouette
    "n_init": 25,
    "random_state": 123,
    "fa_iter": 100,
    "linkage": "ward",
}


def run_cluster_analysis(
        data_path: str,
        output_dir: str,
        id_column: Optional[str] = None,
        n_components: int = 3,
        k_values: Iterable[int] = range(1, 11),
        n_clusters: Union[int, str] = 3,
        n_init: int = 25,
        random_state: Optional[int] = 123,
        fa_iter: int = 100,
        linkage: str = "ward",
        summary_columns: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Runs the clustering workflow and writes its plots and tables.

    Parameters
    ----------
    data_path : str
        Whitespace-delimited data file with a header row.
    output_dir : str
        Destination of plots and tables.
    id_column : str, optional
        Identifier column; the first column if None.
    n_components : int, default=3
        PCA scores used as clustering input (capped at the number of variables).
    k_values : iterable of int
        Cluster counts tried in the Elbow / Silhouette sweeps.
    n_clusters : int or "auto", default=3
        Final number of clusters; "auto" takes the best average silhouette.
    n_init : int, default=25
        K-Means restarts.
    random_state : int, optional
        Seed for K-Means and the parallel analysis.
    fa_iter : int, default=100
        Simulations in the parallel analysis for the factor view.
    linkage : str, default="ward"
        Linkage of the hierarchical comparison.
    summary_columns : dict, optional
        Source column -> header for the cluster summary table.

    Returns
    -------
    dict
        'data' (with 'Cluster'), 'labels', 'n_clusters', 'k_table', 'model',
        'pca_scores', 'summary', 'silhouette', 'metrics', 'fa_scores',
        'hierarchical_labels', 'agreement', 'artifacts'.
    """
    os.makedirs(output_dir, exist_ok=True)
    print(f"--- Cluster Analysis on {data_path} ---")

    data, ids, numeric, scaled = preprocess_observations(data_path, id_column)
    data = data.copy()

    # PCA
    pca = PCA()
    pca.fit(scaled)
    n_keep = min(n_components, scaled.shape[1])
    pca_scores = pca.scores_frame(scaled, n_components=n_keep)
    plot_scree(pca.explained_variance_ratio, output_dir, "Cluster_PCA_Scree.png")

    # Optimal cluster selection
    k_table = evaluate_k_range(pca_scores, k_values=k_values, n_init=n_init,
                               random_state=random_state, verbose=True)
    plot_elbow(k_table, output_dir, "Cluster_Elbow.png")
    plot_silhouette_by_k(k_table, output_dir, "Cluster_Silhouette_K.png")
    k_table.round(4).to_csv(os.path.join(output_dir, "Cluster_K_Selection.csv"), index=False)

    if k_table["silhouette"].notna().any():
        print(f"  Silhouette suggests k={suggest_n_clusters(k_table, method='silhouette')}")
    if len(k_table) >= 3:
        print(f"  Elbow suggests k={suggest_n_clusters(k_table, method='elbow')}")
    if n_clusters == "auto":
        n_clusters = suggest_n_clusters(k_table, method="silhouette")
    n_clusters = int(n_clusters)

    # K-Means
    print(f"  Running K-Means with k={n_clusters} ({n_init} restarts)...")
    kmeans = KMeans(n_clusters=n_clusters, n_init=n_init, random_state=random_state)
    labels = kmeans.fit_predict(pca_scores)
    data["Cluster"] = labels + 1

    axis = [f"PC1 ({pca.explained_variance_ratio[0] * 100:.1f}%)"]
    if n_keep >= 2:
        axis.append(f"PC2 ({pca.explained_variance_ratio[1] * 100:.1f}%)")
        plot_clusters(pca_scores.values, labels, output_dir, "Cluster_PCA_Space.png",
                      axis_labels=axis)

    assignments = pd.DataFrame({ids.name: ids.values, "Cluster": labels + 1})
    assignments.to_csv(os.path.join(output_dir, "Cluster_Assignments.csv"), index=False)

    # Summary table
    summary = summarize_clusters(data, labels, summary_columns or DEFAULT_SUMMARY_COLUMNS)
    print(summary.to_string(index=False))
    export_table(summary, "Table 1: Cluster Descriptive Statistics", output_dir,
                 "Cluster_Descriptions")

    # Factor Analysis view
    fa_scores = None
    parallel = parallel_analysis(scaled, n_iter=fa_iter, random_state=random_state)
    n_factors = parallel["n_factors"]
    if n_factors < scaled.shape[1]:
        fa = MaximumLikelihoodFA(n_factors=n_factors, rotation="varimax").fit(scaled)
        fa_scores = fa.scores_frame(scaled)
        fa_scores["Cluster"] = labels + 1
        if n_factors >= 2:
            plot_clusters(fa_scores[["ML1", "ML2"]].values, labels, output_dir,
                          "Cluster_FA_Space.png",
                          title="Cluster Membership in Factor Analysis Space",
                          axis_labels=("ML1", "ML2"), hulls=False)
        else:
            print("  [Warning] Single factor retained, skipping the factor space plot.")
    else:
        print("  [Warning] Too many factors suggested for the variables, skipping the factor view.")

    # Validation
    metrics = {}
    sil = None
    if 2 <= n_clusters < len(labels):
        sil = silhouette_table(pca_scores, labels, index=ids.values)
        plot_silhouette(sil, output_dir, "Cluster_Silhouette.png")
        sil.round(4).to_csv(os.path.join(output_dir, "Cluster_Silhouette.csv"))
        metrics = compute_clustering_metrics(pca_scores, labels)
        print(f"  Average silhouette width: {metrics['silhouette']:.3f}")
    else:
        print("  [Warning] Silhouette needs 2 <= k < n, validation skipped.")

    # Hierarchical comparison
    hierarchical = run_agglomerative_once(pca_scores.values, n_clusters, linkage=linkage)
    plot_dendrogram(hierarchical["linkage_matrix"], [str(i) for i in ids.values],
                    n_clusters, output_dir, "Cluster_Dendrogram.png", linkage=linkage)
    agreement = pd.crosstab(pd.Series(labels + 1, name="KMeans"),
                            pd.Series(hierarchical["labels"] + 1, name="Hierarchical"))
    agreement.to_csv(os.path.join(output_dir, "Cluster_Agreement.csv"))

    return {
        "data": data,
        "labels": labels,
        "n_clusters": n_clusters,
        "k_table": k_table,
        "model": kmeans,
        "pca_scores": pca_scores,
        "summary": summary,
        "silhouette": sil,
        "metrics": metrics,
        "fa_scores": fa_scores,
        "hierarchical_labels": hierarchical["labels"],
        "agreement": agreement,
        "artifacts": list_artifacts(output_dir),
    }


def main():
    run_cluster_analysis(
        CLUSTER_CONFIG["data_path"],
        CLUSTER_CONFIG["output_directory"],
        id_column=CLUSTER_CONFIG["id_column"],
        n_components=CLUSTER_CONFIG["n_components"],
        k_values=CLUSTER_CONFIG["k_values"],
        n_clusters=CLUSTER_CONFIG["n_clusters"],
        n_init=CLUSTER_CONFIG["n_init"],
        random_state=CLUSTER_CONFIG["random_state"],
        fa_iter=CLUSTER_CONFIG["fa_iter"],
        linkage=CLUSTER_CONFIG["linkage"],
    )


if __name__ == "__main__":
    main()
