"""
PCA Runner: Principal Component Analysis of the rental dataset.

This script performs the following:
1. Loads the data, drops the city identifier and checks for missing values.
2. Standardizes the variables to zero mean and unit variance.
3. Computes the principal components and prints the variance summary.
4. Draws the scree plot and exports the explained / cumulative variance table.
5. Exports the loadings of the first three components.
6. Draws a biplot of the observations and variables on PC1 vs PC2.
"""

import os
from typing import Any, Dict, Optional

from utils.parser import preprocess_observations
from algorithms.pca import PCA
from analysis.report_generator import export_table, list_artifacts
from analysis.visualization import plot_scree, plot_biplot

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
PCA_CONFIG = {
    "data_path": "rental.txt",
    "id_column": None,  # None -> first column
    "output_directory": "results_pca",
    "n_loadings": 3,
}


def run_pca_analysis(
        data_path: str,
        output_dir: str,
        id_column: Optional[str] = None,
        n_loadings: int = 3,
        verbose: bool = False,
) -> Dict[str, Any]:
    """
    Runs the PCA workflow and writes its plots and tables to ``output_dir``.

    Parameters
    ----------
    data_path : str
        Whitespace-delimited data file with a header row.
    output_dir : str
        Destination of plots and tables.
    id_column : str, optional
        Identifier column; the first column if None.
    n_loadings : int, default=3
        Number of leading components in the loadings table.
    verbose : bool, default=False
        Print the covariance matrix and eigenvalues.

    Returns
    -------
    dict
        'model', 'scores', 'variance_table', 'loadings_table', 'artifacts'.
    """
    os.makedirs(output_dir, exist_ok=True)
    print(f"--- PCA on {data_path} ---")

    _, ids, numeric, scaled = preprocess_observations(data_path, id_column)
    print(f"  {numeric.shape[0]} observations, {numeric.shape[1]} variables")

    pca = PCA(verbose=verbose)
    pca.fit(scaled)
    scores = pca.scores_frame(scaled)

    variance_table = pca.variance_table()
    print("\nPCA Summary:")
    print(variance_table.to_string(index=False))

    plot_scree(pca.explained_variance_ratio, output_dir, "PCA_Scree.png",
               title="Scree Plot of PCA")
    export_table(variance_table,
                 "Explained and Cumulative Variance by Principal Components",
                 output_dir, "PCA_Variance")

    loadings_table = pca.loadings_table(n_components=n_loadings)
    n_shown = loadings_table.shape[1] - 1
    export_table(loadings_table,
                 f"PCA Loadings for First {n_shown} Components",
                 output_dir, "PCA_Loadings")

    if scores.shape[1] >= 2:
        plot_biplot(scores.values, pca.components, pca.feature_names, output_dir,
                    "PCA_Biplot.png", pca.explained_variance_ratio)
    else:
        print("  [Warning] < 2 components, skipping biplot.")

    scores.insert(0, ids.name, ids.values)

    return {
        "model": pca,
        "scores": scores,
        "variance_table": variance_table,
        "loadings_table": loadings_table,
        "artifacts": list_artifacts(output_dir),
    }


def main():
    run_pca_analysis(
        PCA_CONFIG["data_path"],
        PCA_CONFIG["output_directory"],
        id_column=PCA_CONFIG["id_column"],
        n_loadings=PCA_CONFIG["n_loadings"],
        verbose=True,
    )


if __name__ == "__main__":
    main()
