"""
FA Runner: Exploratory Factor Analysis of the rental dataset.

Steps
-----
1. Data import, missing value check and standardization (raw and
   standardized series are plotted for scale inspection).
2. Factorability: correlation heatmap, Bartlett's test, KMO (exported).
3. Number of factors by parallel analysis.
4. Maximum Likelihood FA with varimax rotation; loadings exported.
5. Model fit: likelihood-ratio chi-square and residual correlations.
6. Factor score plots (2D and 3D).
7. Communalities exported.
8. Comparison of rotations (varimax, promax, quartimax).
"""

import os
import pandas as pd
from typing import Any, Dict, Optional, Sequence, Union

from utils.parser import preprocess_observations
from algorithms.factor_analysis import (
    MaximumLikelihoodFA,
    check_factorability,
    compare_rotations,
    kmo_table,
    parallel_analysis,
)
from analysis.report_generator import export_table, list_artifacts
from analysis.visualization import (
    plot_correlation_matrix,
    plot_factor_scores_2d,
    plot_factor_scores_3d,
    plot_loading_profile,
    plot_loadings_heatmap,
    plot_parallel_analysis,
    plot_series,
)

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
FA_CONFIG = {
    "data_path": "rental.txt",
    "id_column": None,
    "output_directory": "results_fa",
    "n_factors": "auto",  # "auto" -> parallel analysis
    "rotation": "varimax",
    "n_iter": 100,
    "random_state": 123,
    "comparison_factors": 2,
    "comparison_rotations": ("promax", "quartimax"),
}


def run_factor_analysis(
        data_path: str,
        output_dir: str,
        id_column: Optional[str] = None,
        n_factors: Union[int, str] = "auto",
        rotation: str = "varimax",
        n_iter: int = 100,
        random_state: Optional[int] = 123,
        comparison_factors: int = 2,
        comparison_rotations: Sequence[str] = ("promax", "quartimax"),
) -> Dict[str, Any]:
    """
    Runs the factor analysis workflow and writes its plots and tables.

    Parameters
    ----------
    data_path : str
        Whitespace-delimited data file with a header row.
    output_dir : str
        Destination of plots and tables.
    id_column : str, optional
        Identifier column; the first column if None.
    n_factors : int or "auto", default="auto"
        Number of factors; "auto" uses the parallel analysis suggestion.
    rotation : str, default="varimax"
        Rotation of the main model.
    n_iter : int, default=100
        Simulations in the parallel analysis.
    random_state : int, optional
        Seed for the parallel analysis.
    comparison_factors : int, default=2
        Factors extracted for the rotation comparison.
    comparison_rotations : sequence of str
        Rotations compared against the main one.

    Returns
    -------
    dict
        'factorability', 'parallel', 'n_factors', 'model', 'loadings_table',
        'communality_table', 'fit', 'residuals', 'scores', 'rotations', 'artifacts'.
    """
    os.makedirs(output_dir, exist_ok=True)
    print(f"--- Factor Analysis on {data_path} ---")

    _, ids, numeric, scaled = preprocess_observations(data_path, id_column)

    plot_series(numeric, "Raw Variables", output_dir, "FA_Raw_Series.png")
    plot_series(scaled, "Standardized Variables", output_dir, "FA_Standardized_Series.png")

    # Step 1: Factorability
    plot_correlation_matrix(scaled, output_dir, "FA_Correlation_Matrix.png")
    factorability = check_factorability(scaled)
    print(f"  Bartlett chi2={factorability['bartlett_chi2']:.3f}, "
          f"df={factorability['bartlett_df']:.0f}, p={factorability['bartlett_p']:.3e}")
    print(f"  KMO (overall): {factorability['kmo']:.3f}")
    if factorability["kmo"] < 0.6:
        print("  [Warning] KMO below 0.6, the data may be poorly suited to FA.")
    export_table(kmo_table(factorability, scaled.columns),
                 "Kaiser-Meyer-Olkin (KMO) Test Results", output_dir, "KMO_result")

    # Step 2: Number of factors
    parallel = parallel_analysis(scaled, n_iter=n_iter, random_state=random_state, verbose=True)
    plot_parallel_analysis(parallel, output_dir, "FA_Parallel_Analysis.png")
    print(f"  Parallel analysis suggests {parallel['n_factors']} factor(s) "
          f"and {parallel['n_components']} component(s)")

    if n_factors == "auto":
        n_factors = parallel["n_factors"]
    n_factors = int(n_factors)

    # Step 3: Extraction and rotation
    print(f"  Extracting {n_factors} factor(s) by ML with {rotation} rotation...")
    fa = MaximumLikelihoodFA(n_factors=n_factors, rotation=rotation).fit(scaled)
    loadings_table = fa.loadings_table()
    print(loadings_table.to_string(index=False))
    export_table(loadings_table, "Factor Loadings", output_dir, "Factor_Loadings")
    export_table(fa.variance_table(), "Variance Explained by the Factors",
                 output_dir, "Factor_Variance")

    # Step 4: Interpretation
    plot_loadings_heatmap(loadings_table, output_dir, "FA_Loadings_Heatmap.png",
                          title=f"Factor Loadings ({rotation})")

    # Step 5: Model fit
    fit = fa.goodness_of_fit()
    print(f"  Chi-square={fit['chi_square']:.3f}, df={fit['dof']:.0f}, p={fit['p_value']:.4f}")
    residuals = fa.residual_correlations()
    residuals.round(4).to_csv(os.path.join(output_dir, "FA_Residuals.csv"))
    fit_table = pd.DataFrame({
        "Statistic": ["Chi_Square", "Degrees_of_Freedom", "P_Value", "Max_Abs_Residual"],
        "Value": [round(fit["chi_square"], 4), fit["dof"], round(fit["p_value"], 4),
                  round(float(residuals.abs().values.max()), 4)],
    })
    export_table(fit_table, "Factor Model Goodness of Fit", output_dir, "FA_Model_Fit")

    # Step 6: Factor scores
    scores = fa.scores_frame(scaled)
    if n_factors >= 2:
        plot_factor_scores_2d(scores, output_dir, "FA_Scores_2D.png")
    if n_factors >= 3:
        plot_factor_scores_3d(scores, output_dir, "FA_Scores_3D.png")
    scores.insert(0, ids.name, ids.values)
    scores.to_csv(os.path.join(output_dir, "FA_Scores.csv"), index=False)

    # Step 7: Communalities
    communality_table = fa.communality_table()
    export_table(communality_table, "Communality Values", output_dir, "Communality_Table")

    # Step 8: Rotation comparison
    main_names = fa.factor_names[:2]
    for factor in main_names:
        plot_loading_profile(loadings_table, factor, rotation, output_dir,
                             f"FA_{rotation}_{factor}.png")

    rotations = {}
    if scaled.shape[1] > comparison_factors and comparison_rotations:
        rotations = compare_rotations(scaled, n_factors=comparison_factors,
                                      rotations=comparison_rotations)
        for name, table in rotations.items():
            for factor in table.columns[1:3]:
                plot_loading_profile(table, factor, name, output_dir, f"FA_{name}_{factor}.png")
            table.to_csv(os.path.join(output_dir, f"FA_Loadings_{name}.csv"), index=False)
    else:
        print("  [Warning] Too few variables for the rotation comparison, skipped.")

    return {
        "factorability": factorability,
        "parallel": parallel,
        "n_factors": n_factors,
        "model": fa,
        "loadings_table": loadings_table,
        "communality_table": communality_table,
        "fit": fit,
        "residuals": residuals,
        "scores": scores,
        "rotations": rotations,
        "artifacts": list_artifacts(output_dir),
    }


def main():
    run_factor_analysis(
        FA_CONFIG["data_path"],
        FA_CONFIG["output_directory"],
        id_column=FA_CONFIG["id_column"],
        n_factors=FA_CONFIG["n_factors"],
        rotation=FA_CONFIG["rotation"],
        n_iter=FA_CONFIG["n_iter"],
        random_state=FA_CONFIG["random_state"],
        comparison_factors=FA_CONFIG["comparison_factors"],
        comparison_rotations=FA_CONFIG["comparison_rotations"],
    )


if __name__ == "__main__":
    main()
