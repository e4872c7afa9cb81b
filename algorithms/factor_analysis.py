"""
Exploratory Factor Analysis (FA).

This module wraps the ``factor_analyzer`` package to run the factor analysis
workflow on the standardized rental table:

1. Suitability diagnostics (Bartlett's test of sphericity, KMO).
2. Parallel analysis to determine the number of factors.
3. Maximum Likelihood extraction with an orthogonal or oblique rotation.
4. Model fit evaluation (likelihood-ratio chi-square, residual correlations).
5. Loadings, communalities and regression factor scores for reporting.

References
----------
[1] Horn, J.L., "A rationale and test for the number of factors in factor
    analysis", 1965, Psychometrika, 30(2): 179-185.
[2] Kaiser, H.F., "An index of factorial simplicity", 1974, Psychometrika,
    39(1): 31-36.
[3] Lawley, D.N., Maxwell, A.E., "Factor Analysis as a Statistical Method",
    1971, Butterworths, London.
"""

import numpy as np
import pandas as pd
from scipy import stats
from tqdm import tqdm
from factor_analyzer import (
    FactorAnalyzer,
    calculate_bartlett_sphericity,
    calculate_kmo,
)
from typing import Any, Dict, List, Optional, Sequence, Union

VALID_ROTATIONS = ("varimax", "promax", "quartimax", "oblimin", "none")

ArrayLike = Union[np.ndarray, pd.DataFrame]


def _as_array(X: ArrayLike) -> np.ndarray:
    if isinstance(X, pd.DataFrame):
        return X.values.astype(float)
    return np.asarray(X, dtype=float)


def _variable_names(X: ArrayLike) -> List[str]:
    if isinstance(X, pd.DataFrame):
        return [str(c) for c in X.columns]
    return [f"X{i + 1}" for i in range(np.asarray(X).shape[1])]


# ---------------------------------------------------------
# Step 1: Factorability
# ---------------------------------------------------------
def check_factorability(X: ArrayLike) -> Dict[str, Any]:
    """
    Checks whether the data are suitable for factor analysis.

    Bartlett's test of sphericity tests whether the correlation matrix is an
    identity matrix (a significant p-value indicates FA is appropriate). The
    Kaiser-Meyer-Olkin measure summarises sampling adequacy (KMO > 0.6 is
    usually considered acceptable).

    Parameters
    ----------
    X : array-like
        Standardized data of shape (n_samples, n_features).

    Returns
    -------
    dict
        'bartlett_chi2', 'bartlett_df', 'bartlett_p', 'kmo' (overall) and
        'kmo_per_item' (per-variable MSA).
    """
    data = _as_array(X)
    n_vars = data.shape[1]

    chi_square, p_value = calculate_bartlett_sphericity(data)
    kmo_per_item, kmo_model = calculate_kmo(data)

    return {
        "bartlett_chi2": float(chi_square),
        "bartlett_df": n_vars * (n_vars - 1) / 2,
        "bartlett_p": float(p_value),
        "kmo": float(kmo_model),
        "kmo_per_item": np.asarray(kmo_per_item, dtype=float),
    }


def kmo_table(factorability: Dict[str, Any], variables: Sequence[str],
              decimals: int = 4) -> pd.DataFrame:
    """
    KMO results as a table: overall MSA first, then one row per variable.
    """
    return pd.DataFrame({
        "Variable": ["Overall MSA"] + list(variables),
        "MSA_Value": np.round(
            np.concatenate([[factorability["kmo"]], factorability["kmo_per_item"]]), decimals
        ),
    })


# ---------------------------------------------------------
# Step 2: Number of factors
# ---------------------------------------------------------
def _smc(corr: np.ndarray) -> np.ndarray:
    """Squared multiple correlations of each variable with all others."""
    return 1.0 - 1.0 / np.diag(np.linalg.inv(corr))


def _sorted_eigenvalues(corr: np.ndarray, reduced: bool) -> np.ndarray:
    if reduced:
        corr = corr.copy()
        np.fill_diagonal(corr, _smc(corr))
    return np.sort(np.linalg.eigvalsh(corr))[::-1]


def _count_leading(actual: np.ndarray, simulated: np.ndarray) -> int:
    exceeds = actual > simulated
    n = len(exceeds) if exceeds.all() else int(np.argmin(exceeds))
    return max(n, 1)


def parallel_analysis(
        X: ArrayLike,
        n_iter: int = 100,
        random_state: Optional[int] = 123,
        quantile: Optional[float] = None,
        verbose: bool = False,
) -> Dict[str, Any]:
    """
    Parallel analysis for determining the number of factors and components.

    Observed eigenvalues are compared with eigenvalues of random
    standard-normal data of the same shape. Factor eigenvalues come from the
    reduced correlation matrix (squared multiple correlations on the
    diagonal), component eigenvalues from the full correlation matrix. The
    suggested count is the number of leading observed eigenvalues larger than
    their simulated counterparts.

    Parameters
    ----------
    X : array-like
        Data of shape (n_samples, n_features).
    n_iter : int, default=100
        Number of simulated datasets.
    random_state : int, optional
        Seed for the simulations.
    quantile : float, optional
        If given (e.g. 0.95), compare against this quantile of the simulated
        eigenvalues instead of their mean.
    verbose : bool, default=False
        Show a progress bar over the simulations.

    Returns
    -------
    dict
        'fa_actual', 'fa_simulated', 'pc_actual', 'pc_simulated',
        'n_factors', 'n_components'.
    """
    data = _as_array(X)
    n_obs, n_vars = data.shape
    if n_iter < 1:
        raise ValueError(f"n_iter must be >= 1, got {n_iter}.")

    corr = np.corrcoef(data, rowvar=False)
    fa_actual = _sorted_eigenvalues(corr, reduced=True)
    pc_actual = _sorted_eigenvalues(corr, reduced=False)

    rng = np.random.RandomState(random_state)
    fa_sims = np.zeros((n_iter, n_vars))
    pc_sims = np.zeros((n_iter, n_vars))

    for i in tqdm(range(n_iter), desc="Parallel analysis", unit="sim", disable=not verbose):
        random_corr = np.corrcoef(rng.normal(size=(n_obs, n_vars)), rowvar=False)
        fa_sims[i] = _sorted_eigenvalues(random_corr, reduced=True)
        pc_sims[i] = _sorted_eigenvalues(random_corr, reduced=False)

    if quantile is None:
        fa_simulated = fa_sims.mean(axis=0)
        pc_simulated = pc_sims.mean(axis=0)
    else:
        fa_simulated = np.quantile(fa_sims, quantile, axis=0)
        pc_simulated = np.quantile(pc_sims, quantile, axis=0)

    return {
        "fa_actual": fa_actual,
        "fa_simulated": fa_simulated,
        "pc_actual": pc_actual,
        "pc_simulated": pc_simulated,
        "n_factors": _count_leading(fa_actual, fa_simulated),
        "n_components": _count_leading(pc_actual, pc_simulated),
    }


# ---------------------------------------------------------
# Step 3-5: Extraction, fit and scores
# ---------------------------------------------------------
class MaximumLikelihoodFA:
    """
    Maximum Likelihood Factor Analysis with rotation.

    Parameters
    ----------
    n_factors : int
        Number of common factors to extract.
    rotation : str, default='varimax'
        One of 'varimax', 'promax', 'quartimax', 'oblimin' or 'none'.
        A single-factor solution is always left unrotated.
    method : str, default='ml'
        Extraction method passed to ``factor_analyzer``.
    """

    def __init__(self, n_factors: int, rotation: str = "varimax", method: str = "ml"):
        if n_factors < 1:
            raise ValueError(f"n_factors must be >= 1, got {n_factors}.")
        if rotation not in VALID_ROTATIONS:
            raise ValueError(f"Rotation '{rotation}' not supported. Use one of {VALID_ROTATIONS}.")

        self.n_factors = n_factors
        self.rotation = rotation
        self.method = method
        self.model = None
        self.variables: List[str] = []
        self.n_obs = None

    @property
    def factor_names(self) -> List[str]:
        return [f"ML{i + 1}" for i in range(self.n_factors)]

    def fit(self, X: ArrayLike):
        """
        Fits the factor model.

        Parameters
        ----------
        X : array-like
            Standardized data of shape (n_samples, n_features).

        Returns
        -------
        self
        """
        data = _as_array(X)
        self.variables = _variable_names(X)
        self.n_obs = data.shape[0]

        if self.n_factors >= data.shape[1]:
            raise ValueError(
                f"n_factors={self.n_factors} must be smaller than the number of variables ({data.shape[1]})."
            )

        rotation = None if self.rotation == "none" or self.n_factors == 1 else self.rotation
        self.model = FactorAnalyzer(n_factors=self.n_factors, rotation=rotation, method=self.method)
        self.model.fit(data)

        return self

    def _check_fitted(self):
        if self.model is None:
            raise ValueError("Factor model has not been fitted yet. Call fit() first.")

    @property
    def loadings(self) -> np.ndarray:
        self._check_fitted()
        return self.model.loadings_

    @property
    def communalities(self) -> np.ndarray:
        self._check_fitted()
        return self.model.get_communalities()

    @property
    def uniquenesses(self) -> np.ndarray:
        self._check_fitted()
        return self.model.get_uniquenesses()

    def transform(self, X: ArrayLike) -> np.ndarray:
        """Regression (Thurstone) factor scores."""
        self._check_fitted()
        return self.model.transform(_as_array(X))

    def scores_frame(self, X: ArrayLike) -> pd.DataFrame:
        index = X.index if isinstance(X, pd.DataFrame) else None
        return pd.DataFrame(self.transform(X), columns=self.factor_names, index=index)

    def loadings_table(self, decimals: int = 4) -> pd.DataFrame:
        table = pd.DataFrame({"Variable": self.variables})
        for i, name in enumerate(self.factor_names):
            table[name] = np.round(self.loadings[:, i], decimals)
        return table

    def communality_table(self, decimals: int = 4) -> pd.DataFrame:
        return pd.DataFrame({
            "Variable": self.variables,
            "Communality": np.round(self.communalities, decimals),
            "Uniqueness": np.round(self.uniquenesses, decimals),
        })

    def variance_table(self, decimals: int = 4) -> pd.DataFrame:
        """Sum of squared loadings, proportion and cumulative variance per factor."""
        self._check_fitted()
        ss_loadings, proportion, cumulative = self.model.get_factor_variance()
        return pd.DataFrame({
            "Factor": self.factor_names,
            "SS_Loadings": np.round(ss_loadings, decimals),
            "Proportion_Var": np.round(proportion, decimals),
            "Cumulative_Var": np.round(cumulative, decimals),
        })

    def reproduced_correlations(self) -> np.ndarray:
        """
        Model-implied correlation matrix L Phi L' + Psi (unit diagonal).
        """
        self._check_fitted()
        loadings = self.model.loadings_
        phi = getattr(self.model, "phi_", None)
        if phi is None:
            common = loadings @ loadings.T
        else:
            common = loadings @ phi @ loadings.T
        reproduced = common.copy()
        np.fill_diagonal(reproduced, 1.0)
        return reproduced

    def residual_correlations(self) -> pd.DataFrame:
        """Observed minus reproduced correlations (should be small)."""
        residuals = self.model.corr_ - self.reproduced_correlations()
        return pd.DataFrame(residuals, index=self.variables, columns=self.variables)

    def goodness_of_fit(self) -> Dict[str, float]:
        """
        Likelihood-ratio test that the factors reproduce the correlation matrix.

        Uses Bartlett's correction of the sample size; a non-significant
        p-value indicates adequate fit. The p-value is NaN when the model has
        no degrees of freedom left.
        """
        self._check_fitted()
        corr = self.model.corr_
        sigma = self.reproduced_correlations()
        p = corr.shape[0]
        m = self.n_factors

        _, logdet_sigma = np.linalg.slogdet(sigma)
        _, logdet_corr = np.linalg.slogdet(corr)
        objective = logdet_sigma - logdet_corr + np.trace(corr @ np.linalg.inv(sigma)) - p

        multiplier = self.n_obs - 1 - (2 * p + 5) / 6 - 2 * m / 3
        statistic = multiplier * objective
        dof = ((p - m) ** 2 - (p + m)) / 2
        p_value = float(stats.chi2.sf(statistic, dof)) if dof > 0 else float("nan")

        return {
            "chi_square": float(statistic),
            "dof": float(dof),
            "p_value": p_value,
            "objective": float(objective),
        }


def compare_rotations(
        X: ArrayLike,
        n_factors: int = 2,
        rotations: Sequence[str] = ("varimax", "promax", "quartimax"),
) -> Dict[str, pd.DataFrame]:
    """
    Fits the same ML factor model under several rotations.

    Returns
    -------
    dict
        Rotation name -> loadings table.
    """
    results = {}
    for rotation in rotations:
        fa = MaximumLikelihoodFA(n_factors=n_factors, rotation=rotation).fit(X)
        results[rotation] = fa.loadings_table()
    return results
