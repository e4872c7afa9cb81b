"""
Principal Component Analysis (PCA) Implementation.

This module computes principal components of the standardized rental table
through the eigen-decomposition of its covariance matrix. On standardized
input the covariance matrix is the correlation matrix, so the eigenvalues
are the component variances reported by a classical PCA summary.

Besides the projection itself it exposes the tables exported in the report:
explained / cumulative variance per component and the loadings of the
leading components.
"""

import numpy as np
import pandas as pd
from typing import List, Optional, Union


class PCA:
    """
    Principal Component Analysis via eigen-decomposition.

    Parameters
    ----------
    n_components : int, optional
        Number of principal components to keep. If None, all components are kept.
    verbose : bool, default=False
        If True, prints the covariance matrix and eigenvalues to console.
    """

    def __init__(self, n_components: Optional[int] = None, verbose: bool = False):
        self.n_components = n_components
        self.verbose = verbose
        self.components = None
        self.mean = None
        self.eigenvalues = None
        self.explained_variance_ratio = None
        self.cumulative_variance_ratio = None
        self.feature_names: List[str] = []

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        """
        Computes the principal components from the dataset X.

        Parameters
        ----------
        X : array-like
            Input data of shape (n_samples, n_features).

        Returns
        -------
        self
        """
        self.feature_names = []
        if isinstance(X, pd.DataFrame):
            self.feature_names = [str(c) for c in X.columns]
            X = X.values
        X = np.asarray(X, dtype=float)

        n_samples, n_features = X.shape
        if not self.feature_names or len(self.feature_names) != n_features:
            self.feature_names = [f"X{i + 1}" for i in range(n_features)]

        n_keep = n_features if self.n_components is None else self.n_components
        if not 1 <= n_keep <= n_features:
            raise ValueError(
                f"n_components must be between 1 and {n_features}, got {self.n_components}."
            )
        if n_samples < 2:
            raise ValueError("PCA needs at least two observations.")

        self.mean = np.mean(X, axis=0)
        X_centered = X - self.mean

        # rows are samples, cols are features
        covariance_matrix = np.cov(X_centered, rowvar=False)

        if self.verbose:
            print("\n[PCA] Covariance Matrix:")
            print(covariance_matrix)

        # eigh is optimized for symmetric matrices, returns ascending order
        eigenvalues, eigenvectors = np.linalg.eigh(covariance_matrix)
        sorted_indices = np.argsort(eigenvalues)[::-1]

        # Tiny negative eigenvalues are rounding noise
        self.eigenvalues = np.clip(eigenvalues[sorted_indices], 0.0, None)
        sorted_eigenvectors = eigenvectors[:, sorted_indices]

        # Sign convention: largest absolute loading of each component is positive
        pivot = np.argmax(np.abs(sorted_eigenvectors), axis=0)
        signs = np.sign(sorted_eigenvectors[pivot, np.arange(n_features)])
        signs[signs == 0] = 1.0
        sorted_eigenvectors = sorted_eigenvectors * signs

        if self.verbose:
            print("\n[PCA] Sorted Eigenvalues:", self.eigenvalues)

        self.components = sorted_eigenvectors[:, :n_keep]

        total_variance = np.sum(self.eigenvalues)
        if total_variance > 0:
            self.explained_variance_ratio = self.eigenvalues / total_variance
        else:
            self.explained_variance_ratio = np.zeros(n_features)
        self.cumulative_variance_ratio = np.cumsum(self.explained_variance_ratio)

        return self

    def transform(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """
        Projects samples onto the retained principal components.

        Parameters
        ----------
        X : array-like
            Input data.

        Returns
        -------
        np.ndarray
            Component scores of shape (n_samples, n_components).
        """
        if self.components is None:
            raise ValueError("PCA has not been fitted yet. Call fit() first.")

        if isinstance(X, pd.DataFrame):
            X = X.values
        X_centered = np.asarray(X, dtype=float) - self.mean
        return np.dot(X_centered, self.components)

    def inverse_transform(self, X_transformed: np.ndarray) -> np.ndarray:
        """
        Reconstructs data in the original space from component scores.
        """
        return np.dot(X_transformed, self.components.T) + self.mean

    def fit_transform(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """
        Fit the model with X and apply the dimensionality reduction on X.
        """
        self.fit(X)
        return self.transform(X)

    # -----------------------------------------------------------------
    # Report tables
    # -----------------------------------------------------------------
    def component_names(self, n: Optional[int] = None) -> List[str]:
        n = self.components.shape[1] if n is None else n
        return [f"PC{i + 1}" for i in range(n)]

    def scores_frame(self, X: Union[np.ndarray, pd.DataFrame],
                     n_components: Optional[int] = None) -> pd.DataFrame:
        """
        Component scores as a DataFrame with columns PC1..PCk.

        Parameters
        ----------
        X : array-like
            Data to project (normally the data the model was fitted on).
        n_components : int, optional
            Keep only the first n components of the projection.
        """
        scores = self.transform(X)
        if n_components is not None:
            scores = scores[:, :n_components]
        index = X.index if isinstance(X, pd.DataFrame) else None
        return pd.DataFrame(scores, columns=self.component_names(scores.shape[1]), index=index)

    def variance_table(self, decimals: int = 4) -> pd.DataFrame:
        """
        Eigenvalue, explained and cumulative variance for every component.
        """
        if self.eigenvalues is None:
            raise ValueError("PCA has not been fitted yet. Call fit() first.")

        return pd.DataFrame({
            "Component": [f"PC{i + 1}" for i in range(len(self.eigenvalues))],
            "Eigenvalue": np.round(self.eigenvalues, decimals),
            "Explained_Variance": np.round(self.explained_variance_ratio, decimals),
            "Cumulative_Variance": np.round(self.cumulative_variance_ratio, decimals),
        })

    def loadings_table(self, n_components: int = 3, decimals: int = 4) -> pd.DataFrame:
        """
        Loadings (eigenvector coefficients) of the first n components.

        Parameters
        ----------
        n_components : int, default=3
            Number of leading components to report. Capped at the number kept.
        decimals : int, default=4
            Rounding applied to the coefficients.
        """
        if self.components is None:
            raise ValueError("PCA has not been fitted yet. Call fit() first.")

        n = min(n_components, self.components.shape[1])
        table = pd.DataFrame({"Variable": self.feature_names})
        for i, name in enumerate(self.component_names(n)):
            table[name] = np.round(self.components[:, i], decimals)
        return table
