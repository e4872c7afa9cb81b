"""
K-Means Algorithm Implementation.

This module implements Lloyd's algorithm (Batch K-Means) with Euclidean
distance, restarted from several random initialisations. The restart with
the lowest within-cluster sum of squares is kept, which is how the rental
observations are partitioned in PCA space.

References
----------
[1] Lloyd, S., "Least squares quantization in PCM", 1982, IEEE Transactions
    on Information Theory, 28(2): 129-137.
[2] MacQueen, J., "Some methods for classification and analysis of multivariate
    observations", 1967, Proc. 5th Berkeley Symp. Math. Stat. Prob., pp. 281-297.
"""

import numpy as np
import pandas as pd
from typing import Optional, Tuple, Union


class KMeans:
    """
    K-Means clustering algorithm (Lloyd's Algorithm with random restarts).

    It iteratively assigns points to the nearest centroid and updates centroids
    to the mean of the assigned points until convergence. The whole procedure
    is repeated ``n_init`` times and the best run (lowest inertia) is kept.

    Parameters
    ----------
    n_clusters : int
        The number of clusters to form as well as the number of centroids to generate.
    n_init : int, default=25
        Number of random restarts.
    max_iters : int, default=300
        Maximum number of iterations of the k-means algorithm for a single run.
    tol : float, default=1e-4
        Convergence threshold on the squared shift of the centroids.
    random_state : int, optional
        Seed for the centroid initialisations.
    """

    def __init__(
        self,
        n_clusters: int,
        n_init: int = 25,
        max_iters: int = 300,
        tol: float = 1e-4,
        random_state: Optional[int] = None
    ):
        if n_clusters < 1:
            raise ValueError(f"n_clusters must be >= 1, got {n_clusters}.")
        if n_init < 1:
            raise ValueError(f"n_init must be >= 1, got {n_init}.")

        self.n_clusters = n_clusters
        self.n_init = n_init
        self.max_iters = max_iters
        self.tol = tol
        self.random_state = random_state
        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.n_iter_ = None

    def _initialize_centroids(self, X: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
        """
        Chooses the initial centers randomly from the data points.
        """
        indices = rng.choice(X.shape[0], size=self.n_clusters, replace=False)
        return X[indices].copy()

    def _compute_distances(self, X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        """
        Squared Euclidean distance from each point to each centroid.

        Returns
        -------
        np.ndarray
            Distance matrix of shape (n_samples, n_clusters).
        """
        return np.sum((X[:, np.newaxis, :] - centroids[np.newaxis, :, :]) ** 2, axis=2)

    def _assign_clusters(self, X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        distances = self._compute_distances(X, centroids)
        return np.argmin(distances, axis=1)

    def _update_centroids(self, X: np.ndarray, labels: np.ndarray,
                          centroids: np.ndarray) -> np.ndarray:
        """
        Recalculate centroids as the mean of points assigned to them.

        An empty cluster is moved to the point farthest from its current
        centroid so that every run ends with ``n_clusters`` groups.
        """
        new_centroids = np.zeros((self.n_clusters, X.shape[1]))

        for k in range(self.n_clusters):
            cluster_points = X[labels == k]

            if len(cluster_points) > 0:
                new_centroids[k] = np.mean(cluster_points, axis=0)
            else:
                dist_to_own = self._compute_distances(X, centroids)[np.arange(X.shape[0]), labels]
                new_centroids[k] = X[np.argmax(dist_to_own)]

        return new_centroids

    def _compute_inertia(self, X: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> float:
        """
        Within-cluster sum of squared errors: SSE = sum ||x_j - c_i||^2.
        """
        return float(np.sum((X - centroids[labels]) ** 2))

    def _single_run(self, X: np.ndarray,
                    rng: np.random.RandomState) -> Tuple[np.ndarray, np.ndarray, float, int]:
        centroids = self._initialize_centroids(X, rng)
        n_iter = 0

        for n_iter in range(1, self.max_iters + 1):
            labels = self._assign_clusters(X, centroids)
            new_centroids = self._update_centroids(X, labels, centroids)

            centroid_shift = np.sum((new_centroids - centroids) ** 2)
            centroids = new_centroids

            if centroid_shift < self.tol:
                break

        labels = self._assign_clusters(X, centroids)
        return labels, centroids, self._compute_inertia(X, labels, centroids), n_iter

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        """
        Fit the K-Means model to the data.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training data.

        Returns
        -------
        self
        """
        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=float)

        if self.n_clusters > X.shape[0]:
            raise ValueError(
                f"n_clusters={self.n_clusters} exceeds the number of samples ({X.shape[0]})."
            )

        rng = np.random.RandomState(self.random_state)
        best = None

        for _ in range(self.n_init):
            run = self._single_run(X, rng)
            if best is None or run[2] < best[2]:
                best = run

        self.labels_, self.cluster_centers_, self.inertia_, self.n_iter_ = best

        return self

    def predict(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """
        Predict the closest cluster for each sample in X.
        """
        if self.cluster_centers_ is None:
            raise ValueError("Model has not been fitted yet. Call fit() first.")

        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=float)

        return self._assign_clusters(X, self.cluster_centers_)

    def fit_predict(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """
        Fit the model and return cluster assignments.
        """
        self.fit(X)
        return self.labels_
