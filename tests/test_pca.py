import numpy as np
import pytest

from algorithms.pca import PCA
from utils.parser import split_identifier, standardize


@pytest.fixture
def scaled(rental_frame):
    _, numeric = split_identifier(rental_frame)
    return standardize(numeric)


def test_cumulative_variance_reaches_one(scaled):
    pca = PCA().fit(scaled)
    cumulative = pca.cumulative_variance_ratio

    assert np.all(np.diff(cumulative) >= -1e-12)
    assert cumulative[-1] == pytest.approx(1.0)
    assert pca.explained_variance_ratio.sum() == pytest.approx(1.0)


def test_eigenvalues_of_correlation_matrix(scaled):
    pca = PCA().fit(scaled)
    # Standardized input: eigenvalues sum to the number of variables
    assert pca.eigenvalues.sum() == pytest.approx(scaled.shape[1])
    assert np.all(np.diff(pca.eigenvalues) <= 1e-12)


def test_scores_are_uncorrelated(scaled):
    scores = PCA().fit_transform(scaled)
    corr = np.corrcoef(scores, rowvar=False)
    off_diagonal = corr[~np.eye(corr.shape[0], dtype=bool)]
    np.testing.assert_allclose(off_diagonal, 0.0, atol=1e-8)


def test_repeated_runs_are_identical(scaled):
    first = PCA().fit_transform(scaled)
    second = PCA().fit_transform(scaled.copy())
    np.testing.assert_array_equal(first, second)


def test_largest_loading_is_positive(scaled):
    pca = PCA().fit(scaled)
    pivot = np.argmax(np.abs(pca.components), axis=0)
    assert np.all(pca.components[pivot, np.arange(pca.components.shape[1])] > 0)


def test_inverse_transform_with_all_components(scaled):
    pca = PCA().fit(scaled)
    restored = pca.inverse_transform(pca.transform(scaled))
    np.testing.assert_allclose(restored, scaled.values, atol=1e-10)


def test_variance_and_loadings_tables(scaled):
    pca = PCA().fit(scaled)

    variance = pca.variance_table()
    assert list(variance.columns) == ["Component", "Eigenvalue", "Explained_Variance",
                                      "Cumulative_Variance"]
    assert list(variance["Component"]) == [f"PC{i}" for i in range(1, 7)]

    loadings = pca.loadings_table(n_components=3)
    assert list(loadings.columns) == ["Variable", "PC1", "PC2", "PC3"]
    assert list(loadings["Variable"]) == list(scaled.columns)


def test_scores_frame_keeps_requested_components(scaled):
    pca = PCA().fit(scaled)
    scores = pca.scores_frame(scaled, n_components=3)
    assert list(scores.columns) == ["PC1", "PC2", "PC3"]
    assert scores.shape == (len(scaled), 3)


def test_n_components_limits_projection(scaled):
    pca = PCA(n_components=2).fit(scaled)
    assert pca.transform(scaled).shape == (len(scaled), 2)
    # Variance ratios still describe every component
    assert len(pca.explained_variance_ratio) == scaled.shape[1]


def test_invalid_n_components(scaled):
    with pytest.raises(ValueError):
        PCA(n_components=10).fit(scaled)


def test_transform_before_fit():
    with pytest.raises(ValueError):
        PCA().transform(np.zeros((3, 2)))


def test_refit_on_array_drops_old_column_names(scaled):
    pca = PCA().fit(scaled)
    assert pca.feature_names[0] == "pop"

    pca.fit(scaled.values)
    assert pca.feature_names == [f"X{i + 1}" for i in range(scaled.shape[1])]
