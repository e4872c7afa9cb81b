import numpy as np
import pandas as pd
import pytest

from algorithms.factor_analysis import (
    MaximumLikelihoodFA,
    check_factorability,
    compare_rotations,
    kmo_table,
    parallel_analysis,
)
from utils.parser import split_identifier, standardize


@pytest.fixture
def scaled(rental_frame):
    _, numeric = split_identifier(rental_frame)
    return standardize(numeric)


@pytest.fixture
def fitted(scaled):
    return MaximumLikelihoodFA(n_factors=2, rotation="varimax").fit(scaled)


def test_factorability_on_correlated_data(scaled):
    result = check_factorability(scaled)

    assert result["bartlett_p"] < 0.001
    assert result["bartlett_df"] == 15
    assert 0.0 <= result["kmo"] <= 1.0
    assert np.all((result["kmo_per_item"] >= 0) & (result["kmo_per_item"] <= 1))


def test_kmo_table_layout(scaled):
    table = kmo_table(check_factorability(scaled), scaled.columns)
    assert table.iloc[0]["Variable"] == "Overall MSA"
    assert list(table["Variable"][1:]) == list(scaled.columns)


def test_parallel_analysis_is_reproducible(scaled):
    first = parallel_analysis(scaled, n_iter=20, random_state=123)
    second = parallel_analysis(scaled, n_iter=20, random_state=123)

    np.testing.assert_array_equal(first["fa_simulated"], second["fa_simulated"])
    assert first["n_factors"] == second["n_factors"]
    assert 1 <= first["n_factors"] <= scaled.shape[1]
    assert 1 <= first["n_components"] <= scaled.shape[1]


def test_parallel_analysis_finds_structure(scaled):
    result = parallel_analysis(scaled, n_iter=30, random_state=1)
    # Two latent traits drive the synthetic data
    assert result["n_components"] >= 2
    assert result["pc_actual"][0] > result["pc_simulated"][0]
    assert len(result["fa_actual"]) == scaled.shape[1]


def test_parallel_analysis_quantile(scaled):
    mean_based = parallel_analysis(scaled, n_iter=30, random_state=5)
    q95 = parallel_analysis(scaled, n_iter=30, random_state=5, quantile=0.95)
    assert np.all(q95["pc_simulated"][:1] >= mean_based["pc_simulated"][:1])


def test_parallel_analysis_on_noise_suggests_at_least_one():
    noise = np.random.RandomState(3).normal(size=(200, 5))
    result = parallel_analysis(noise, n_iter=20, random_state=3)
    assert result["n_factors"] >= 1


def test_communalities_and_uniquenesses_sum_to_one(fitted):
    np.testing.assert_allclose(fitted.communalities + fitted.uniquenesses, 1.0, atol=1e-8)


def test_loadings_and_communality_tables(fitted, scaled):
    loadings = fitted.loadings_table()
    assert list(loadings.columns) == ["Variable", "ML1", "ML2"]
    assert len(loadings) == scaled.shape[1]

    communality = fitted.communality_table()
    assert list(communality.columns) == ["Variable", "Communality", "Uniqueness"]


def test_variance_table_is_cumulative(fitted):
    table = fitted.variance_table()
    assert np.all(np.diff(table["Cumulative_Var"]) >= 0)


def test_scores_frame(fitted, scaled):
    scores = fitted.scores_frame(scaled)
    assert list(scores.columns) == ["ML1", "ML2"]
    assert scores.shape == (len(scaled), 2)
    np.testing.assert_allclose(scores.mean().values, 0.0, atol=1e-8)


def test_goodness_of_fit(fitted):
    fit = fitted.goodness_of_fit()
    assert fit["dof"] == 4
    assert fit["chi_square"] >= -1e-8
    assert 0.0 <= fit["p_value"] <= 1.0


def test_goodness_of_fit_without_dof(scaled):
    # Two factors on four variables leave no degrees of freedom
    fa = MaximumLikelihoodFA(n_factors=2).fit(scaled[["pop", "enroll", "rent", "avginc"]])
    fit = fa.goodness_of_fit()
    assert fit["dof"] <= 0
    assert np.isnan(fit["p_value"])


def test_residual_correlations(fitted, scaled):
    residuals = fitted.residual_correlations()
    assert isinstance(residuals, pd.DataFrame)
    assert list(residuals.columns) == list(scaled.columns)
    np.testing.assert_allclose(np.diag(residuals.values), 0.0, atol=1e-10)
    np.testing.assert_allclose(residuals.values, residuals.values.T, atol=1e-10)


def test_single_factor_model_is_unrotated(scaled):
    fa = MaximumLikelihoodFA(n_factors=1, rotation="varimax").fit(scaled)
    assert fa.loadings.shape == (scaled.shape[1], 1)


def test_invalid_configuration(scaled):
    with pytest.raises(ValueError):
        MaximumLikelihoodFA(n_factors=2, rotation="spin")
    with pytest.raises(ValueError):
        MaximumLikelihoodFA(n_factors=0)
    with pytest.raises(ValueError):
        MaximumLikelihoodFA(n_factors=6).fit(scaled)


def test_unfitted_model_raises():
    with pytest.raises(ValueError):
        MaximumLikelihoodFA(n_factors=2).loadings_table()


def test_compare_rotations(scaled):
    results = compare_rotations(scaled, n_factors=2, rotations=("varimax", "promax", "quartimax"))
    assert set(results) == {"varimax", "promax", "quartimax"}
    for table in results.values():
        assert list(table.columns) == ["Variable", "ML1", "ML2"]
