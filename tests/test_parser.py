import numpy as np
import pandas as pd
import pytest

from utils.parser import (
    check_missing_values,
    count_missing_values,
    load_observations,
    preprocess_observations,
    split_identifier,
    standardize,
)


def test_load_observations_reads_whitespace_table(rental_file):
    df = load_observations(rental_file)
    assert list(df.columns) == ["city", "pop", "enroll", "rent", "rnthsg", "tothsg", "avginc"]
    assert len(df) == 60


def test_load_observations_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_observations(str(tmp_path / "nope.txt"))


def test_load_observations_header_only(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("city pop rent\n")
    with pytest.raises(ValueError):
        load_observations(str(path))


def test_split_identifier_drops_first_column(rental_frame):
    ids, numeric = split_identifier(rental_frame)
    assert ids.name == "city"
    assert "city" not in numeric.columns
    assert all(np.issubdtype(t, np.floating) for t in numeric.dtypes)


def test_split_identifier_named_column(rental_frame):
    ids, numeric = split_identifier(rental_frame, id_column="city")
    assert ids.iloc[0] == "city1"
    assert numeric.shape == (60, 6)


def test_split_identifier_rejects_unknown_column(rental_frame):
    with pytest.raises(ValueError):
        split_identifier(rental_frame, id_column="county")


def test_split_identifier_rejects_text_column():
    df = pd.DataFrame({"city": ["a", "b"], "label": ["x", "y"], "rent": [1.0, 2.0]})
    with pytest.raises(ValueError, match="label"):
        split_identifier(df)


def test_missing_values_abort():
    df = pd.DataFrame({"rent": [1.0, np.nan, 3.0], "pop": [1.0, 2.0, np.nan]})
    assert count_missing_values(df) == 2
    with pytest.raises(ValueError, match="rent"):
        check_missing_values(df)


def test_check_missing_values_passes_complete_data(rental_frame):
    _, numeric = split_identifier(rental_frame)
    assert check_missing_values(numeric) == 0


def test_standardize_zero_mean_unit_variance(rental_frame):
    _, numeric = split_identifier(rental_frame)
    scaled = standardize(numeric)

    np.testing.assert_allclose(scaled.mean().values, 0.0, atol=1e-10)
    np.testing.assert_allclose(scaled.var(ddof=1).values, 1.0, atol=1e-10)
    assert list(scaled.columns) == list(numeric.columns)


def test_standardize_rejects_constant_column():
    df = pd.DataFrame({"rent": [1.0, 2.0, 3.0], "flat": [5.0, 5.0, 5.0]})
    with pytest.raises(ValueError, match="flat"):
        standardize(df)


def test_preprocess_observations(rental_file):
    data, ids, numeric, scaled = preprocess_observations(rental_file)
    assert "city" in data.columns
    assert len(ids) == len(numeric) == len(scaled) == 60
    assert "city" not in scaled.columns
