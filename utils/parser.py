"""
Parser / preprocessing utilities for the rental dataset analysis.

This module handles all data loading and preprocessing for the whitespace
delimited rental table (one row per city, a header row with variable names).
It reads the file, separates the non-numeric identifier column from the
numeric measurements, checks for missing values and standardizes the
variables before PCA, Factor Analysis and Clustering.

The identifier column never takes part in any numeric computation; it is
only carried along so results can be joined back to the cities.
"""

import os
import pandas as pd
from typing import Optional, Tuple

# ---------------------------------------------------------------------
# Basic helpers
# ---------------------------------------------------------------------

def load_observations(filepath: str) -> pd.DataFrame:
    """
    Loads a whitespace-delimited text file with a header row into a DataFrame.

    Parameters
    ----------
    filepath : str
        The relative or absolute path to the data file (e.g. 'rental.txt').

    Returns
    -------
    df : pd.DataFrame
        The full observation table, identifier column included.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file holds no data rows.
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"Data file '{filepath}' not found.")

    df = pd.read_csv(filepath, sep=r"\s+", header=0)

    if df.empty:
        raise ValueError(f"Data file '{filepath}' contains no observations.")

    return df


def split_identifier(
    df: pd.DataFrame,
    id_column: Optional[str] = None
) -> Tuple[pd.Series, pd.DataFrame]:
    """
    Separates the identifier column from the numeric measurements.

    By default, the identifier is assumed to be the FIRST column (the city
    name in the rental table).

    Parameters
    ----------
    df : pd.DataFrame
        The observation table.
    id_column : str, optional
        Name of the identifier column. If None, the first column is used.

    Returns
    -------
    ids : pd.Series
        The identifier values.
    numeric : pd.DataFrame
        The remaining columns, converted to numeric dtype.
    """
    if id_column is None:
        id_column = df.columns[0]
    if id_column not in df.columns:
        raise ValueError(f"Identifier column '{id_column}' not found in data.")

    ids = df[id_column]
    numeric = df.drop(columns=[id_column])

    if numeric.shape[1] == 0:
        raise ValueError("No measurement columns left after dropping the identifier.")

    for col in numeric.columns:
        if not pd.api.types.is_numeric_dtype(numeric[col]):
            # 'coerce' turns non-numeric strings into NaN
            converted = pd.to_numeric(numeric[col], errors='coerce')
            if converted.notna().sum() == 0:
                raise ValueError(f"Column '{col}' contains no numeric values.")
            numeric[col] = converted

    return ids, numeric.astype(float)


def count_missing_values(df: pd.DataFrame) -> int:
    """Returns the total number of missing cells in the table."""
    return int(df.isnull().sum().sum())


def check_missing_values(df: pd.DataFrame) -> int:
    """
    Reports missing values and aborts if any are present.

    Multivariate analysis here requires a complete matrix; no imputation
    is attempted.

    Parameters
    ----------
    df : pd.DataFrame
        Numeric measurement table.

    Returns
    -------
    int
        The number of missing values (always 0 when the function returns).

    Raises
    ------
    ValueError
        If at least one value is missing.
    """
    na_count = count_missing_values(df)
    print(f"Missing values detected: {na_count}")

    if na_count > 0:
        per_column = df.isnull().sum()
        offending = per_column[per_column > 0]
        details = ", ".join(f"{col} ({n})" for col, n in offending.items())
        raise ValueError(f"Missing values found in: {details}")

    return na_count


def standardize(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardizes every column to zero mean and unit variance.

    Uses the sample standard deviation (ddof=1), so the covariance matrix of
    the result equals the correlation matrix of the input.

    Parameters
    ----------
    df : pd.DataFrame
        Numeric measurement table.

    Returns
    -------
    pd.DataFrame
        Standardized table with the same index and column names.
    """
    std = df.std(ddof=1)
    constant = std[~(std > 0)].index.tolist()
    if constant:
        raise ValueError(f"Cannot standardize constant column(s): {constant}")

    return (df - df.mean()) / std


# ---------------------------------------------------------------------
# Single-file preprocessing
# ---------------------------------------------------------------------

def preprocess_observations(
        filepath: str,
        id_column: Optional[str] = None,
) -> Tuple[pd.DataFrame, pd.Series, pd.DataFrame, pd.DataFrame]:
    """
    Preprocesses the rental data file for PCA / FA / clustering.

    This function orchestrates loading, identifier removal, the missing
    value check and standardization.

    Parameters
    ----------
    filepath : str
        Path to the whitespace-delimited data file.
    id_column : str, optional
        Name of the identifier column. If None, the first column is used.

    Returns
    -------
    data : pd.DataFrame
        The original table (identifier included), for reporting.
    ids : pd.Series
        The identifier values.
    numeric : pd.DataFrame
        The numeric measurements.
    scaled : pd.DataFrame
        The standardized measurements.
    """
    data = load_observations(filepath)
    ids, numeric = split_identifier(data, id_column)
    check_missing_values(numeric)
    scaled = standardize(numeric)

    return data, ids, numeric, scaled
