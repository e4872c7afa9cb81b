import numpy as np
import pandas as pd
import pytest


def make_rental_frame(n_per_group: int = 20, seed: int = 0) -> pd.DataFrame:
    """
    Rental-like table: three groups of cities driven by two latent traits
    (city size and wealth), with a leading city identifier column.
    """
    rng = np.random.RandomState(seed)
    group = np.repeat([0, 1, 2], n_per_group)
    centers = np.array([[-3.0, 0.0], [3.0, 0.0], [0.0, 3.0]])
    latent = centers[group] + rng.normal(scale=0.5, size=(len(group), 2))
    size, wealth = latent[:, 0], latent[:, 1]

    def noise(scale):
        return rng.normal(scale=scale, size=len(group))

    return pd.DataFrame({
        "city": [f"city{i + 1}" for i in range(len(group))],
        "pop": 100000 + 30000 * size + noise(8000),
        "enroll": 5000 + 1500 * size + noise(500),
        "rent": 300 + 40 * wealth + noise(12),
        "rnthsg": 20000 + 6000 * size + noise(1800),
        "tothsg": 40000 + 12000 * size + noise(3500),
        "avginc": 20000 + 3000 * wealth + noise(900),
    })


@pytest.fixture
def rental_frame():
    return make_rental_frame()


@pytest.fixture
def rental_file(tmp_path, rental_frame):
    path = tmp_path / "rental.txt"
    rental_frame.to_csv(path, sep=" ", index=False)
    return str(path)


@pytest.fixture
def blobs():
    """Three well separated 2D blobs of 15 points each."""
    rng = np.random.RandomState(42)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    X = np.vstack([c + rng.normal(scale=0.5, size=(15, 2)) for c in centers])
    y = np.repeat([0, 1, 2], 15)
    return X, y
