"""
Experiments Package.

This package contains the runner scripts for the three analyses of the
rental dataset.

Runners
-------
- pca_session: Principal Component Analysis, variance and loadings tables.
- fa_session: Factor Analysis (factorability, parallel analysis, ML extraction).
- cluster_session: PCA + K-Means clustering with silhouette validation.
"""
# Note: These are typically run as __main__ scripts, but exposing them
# allows main.py to import and run them programmatically.
