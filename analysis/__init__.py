"""
Reporting package: diagnostic plots and exported result tables.
"""
