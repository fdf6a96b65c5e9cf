"""Aggregation module for survey summaries.

- specifications: split and order weighting rules
- weights: per-respondent weight from gender and age rules
- summary: weighted tallies for a closed survey
Forbidden: writes of any kind.
"""
