"""Hypothesis property tests for the NULL / value / absent contract."""
