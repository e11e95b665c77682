"""Parametric and rank-based trend tests."""
