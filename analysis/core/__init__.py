"""Aggregation and extreme-event counting."""
