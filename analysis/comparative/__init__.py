"""Two-sample comparisons between year ranges."""
