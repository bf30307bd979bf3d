"""Derived rider performance metrics."""
