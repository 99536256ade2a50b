"""Dependency specifier resolution."""
