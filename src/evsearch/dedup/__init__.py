"""Duplicate detection driven by Everything queries."""
