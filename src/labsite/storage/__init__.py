"""Persisted storage CLI commands."""
