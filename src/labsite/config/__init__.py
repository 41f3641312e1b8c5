"""Configuration CLI commands."""
