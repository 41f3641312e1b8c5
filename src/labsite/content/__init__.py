"""Content collection CLI commands."""
