"""Topic color CLI commands."""
