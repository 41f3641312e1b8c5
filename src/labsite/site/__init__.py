"""Featured items and team image CLI commands."""
