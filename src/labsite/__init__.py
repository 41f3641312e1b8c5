"""labsite - content store and admin tools for a research lab website."""

__version__ = "0.3.0"
