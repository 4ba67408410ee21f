"""Monitor claude.ai usage limits across several linked accounts."""

__version__ = "0.1.0"
