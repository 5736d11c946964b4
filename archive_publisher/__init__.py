"""Publish the contents of a ZIP archive as a GitHub repository."""

__version__ = "1.0.0"
