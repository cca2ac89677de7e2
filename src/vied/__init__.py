"""Vied: clip sequencing and export planning for a lightweight video editor."""

__version__ = "0.1.0"
