"""Dental X-ray scan analysis and report dashboard service."""

__version__ = "1.0.0"
