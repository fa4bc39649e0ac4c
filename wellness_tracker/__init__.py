"""Wellness tracker core: credentials, persistence, repositories and analytics."""

__version__ = "1.0.0"
