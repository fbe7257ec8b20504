"""Recruitment intelligence backend: LMS sync, AI submission analysis and candidate insights."""

__version__ = "0.1.0"
