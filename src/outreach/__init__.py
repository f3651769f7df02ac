"""Persistence and HTTP API for email outreach sequences and their steps."""

__version__ = "0.1.0"
