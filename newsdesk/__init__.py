"""Newsdesk: a small content-management backend for a news site."""

__version__ = "1.0.0"
