"""Maintenance utilities for a user.js based browser profile."""

__version__ = "5.0.0"
