"""Seva: a grievance-filing chat assistant with user-confirmed tool calls."""

__version__ = "0.1.0"
