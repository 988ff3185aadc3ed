"""Dwight: a Discord soundboard bot that keeps a button channel in sync with a sound catalog."""

__version__ = "1.0.0"
