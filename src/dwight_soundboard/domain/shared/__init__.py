"""
Shared Domain Kernel

Contains value types, events and exceptions shared across the catalog and
playback contexts.
"""
