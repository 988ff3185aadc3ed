"""
Domain Layer

Catalog and playback models plus the shared kernel (errors, events, types).
"""
