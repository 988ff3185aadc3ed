"""
Infrastructure Layer

Adapters for Discord (gateway, voice, channels) and SQLite persistence.
"""
