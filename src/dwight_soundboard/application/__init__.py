"""
Application Layer

Contains the soundboard services: rebuild coordination, channel rendering,
playback sessions and the interaction dispatchers that feed them.
"""
