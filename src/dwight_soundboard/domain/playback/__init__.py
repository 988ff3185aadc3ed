"""Voice playback session models."""
