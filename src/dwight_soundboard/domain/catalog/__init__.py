"""Sound catalog: sounds, entrees and the store contract."""
