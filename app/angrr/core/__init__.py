"""Core infrastructure: configuration, paths, ambient run state and errors."""
