"""Embedding provider implementations (loaded lazily through the registry)."""
