"""Configuration and dependency injection."""
