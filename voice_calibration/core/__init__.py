"""Core - ports, configuration, logging and exceptions."""
