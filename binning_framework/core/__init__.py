"""Core infrastructure: constants, exceptions, logging, configuration and batch processing."""
