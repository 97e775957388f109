"""Ambient services: configuration and structured logging."""
