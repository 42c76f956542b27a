"""Shared services: polling."""
