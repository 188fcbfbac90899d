"""Utility modules: logging, validation, provenance."""
