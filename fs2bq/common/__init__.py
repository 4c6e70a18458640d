"""Logging, metrics and HTTP middleware shared across the exporter."""
