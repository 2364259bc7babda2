"""Prometheus exporter for IBM Spectrum Protect (TSM) servers."""

__version__ = "0.1.0"
