"""Configuration loading and models."""

from .loader import ConfigLoader
from .models import CollectorOptions, ExporterConfig, Target

__all__ = ["ConfigLoader", "CollectorOptions", "ExporterConfig", "Target"]
