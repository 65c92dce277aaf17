#!/usr/bin/env python3
"""Core infrastructure: logging, environment handling and configuration."""

from .config import ExportConfig, export_config
from .logging import setup_logging

__all__ = ["ExportConfig", "export_config", "setup_logging"]
