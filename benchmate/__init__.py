"""Benchmate - terse terminal assistant for electronics development and home automation."""

__version__ = "0.1.0"

from benchmate.config import Config
from benchmate.main import main

__all__ = ["Config", "main", "__version__"]
