"""
CLI runner module.

Provides commands:
- init-config: Write a default config file
- accounts / extractors / categories: List reference data
- import: Upload, resolve duplicates, review and commit a statement
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
