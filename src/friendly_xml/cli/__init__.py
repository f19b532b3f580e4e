"""Command-line interface module for Friendly XML.

This module provides CLI tools for parse diagnostics, scope inspection,
friendly views, file-set search and pretty-printing.
"""

from .main import main

__all__ = ["main"]
