"""
Command-line interface for streambench.
"""

from .main import main_cli

__all__ = ["main_cli"]
