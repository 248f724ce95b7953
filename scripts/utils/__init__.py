"""Utility functions for the command-line scripts."""

from .setup_logging import setup_logging

__all__ = ['setup_logging']
