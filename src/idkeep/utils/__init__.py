"""Utility modules for idkeep."""

from . import time

__all__ = ['time']
