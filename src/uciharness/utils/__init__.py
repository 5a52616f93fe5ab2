"""Shared utilities for uciharness."""

from uciharness.utils.logging import setup_logging

__all__ = ["setup_logging"]
