"""Shared utilities."""

from .logging import add_engine_version, add_severity, configure_logging

__all__ = ["add_engine_version", "add_severity", "configure_logging"]
