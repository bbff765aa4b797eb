"""Inbound adapters for the resource prototype.

Provides the command line driver.
"""

from resource_proto.adapters.inbound.cli import build_parser, main

__all__ = ["build_parser", "main"]
