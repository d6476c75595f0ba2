"""Presentation layer (channel transports)."""

from makilab.presentation.console import ConsoleChannel

__all__ = ["ConsoleChannel"]
