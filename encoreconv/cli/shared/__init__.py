"""Shared CLI utilities."""

from encoreconv.cli.shared.context import ConversionContext
from encoreconv.cli.shared.options import ConversionOptions
from encoreconv.cli.shared.signals import SignalHandler

__all__ = [
    "ConversionContext",
    "ConversionOptions",
    "SignalHandler",
]
