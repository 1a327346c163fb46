"""Nullify - synthesize nullable versions of types for partial input decoding."""

from importlib.metadata import PackageNotFoundError, version

from .core import *

try:
    __version__ = version("nullify")
except PackageNotFoundError:
    __version__ = "(local)"
