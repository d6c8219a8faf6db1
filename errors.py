# errors.py
from __future__ import annotations


class EnigmaError(Exception):
    """Base class for every failure raised by the simulator."""


class ConfigError(EnigmaError, ValueError):
    """Bad alphabet, cycles, rotor slots or settings."""


class SymbolLookupError(EnigmaError, LookupError):
    """A symbol that is not part of the alphabet."""


class IndexRangeError(EnigmaError, IndexError):
    """An index outside ``0 .. size-1``."""
