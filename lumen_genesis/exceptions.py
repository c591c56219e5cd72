"""Exception types raised by lumen_genesis.

Only programming errors surface as exceptions. Not-ready states, dark images
and out-of-range settings are absorbed by the pipeline instead.
"""


class LumenError(Exception):
    """Base class for lumen_genesis errors."""


class PixelBufferError(LumenError, ValueError):
    """Pixel data does not match the declared dimensions or channel layout."""


class UnknownSpeciesError(LumenError, KeyError):
    """A species tag that names none of the creature variants."""
