"""
Exceptions raised by isowave.

Configuration problems (bad order, band count, wavelet name, ...) and
geometric problems (shapes that cannot be filtered or subsampled) are
reported immediately. Both derive from ValueError so callers that only
care about "bad argument" can catch that.
"""


class IsowaveError(Exception):
    """Base class for isowave errors."""


class ConfigurationError(IsowaveError, ValueError):
    """Invalid transform configuration (order, levels, bands, family, ...)."""


class GeometryError(IsowaveError, ValueError):
    """Grid geometry incompatible with the requested operation."""
