"""Error taxonomy for the matrix pipeline.

Configuration and input errors are fatal: they are raised before any
result bundle exists. Numeric degeneracy (0/0 during normalization) is
not an error; the offending entries are set to zero.
"""


class ConnmatsError(Exception):
    """Base class of every error raised by connmats."""


class ConfigurationError(ConnmatsError, ValueError):
    """An option has an unknown value or is out of range."""


class InputError(ConnmatsError, ValueError):
    """A matrix file is missing, unreadable, or has the wrong shape."""
