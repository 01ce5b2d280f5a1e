"""
Simple utilities used by the matrix pipeline.
"""
from .logging import get_logger, LEVELS


def as_tuple(values):
    """A scalar or an iterable as a tuple, strings counted as scalars."""
    if isinstance(values, (str, bytes)):
        return (values,)
    try:
        return tuple(values)
    except TypeError:
        return (values,)
