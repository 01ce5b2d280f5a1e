"""Reading and writing connection-matrix text grids.

A grid file holds one matrix row per line, values separated by
whitespace: the format written by FSL (fdt_network_matrix) and DPABI
(ROICorrelation.txt). Divisor files use the same format with a single
column. Grids are parsed with np.loadtxt, so blank lines and lines
starting with '#' are skipped.
"""

import warnings
from pathlib import Path

import numpy as np

from connmats.errors import InputError
from connmats.utils import get_logger

LOG = get_logger("matrices.io")


def _existing(path):
    path = Path(path)
    if not path.is_file():
        raise InputError(f"Matrix file not found: {path}")
    return path


def count_rows(path):
    """Number of data rows in a grid file."""
    return read_grid(path).shape[0]


def read_grid(path, ncols=None, nrows=None):
    """Read one whitespace-delimited numeric grid.

    Parameters
    ----------
    path : str or Path
        The grid file.
    ncols, nrows : int, optional
        Expected shape; checked when given.

    Returns
    -------
    np.ndarray
        2-D float array.
    """
    path = _existing(path)
    try:
        with warnings.catch_warnings():
            # loadtxt warns on empty input; that case is an InputError below
            warnings.simplefilter("ignore", UserWarning)
            grid = np.loadtxt(path, dtype=float, ndmin=2)
    except (OSError, ValueError) as error:
        raise InputError(f"Malformed matrix file {path}: {error}")
    if grid.size == 0:
        raise InputError(f"Matrix file is empty: {path}")

    if nrows is not None and grid.shape[0] != nrows:
        raise InputError(f"{path} has {grid.shape[0]} rows, expected {nrows}")
    if ncols is not None and grid.shape[1] != ncols:
        raise InputError(f"{path} has {grid.shape[1]} columns, expected {ncols}")
    return grid


def read_array(files, ncols=None):
    """Stack a set of equally shaped grid files into a 3-d array.

    The number of rows, Nv, is taken from the first file. Every file must
    hold exactly Nv rows and ncols columns. All files are checked for
    existence before any is parsed.

    Parameters
    ----------
    files : sequence of str or Path
        One grid file per subject, in subject order.
    ncols : int, optional
        Columns per grid; defaults to Nv (square matrices).

    Returns
    -------
    np.ndarray
        Array of shape (Nv, ncols, len(files)).
    """
    if isinstance(files, (str, Path)):
        files = [files]
    files = [Path(f) for f in files]
    if not files:
        raise InputError("No matrix files given")
    for path in files:
        _existing(path)

    first = read_grid(files[0])
    nv = first.shape[0]
    if ncols is None:
        ncols = nv
    if first.shape[1] != ncols:
        raise InputError(f"{files[0]} has {first.shape[1]} columns, expected {ncols}")
    grids = [first] + [read_grid(path, ncols=ncols, nrows=nv) for path in files[1:]]

    LOG.debug("Read %d grids of shape %d x %d", len(files), nv, ncols)
    return np.stack(grids, axis=-1)


def write_grid(path, matrix, fmt="%.18e"):
    """Write a matrix as a whitespace-delimited grid.

    A 1-d array is written as a single column (the divisor file layout).
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim == 1:
        matrix = matrix[:, np.newaxis]
    if matrix.ndim != 2:
        raise InputError(f"Only 1-d or 2-d arrays can be written, got {matrix.ndim}-d")
    path = Path(path)
    np.savetxt(path, matrix, fmt=fmt, delimiter=" ")
    return path


def check_files(files):
    """Raise InputError unless every file exists; returns the paths."""
    return [_existing(f) for f in files]
