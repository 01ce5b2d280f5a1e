"""Normalization of raw connection strengths.

Tractography counts depend on how many streamlines were seeded and on the
size of the regions they connect. Dividing by the waytotal, by the region
sizes, or by each row's total makes subjects comparable.

Zero divisors produce NaN (0/0); those entries are set to zero, since a
disconnected node pair has zero strength.
"""

import numpy as np

from connmats.bench.dataset import evaluate_datasets
from connmats.config import check_choice
from connmats.errors import InputError
from connmats.matrices.stack import as_stack, map_slices
from connmats.utils import get_logger

LOG = get_logger("matrices.normalize")

NORMALIZERS = ("waytotal", "size", "rowSums")


def zero_nan(A):
    """A copy of A with NaN entries replaced by zero."""
    A = np.array(A, dtype=float)
    A[np.isnan(A)] = 0
    return A


def _check_divisor(A, div):
    if div is None:
        raise InputError("This normalization needs divisor data")
    div = np.asarray(div, dtype=float)
    if div.ndim == 2:
        div = div[:, :, np.newaxis]
    nv, _, n = A.shape
    if div.ndim != 3 or div.shape[1] != 1 or div.shape[2] != n:
        raise InputError(
            f"Divisor stack of shape {div.shape} does not fit {n} subjects"
        )
    if div.shape[0] not in (1, nv):
        raise InputError(
            f"Divisor stack has {div.shape[0]} rows; expected 1 or {nv}"
        )
    return div


def _row_stochastic(matrix):
    return matrix / matrix.sum(axis=1, keepdims=True)


@evaluate_datasets
def normalize_mats(A, divisor, div=None, P=5000):
    """Normalize every subject's connection matrix.

    Parameters
    ----------
    A : np.ndarray
        Connection stack (Nv, Nv, N).
    divisor : str
        "waytotal": divide row i of subject s by div[i, 0, s]; a divisor
        stack with a single row divides the whole matrix.
        "size": divide entry (i, j) by P * (size_i + size_j), times 2.
        "rowSums": divide each row by its sum; div is not used.
    div : np.ndarray, optional
        Divisor stack (Nv, 1, N) or (1, 1, N), as read by
        read_array(files, ncols=1).
    P : int
        Samples per seed voxel, for "size".

    Returns
    -------
    np.ndarray
        Normalized stack of the same shape. NaN is not removed here.
    """
    check_choice("divisor", divisor, NORMALIZERS)
    A = as_stack(A)

    with np.errstate(divide="ignore", invalid="ignore"):
        if divisor == "waytotal":
            W = _check_divisor(A, div)
            A_norm = A / W

        elif divisor == "size":
            sizes = _check_divisor(A, div)
            # R[i, j, s] = size_i + size_j
            R = sizes + np.swapaxes(sizes, 0, 1)
            A_norm = 2 * A / (P * R)

        else:
            A_norm = map_slices(_row_stochastic, A)

    LOG.debug("Normalized %d matrices by %s", A.shape[-1], divisor)
    return A_norm
