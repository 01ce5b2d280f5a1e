"""Symmetric connection matrices.

Off-diagonal entries (i, j) and (j, i) both take the max, the min, or the
average of the pair. The default is max, matching how undirected graphs
are usually built from an adjacency matrix. The diagonal is untouched.
"""

import numpy as np

from connmats.bench.dataset import evaluate_datasets
from connmats.config import SYMMETRIZE_MODES, check_choice
from connmats.errors import InputError
from connmats.matrices.stack import as_stack, map_slices


def symmetrize_mats(A, symm_by="max"):
    """Symmetrize one square matrix.

    Parameters
    ----------
    A : np.ndarray
        Square matrix.
    symm_by : str
        "max", "min" or "avg".

    Returns
    -------
    np.ndarray
        Symmetric matrix with the diagonal of A.
    """
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise InputError(f"Cannot symmetrize a matrix of shape {A.shape}")
    check_choice("symmetrize mode", symm_by, SYMMETRIZE_MODES)

    if symm_by == "avg":
        return 0.5 * (A + A.T)
    if symm_by == "max":
        return np.maximum(A, A.T)
    return np.minimum(A, A.T)


@evaluate_datasets
def symmetrize_array(A, symm_by="max"):
    """Symmetrize every subject matrix of a stack; the shape is kept."""
    check_choice("symmetrize mode", symm_by, SYMMETRIZE_MODES)
    return map_slices(symmetrize_mats, as_stack(A), symm_by=symm_by)
