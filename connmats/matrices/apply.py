"""Threshold a second set of matrices with edges chosen on the first.

After create_mats has chosen the edges of, say, streamline-count matrices,
apply_thresholds keeps exactly those edges in another measurement of the
same subjects (FA-weighted matrices, for example). Both sets then have
the same connections.
"""

from dataclasses import dataclass

import numpy as np

from connmats.bench.dataset import grid_stack
from connmats.errors import InputError
from connmats.matrices.normalize import zero_nan
from connmats.matrices.stack import GroupIndex, as_stack, read_only
from connmats.utils import get_logger

LOG = get_logger("matrices.apply")


@dataclass(frozen=True)
class CoThresholdResult:
    """The second set of matrices, thresholded.

    Parameters
    ----------
    raw : np.ndarray
        (Nv, Nv, N) matrices as read, NaN set to 0.
    thresholded : list of np.ndarray
        Per threshold, raw values where the mask stack is positive.
    group_means : list of list of np.ndarray
        Per threshold, per group, mean of the thresholded values where the
        group mean mask is positive.
    """

    raw: np.ndarray
    thresholded: list
    group_means: list

    def __post_init__(self):
        for name in ("raw", "thresholded", "group_means"):
            read_only(getattr(self, name))


def apply_thresholds(sub_mats, group_mats, W_files, inds=None):
    """Keep the entries of W that are present in the thresholded matrices.

    Parameters
    ----------
    sub_mats : list of np.ndarray
        Per threshold, an (Nv, Nv, N) stack (MatrixBundle.thresholded).
    group_mats : list of list of np.ndarray
        Per threshold, per group, an (Nv, Nv) matrix
        (MatrixBundle.group_means).
    W_files : GridStack, sequence of str or Path, or one path
        The second set of matrix files, in the same subject order.
    inds : GroupIndex or sequence of sequences of int, optional
        The grouping used for group_mats.

    Returns
    -------
    CoThresholdResult
    """
    if len(sub_mats) != len(group_mats):
        raise InputError(
            f"{len(sub_mats)} subject stacks but {len(group_mats)} sets of group matrices"
        )

    W = zero_nan(grid_stack(W_files, "second measurement").value)
    groups = GroupIndex.coerce(inds, W.shape[-1])

    W_sub = []
    for masks in sub_mats:
        masks = as_stack(masks)
        if masks.shape != W.shape:
            raise InputError(
                f"Mask stack of shape {masks.shape} does not match matrices {W.shape}"
            )
        W_sub.append(np.where(masks > 0, W, 0.0))

    W_mean = []
    for W_thresh, group_masks in zip(W_sub, group_mats):
        if len(group_masks) != len(groups):
            raise InputError(
                f"{len(group_masks)} group matrices for {len(groups)} groups"
            )
        W_mean.append([
            np.where(np.asarray(mask) > 0, groups.subset(W_thresh, g).mean(axis=-1), 0.0)
            for g, mask in enumerate(group_masks)
        ])

    LOG.info("Applied %d threshold(s) to %d matrices", len(W_sub), W.shape[-1])
    return CoThresholdResult(raw=W, thresholded=W_sub, group_means=W_mean)
