"""Group mean matrices."""

import numpy as np

from connmats.bench.dataset import evaluate_datasets
from connmats.matrices.stack import GroupIndex, as_stack
from connmats.matrices.threshold import density_threshold


@evaluate_datasets
def group_means(stack, groups=None):
    """Elementwise mean over each group's subjects.

    Returns
    -------
    list of np.ndarray
        One (Nv, Nv) matrix per group, in group order.
    """
    stack = as_stack(stack)
    groups = GroupIndex.coerce(groups, stack.shape[-1])
    return [groups.subset(stack, g).mean(axis=-1) for g in range(len(groups))]


def density_group_means(means, density):
    """Re-threshold group means to the target density.

    Averaging subjects that each hit a density does not give a mean
    matrix with that density, so each group mean is thresholded again.
    """
    return [density_threshold(np.asarray(mean), density) for mean in means]
