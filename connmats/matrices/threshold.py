"""Thresholding strategies for stacks of connection matrices.

Four mutually exclusive strategies reduce a normalized stack to one
thresholded stack per threshold value:

    consensus    keep an edge for a group when at least sub_thresh of the
                 group's subjects have a value above the threshold
    density      keep each subject's strongest edges, so that a fraction
                 of all possible edges survives
    mean         keep an edge when the cross-subject mean plus two
                 standard deviations exceeds the threshold
    consistency  keep the edges whose coefficient of variation across
                 subjects is lowest, to a target density; see Roberts et
                 al. (2017), NeuroImage 145:118-129

Density and consistency select their cutoff by rank (rank_cutoff). Ties at
the cutoff value count as being at or below it, so they are all dropped;
with many tied weights the resulting density can fall short of the
target.
"""

from collections import namedtuple

import numpy as np
from scipy import stats

from connmats.bench.dataset import evaluate_datasets
from connmats.config import STRATEGIES, check_choice
from connmats.matrices.stack import (
    GroupIndex,
    as_stack,
    lower_triangle,
    map_slices,
    reduce_subjects,
)
from connmats.matrices.symmetrize import symmetrize_array, symmetrize_mats
from connmats.utils import as_tuple, get_logger

LOG = get_logger("matrices.threshold")


class ThresholdResult(namedtuple("ThresholdResult",
                                 ["norm", "thresholded", "binarized", "vote_counts", "inclusion"],
                                 defaults=(None, None, None))):
    """What a strategy produces; fields it does not use are None.

    Fields
    ------
    norm : np.ndarray
        The normalized stack the thresholded values were taken from.
    thresholded : list of np.ndarray
        One thresholded, symmetric stack per threshold.
    binarized : list of np.ndarray or None
        consensus: stack of 0/1 (value > threshold) per threshold.
    vote_counts : list of list of np.ndarray or None
        consensus: per threshold, per group, the number of subjects with
        the edge present.
    inclusion : list or None
        consensus: per threshold, a list of per-group 0/1 masks.
        consistency: per threshold, one 0/1 mask shared by all subjects.
    """

    __slots__ = ()


# ---------------------------------------------------------------------------
# Rank selection
# ---------------------------------------------------------------------------

def rank_cutoff(values, fraction, descending=False):
    """The order statistic that leaves `fraction` of the values above it.

    With emax values, the cutoff is the value at 1-based rank
    k = floor(emax - fraction * emax) of the sorted values (ascending, or
    descending when `descending` is True). Callers keep values strictly
    beyond the cutoff, so values tied with it are excluded.

    When k < 1 (fraction = 1) the cutoff is -inf (ascending) or +inf
    (descending) and every finite value is kept.
    """
    values = np.ravel(np.asarray(values, dtype=float))
    emax = values.size
    k = int(np.floor(emax - fraction * emax))
    if k < 1:
        return np.inf if descending else -np.inf
    ordered = np.sort(values)
    if descending:
        ordered = ordered[::-1]
    return ordered[k - 1]


def density_threshold(matrix, density):
    """Zero every entry at or below the density cutoff of the lower triangle."""
    matrix = np.asarray(matrix, dtype=float)
    cutoff = rank_cutoff(lower_triangle(matrix), density)
    return np.where(matrix > cutoff, matrix, 0.0)


# ---------------------------------------------------------------------------
# consensus
# ---------------------------------------------------------------------------

def consensus_masks(vote_counts, sizes, sub_thresh):
    """Per-group inclusion masks from per-group vote counts.

    An edge is included for a group when at least sub_thresh of the
    group's subjects voted for it; with sub_thresh == 0, a single vote is
    enough.
    """
    if sub_thresh == 0:
        return [(votes > 0).astype(int) for votes in vote_counts]
    return [(votes >= sub_thresh * size).astype(int)
            for votes, size in zip(vote_counts, sizes)]


@evaluate_datasets
def threshold_consensus(A_norm, thresholds, groups=None, sub_thresh=0.5,
                        symm_by="max", renorm=None):
    """Group consensus thresholding.

    Parameters
    ----------
    A_norm : np.ndarray
        Normalized stack (Nv, Nv, N).
    thresholds : float or sequence of float
        An edge is present in a subject when its value is strictly
        greater than the threshold.
    groups : GroupIndex, optional
        Subject grouping; a single group by default.
    sub_thresh : float
        Fraction of a group's subjects that must have the edge.
    symm_by : str
        Symmetrization of the thresholded matrices.
    renorm : callable, optional
        Applied to A_norm after binarizing and before the group masks are
        applied (deterministic tractography normalized by region size).

    Returns
    -------
    ThresholdResult
    """
    A_norm = as_stack(A_norm)
    thresholds = as_tuple(thresholds)
    groups = GroupIndex.coerce(groups, A_norm.shape[-1])

    binarized = [(A_norm > t).astype(int) for t in thresholds]
    vote_counts = [[groups.subset(bin_stack, g).sum(axis=-1)
                    for g in range(len(groups))]
                   for bin_stack in binarized]

    if renorm is not None:
        A_norm = renorm(A_norm)

    inclusion = [consensus_masks(votes, groups.sizes, sub_thresh)
                 for votes in vote_counts]

    thresholded = []
    for t, masks in zip(thresholds, inclusion):
        filtered = np.concatenate(
            [np.where(mask[:, :, np.newaxis] == 1, groups.subset(A_norm, g), 0.0)
             for g, mask in enumerate(masks)],
            axis=-1)
        thresholded.append(symmetrize_array(groups.scatter(filtered), symm_by=symm_by))
        LOG.debug("consensus %g: %s edges kept per group", t,
                  [int(mask.sum()) for mask in masks])

    return ThresholdResult(A_norm, thresholded, binarized, vote_counts, inclusion)


# ---------------------------------------------------------------------------
# density
# ---------------------------------------------------------------------------

@evaluate_datasets
def threshold_density(A_norm, thresholds, symm_by="max"):
    """Keep each subject's strongest edges at the target densities."""
    A_norm = as_stack(A_norm)
    A_sym = symmetrize_array(A_norm, symm_by=symm_by)
    thresholded = [map_slices(density_threshold, A_sym, density=t)
                   for t in as_tuple(thresholds)]
    return ThresholdResult(A_norm, thresholded)


# ---------------------------------------------------------------------------
# consistency
# ---------------------------------------------------------------------------

def coefficient_of_variation(A):
    """Per-edge std / mean across subjects (population std).

    Edges with an undefined coefficient (zero mean) get +inf, ranking them
    as the least consistent.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        cv = reduce_subjects(stats.variation, A)
    cv = np.asarray(cv, dtype=float)
    cv[np.isnan(cv)] = np.inf
    return cv


@evaluate_datasets
def threshold_consistency(A_norm, thresholds, groups=None, symm_by="max"):
    """Keep the edges that vary least across subjects, to target densities.

    One mask per threshold is shared by every subject.
    """
    A_norm = as_stack(A_norm)
    groups = GroupIndex.coerce(groups, A_norm.shape[-1])

    all_cv = symmetrize_mats(coefficient_of_variation(A_norm), "min")
    grouped = groups.gather(A_norm)

    inclusion, thresholded = [], []
    for t in as_tuple(thresholds):
        cutoff = rank_cutoff(lower_triangle(all_cv), t, descending=True)
        mask = (all_cv < cutoff).astype(int)
        filtered = np.where(mask[:, :, np.newaxis] == 1, grouped, 0.0)
        filtered = symmetrize_array(filtered, symm_by=symm_by)
        inclusion.append(mask)
        thresholded.append(groups.scatter(filtered))
        LOG.debug("consistency %g: CV cutoff %g", t, cutoff)

    return ThresholdResult(A_norm, thresholded, inclusion=inclusion)


# ---------------------------------------------------------------------------
# mean
# ---------------------------------------------------------------------------

@evaluate_datasets
def threshold_mean(A_norm, thresholds, symm_by="max"):
    """Keep edges whose cross-subject mean + 2 SD exceeds the threshold.

    The SD is the sample SD; with a single subject it is taken as 0.
    """
    A_norm = as_stack(A_norm)
    all_mean = reduce_subjects(np.mean, A_norm)
    if A_norm.shape[-1] > 1:
        all_sd = reduce_subjects(np.std, A_norm, ddof=1)
    else:
        all_sd = np.zeros_like(all_mean)
    all_thresh = all_mean + 2 * all_sd

    thresholded = [
        symmetrize_array(A_norm * (all_thresh > t)[:, :, np.newaxis], symm_by=symm_by)
        for t in as_tuple(thresholds)
    ]
    return ThresholdResult(A_norm, thresholded)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def apply_strategy(threshold_by, A_norm, thresholds, groups=None, sub_thresh=0.5,
                   symm_by="max", renorm=None):
    """Run one of the four strategies by name."""
    check_choice("threshold strategy", threshold_by, STRATEGIES)
    LOG.info("Thresholding %d subjects by %s at %d threshold(s)",
             np.shape(A_norm)[-1], threshold_by, len(as_tuple(thresholds)))

    if threshold_by == "consensus":
        return threshold_consensus(A_norm, thresholds, groups, sub_thresh=sub_thresh,
                                   symm_by=symm_by, renorm=renorm)
    if threshold_by == "density":
        return threshold_density(A_norm, thresholds, symm_by=symm_by)
    if threshold_by == "consistency":
        return threshold_consistency(A_norm, thresholds, groups, symm_by=symm_by)
    return threshold_mean(A_norm, thresholds, symm_by=symm_by)
