"""Group connection matrices from per-subject matrix files.

create_mats takes the connection matrices of every subject (for example
FSL's fdt_network_matrix files, or DPABI's ROICorrelation.txt files),
normalizes them, thresholds them with one of four strategies, and
averages them per group:

    read_array → normalize_mats → apply_strategy → group_means

Usage::

    bundle = create_mats(files, inds=[range(0, 20), range(20, 45)],
                         divisor="waytotal", div_files=waytotals,
                         mat_thresh=[0.001, 0.005, 0.01])
    bundle.group_means[0][1]      # first threshold, second group
"""

from dataclasses import dataclass, field

import numpy as np

from connmats.bench.dataset import grid_stack
from connmats.config import MatrixConfig
from connmats.errors import ConfigurationError, InputError
from connmats.matrices.aggregate import density_group_means, group_means
from connmats.matrices.apply import apply_thresholds
from connmats.matrices.normalize import normalize_mats, zero_nan
from connmats.matrices.stack import GroupIndex, read_only
from connmats.matrices.threshold import apply_strategy
from connmats.utils import get_logger

LOG = get_logger("matrices.create")


@dataclass(frozen=True)
class MatrixBundle:
    """Everything create_mats computed, with every array read-only.

    Parameters
    ----------
    raw : np.ndarray
        (Nv, Nv, N) connection matrices as read, NaN set to 0.
    norm : np.ndarray
        The normalized matrices (equal to raw when not normalized).
    thresholded : list of np.ndarray
        One thresholded, symmetric (Nv, Nv, N) stack per threshold,
        subjects in file order.
    group_means : list of list of np.ndarray
        Per threshold, per group, the (Nv, Nv) mean matrix.
    binarized : list of np.ndarray or None
        consensus only: 0/1 stacks, value > threshold.
    vote_counts : list of list of np.ndarray or None
        consensus only: per threshold, per group, subjects with the edge.
    inclusion : list or None
        consensus: per threshold, per group 0/1 masks.
        consistency: per threshold, one 0/1 mask shared by all subjects.
    thresholds : tuple of float
    groups : GroupIndex
    config : MatrixConfig
    """

    raw: np.ndarray
    norm: np.ndarray
    thresholded: list
    group_means: list
    binarized: list = None
    vote_counts: list = None
    inclusion: list = None
    thresholds: tuple = ()
    groups: GroupIndex = None
    config: MatrixConfig = field(default_factory=MatrixConfig)

    def __post_init__(self):
        for name in ("raw", "norm", "thresholded", "group_means",
                     "binarized", "vote_counts", "inclusion"):
            read_only(getattr(self, name))

    @property
    def n_nodes(self):
        return self.raw.shape[0]

    @property
    def n_subjects(self):
        return self.raw.shape[-1]

    def apply_to(self, W_files):
        """Threshold a second set of matrices with this bundle's edges."""
        return apply_thresholds(self.thresholded, self.group_means, W_files, self.groups)


def _resolve_config(config, options):
    if config is None:
        return MatrixConfig.from_dict(options)
    if options:
        raise ConfigurationError(
            f"Pass either a config or options, not both: {sorted(options)}"
        )
    if isinstance(config, MatrixConfig):
        return config
    return MatrixConfig.from_dict(config)


def create_mats(A_files, div_files=None, inds=None, config=None, **options):
    """Create normalized, thresholded and group-averaged connection matrices.

    Parameters
    ----------
    A_files : GridStack, sequence of str or Path, or one path
        One connection-matrix file per subject.
    div_files : GridStack (ncols=1), sequence of str or Path, optional
        One divisor file per subject (waytotal or region sizes, one value
        per line). Needed for the "waytotal" and "size" divisors.
    inds : GroupIndex or sequence of sequences of int, optional
        0-based file positions of each group's subjects. Every file must
        belong to exactly one group. Default: a single group.
    config : MatrixConfig or mapping, optional
        The options; alternatively pass them as keyword arguments
        (modality, divisor, threshold_by, mat_thresh, sub_thresh, algo,
        P, symm_by).

    Returns
    -------
    MatrixBundle

    Notes
    -----
    Normalization only runs for probabilistic DTI with a divisor. For
    deterministic DTI with the "size" divisor under consensus
    thresholding, the matrices are instead divided by region size after
    binarizing, with P = 1 whatever P was given.
    """
    config = _resolve_config(config, options)
    matrices = grid_stack(A_files, "matrices")
    if not len(matrices):
        raise InputError("No matrix files given")
    groups = GroupIndex.coerce(inds, len(matrices))

    divisors = None
    if config.needs_divisor_files:
        divisors = grid_stack(div_files or [], "divisors", ncols=1)
        if not len(divisors):
            raise ConfigurationError(
                f"The '{config.divisor}' divisor needs divisor files"
            )
        if len(divisors) != len(matrices):
            raise ConfigurationError(
                f"{len(divisors)} divisor files for {len(matrices)} matrix files"
            )
        divisors.check()
    matrices.check()

    A = zero_nan(matrices.value)
    div = divisors.value if divisors is not None else None
    LOG.info("Loaded %d subjects in %d group(s), %d nodes",
             A.shape[-1], len(groups), A.shape[0])

    A_norm = A.copy()
    if config.normalizes:
        A_norm = zero_nan(normalize_mats(A, config.divisor, div, P=config.P))

    renorm = None
    if config.renormalizes_after_binarizing:
        def renorm(stack):
            return zero_nan(normalize_mats(stack, "size", div, P=1))

    result = apply_strategy(config.threshold_by, A_norm, config.mat_thresh, groups,
                            sub_thresh=config.sub_thresh, symm_by=config.symm_by,
                            renorm=renorm)

    means = [group_means(stack, groups) for stack in result.thresholded]
    if config.threshold_by == "density":
        means = [density_group_means(per_group, t)
                 for per_group, t in zip(means, config.mat_thresh)]

    return MatrixBundle(
        raw=A,
        norm=result.norm,
        thresholded=result.thresholded,
        group_means=means,
        binarized=result.binarized,
        vote_counts=result.vote_counts,
        inclusion=result.inclusion,
        thresholds=config.mat_thresh,
        groups=groups,
        config=config,
    )
