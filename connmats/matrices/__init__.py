"""matrices: Group connectivity matrices from per-subject files.

Load per-subject connection matrices, normalize them, threshold them by
consensus, density, mean or consistency, symmetrize them, and average
them per group. A second measurement can then be thresholded with the
same edges.

    io           text grid reading and writing
    stack        subject stacks, per-slice maps, GroupIndex
    normalize    waytotal, region size and row-sum normalization
    symmetrize   max / min / avg symmetrization
    threshold    the four thresholding strategies
    aggregate    group means
    create       create_mats and MatrixBundle
    apply        apply_thresholds for a second measurement
    summary      edge counts and densities as tables
"""

from .io import read_grid, read_array, write_grid, check_files
from .stack import (
    GroupIndex,
    as_stack,
    map_slices,
    reduce_subjects,
    lower_triangle,
    max_edges,
)
from .normalize import normalize_mats, zero_nan
from .symmetrize import symmetrize_mats, symmetrize_array
from .threshold import (
    ThresholdResult,
    rank_cutoff,
    density_threshold,
    consensus_masks,
    coefficient_of_variation,
    threshold_consensus,
    threshold_density,
    threshold_consistency,
    threshold_mean,
    apply_strategy,
)
from .aggregate import group_means, density_group_means
from .apply import CoThresholdResult, apply_thresholds
from .create import MatrixBundle, create_mats
from .summary import subject_densities, group_summary
