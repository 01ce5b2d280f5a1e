"""connmats: Group connectivity matrices for brain graphs.

Builds thresholded, symmetric, group-averaged connection matrices from
per-subject tractography or fMRI connection-matrix files.

Subpackages:
    matrices  Loading, normalization, thresholding and group averaging
    bench     Lazy grid stacks and the @evaluate_datasets decorator
    graph     Contraction of an adjacency matrix by node group
    utils     Logging and small helpers

Modules:
    config    Validated pipeline options (MatrixConfig)
    errors    ConfigurationError, InputError
"""

__version__ = "0.1.0"

from connmats.bench import GridStack
from connmats.config import MatrixConfig
from connmats.errors import ConnmatsError, ConfigurationError, InputError
from connmats.matrices import (
    GroupIndex,
    MatrixBundle,
    create_mats,
    apply_thresholds,
    symmetrize_mats,
    symmetrize_array,
    normalize_mats,
    read_array,
)
