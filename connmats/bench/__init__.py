"""bench: Lazy grid stacks of matrix files.

A GridStack names the grid files of one measurement and reads them on
first access. The @evaluate_datasets decorator lets the pipeline stages
accept either raw arrays or Dataset objects transparently.
"""

from .dataset import (
    Dataset,
    GridStack,
    grid_stack,
    evaluate_datasets,
)
