"""Shared fixtures: write synthetic subject stacks to grid files."""

import numpy as np
import pytest

from connmats.matrices.io import write_grid


@pytest.fixture
def write_stack(tmp_path):
    """Write every slice of a 3-d array to its own grid file.

    Returns a function (stack, prefix) -> list of paths, in slice order.
    """
    def _write(stack, prefix="subject"):
        stack = np.asarray(stack, dtype=float)
        paths = []
        for s in range(stack.shape[-1]):
            path = tmp_path / f"{prefix}_{s:03d}.txt"
            write_grid(path, stack[:, :, s])
            paths.append(path)
        return paths
    return _write


@pytest.fixture
def rng():
    return np.random.default_rng(20170101)
