"""Tests for the bundle summary tables."""

import numpy as np
import pytest

from connmats.matrices.create import create_mats
from connmats.matrices.summary import group_summary, subject_densities


@pytest.fixture
def bundle(write_stack, rng):
    files = write_stack(rng.random((5, 5, 6)) + 0.01)
    return create_mats(files, inds=[[0, 2, 4], [1, 3, 5]],
                       threshold_by="density", mat_thresh=[0.2, 0.5])


class TestSubjectDensities:
    def test_one_row_per_threshold_and_subject(self, bundle):
        table = subject_densities(bundle)
        assert len(table) == 2 * 6
        assert list(table.columns) == ["threshold", "subject", "group",
                                       "n_edges", "density"]

    def test_densities_match_targets(self, bundle):
        table = subject_densities(bundle)
        for threshold, rows in table.groupby("threshold"):
            assert np.allclose(rows["density"], threshold)

    def test_groups_recorded(self, bundle):
        table = subject_densities(bundle)
        first = table[table["threshold"] == 0.2].set_index("subject")
        assert first.loc[2, "group"] == 0
        assert first.loc[3, "group"] == 1


class TestGroupSummary:
    def test_indexed_by_threshold_and_group(self, bundle):
        table = group_summary(bundle)
        assert table.index.names == ["threshold", "group"]
        assert len(table) == 4
        assert (table["n_subjects"] == 3).all()

    def test_group_means_hit_density(self, bundle):
        table = group_summary(bundle)
        assert table.loc[(0.5, 1), "n_edges"] == 5
        assert table.loc[(0.2, 0), "density"] == pytest.approx(0.2)
        assert (table["mean_strength"] > 0).all()
