"""End-to-end tests for create_mats."""

import numpy as np
import pytest
import yaml

from connmats.bench.dataset import GridStack
from connmats.config import MatrixConfig
from connmats.errors import ConfigurationError, InputError
from connmats.matrices.create import MatrixBundle, create_mats
from connmats.matrices.io import write_grid
from connmats.matrices.stack import GroupIndex, lower_triangle, max_edges


@pytest.fixture
def ones_files(write_stack):
    """Three subjects with all-ones 4 x 4 matrices."""
    return write_stack(np.ones((4, 4, 3)))


@pytest.fixture
def random_files(write_stack, rng):
    """Eight subjects, six nodes, distinct positive weights."""
    stack = rng.random((6, 6, 8)) + 0.01
    return stack, write_stack(stack)


class TestConsensusExamples:
    def test_threshold_below_uniform_value(self, ones_files):
        bundle = create_mats(ones_files, inds=[[0, 1, 2]], threshold_by="consensus",
                             mat_thresh=0, sub_thresh=0.5)
        assert isinstance(bundle, MatrixBundle)
        assert np.all(bundle.binarized[0] == 1)
        assert np.all(bundle.vote_counts[0][0] == 3)
        assert np.all(bundle.inclusion[0][0] == 1)
        np.testing.assert_array_equal(bundle.thresholded[0], np.ones((4, 4, 3)))
        np.testing.assert_array_equal(bundle.group_means[0][0], np.ones((4, 4)))

    def test_threshold_equal_to_uniform_value(self, ones_files):
        bundle = create_mats(ones_files, inds=[[0, 1, 2]], threshold_by="consensus",
                             mat_thresh=1, sub_thresh=0.5)
        assert np.all(bundle.binarized[0] == 0)
        assert np.all(bundle.inclusion[0][0] == 0)
        assert not bundle.thresholded[0].any()
        assert not bundle.group_means[0][0].any()

    def test_one_result_per_threshold(self, ones_files):
        bundle = create_mats(ones_files, mat_thresh=[0, 0.5, 1])
        assert bundle.thresholds == (0.0, 0.5, 1.0)
        assert len(bundle.thresholded) == len(bundle.group_means) == 3
        assert len(bundle.binarized) == len(bundle.inclusion) == 3


class TestLoading:
    def test_nan_becomes_zero(self, tmp_path):
        path = tmp_path / "nan.txt"
        path.write_text("1 NaN\nNaN 1\n")
        bundle = create_mats([path])
        np.testing.assert_array_equal(bundle.raw[:, :, 0], np.eye(2))

    def test_subjects_stay_in_file_order(self, write_stack):
        stack = np.stack([np.full((3, 3), s + 1.0) for s in range(4)], axis=-1)
        files = write_stack(stack)
        bundle = create_mats(files, inds=[[3, 1], [0, 2]], mat_thresh=0)
        for s in range(4):
            assert np.all(bundle.thresholded[0][:, :, s] == s + 1)
        np.testing.assert_allclose(bundle.group_means[0][0], 3.0)
        np.testing.assert_allclose(bundle.group_means[0][1], 2.0)

    def test_group_index_object(self, ones_files):
        bundle = create_mats(ones_files, inds=GroupIndex.from_sizes([1, 2]))
        assert bundle.groups.sizes == (1, 2)
        assert len(bundle.group_means[0]) == 2

    def test_single_path(self, ones_files):
        bundle = create_mats(str(ones_files[0]))
        assert bundle.n_subjects == 1
        np.testing.assert_array_equal(bundle.raw[:, :, 0], np.ones((4, 4)))

    def test_grid_stacks(self, write_stack):
        matrices = GridStack(name="counts", files=write_stack(np.full((3, 3, 2), 8.0)))
        waytotals = GridStack(name="waytotal", ncols=1,
                              files=write_stack(np.full((3, 1, 2), 2.0), "way"))
        bundle = create_mats(matrices, div_files=waytotals, divisor="waytotal",
                             mat_thresh=0)
        assert matrices.is_loaded
        np.testing.assert_allclose(bundle.norm, 4.0)

    def test_square_grid_stack_as_divisors(self, ones_files):
        divisors = GridStack(name="waytotal", files=ones_files)
        with pytest.raises(InputError):
            create_mats(ones_files, div_files=divisors, divisor="waytotal")


class TestNormalization:
    def test_waytotal(self, write_stack, tmp_path):
        files = write_stack(np.full((3, 3, 2), 8.0))
        div_files = []
        for s, waytotal in enumerate([2.0, 4.0]):
            path = tmp_path / f"waytotal_{s}.txt"
            write_grid(path, np.full(3, waytotal))
            div_files.append(path)
        bundle = create_mats(files, divisor="waytotal", div_files=div_files, mat_thresh=0)
        np.testing.assert_allclose(bundle.norm[:, :, 0], 4.0)
        np.testing.assert_allclose(bundle.norm[:, :, 1], 2.0)
        np.testing.assert_allclose(bundle.raw, 8.0)

    def test_row_sums(self, write_stack):
        files = write_stack(np.ones((4, 4, 2)))
        bundle = create_mats(files, divisor="rowSums", mat_thresh=0)
        np.testing.assert_allclose(bundle.norm, 0.25)

    def test_fmri_ignores_divisor(self, ones_files):
        bundle = create_mats(ones_files, modality="fmri", divisor="waytotal")
        np.testing.assert_array_equal(bundle.norm, bundle.raw)

    def test_deterministic_size_after_binarizing(self, write_stack, tmp_path):
        files = write_stack(np.full((3, 3, 2), 10.0))
        div_files = []
        for s in range(2):
            path = tmp_path / f"size_{s}.txt"
            write_grid(path, np.full(3, 10.0))
            div_files.append(path)
        bundle = create_mats(files, divisor="size", div_files=div_files,
                             algo="deterministic", mat_thresh=5, P=5000)
        # Binarized on the raw counts (10 > 5), then divided by size with P = 1
        assert np.all(bundle.binarized[0] == 1)
        np.testing.assert_allclose(bundle.norm, 2 * 10.0 / (10.0 + 10.0))
        np.testing.assert_allclose(bundle.thresholded[0], 1.0)


class TestStrategies:
    def test_density_subjects_and_group_means(self, random_files):
        _, files = random_files
        bundle = create_mats(files, inds=[[0, 1, 2, 3], [4, 5, 6, 7]],
                             threshold_by="density", mat_thresh=[0.2, 0.6])
        for thresholded, means, density in zip(bundle.thresholded, bundle.group_means,
                                               bundle.thresholds):
            expected = round(density * max_edges(6))
            for s in range(8):
                assert np.count_nonzero(lower_triangle(thresholded[:, :, s])) == expected
            for mean in means:
                assert np.count_nonzero(lower_triangle(mean)) == expected

    def test_consistency_mask_shared(self, random_files):
        _, files = random_files
        bundle = create_mats(files, inds=[[7, 0, 1], [2, 3, 4, 5, 6]],
                             threshold_by="consistency", mat_thresh=0.4)
        thresholded = bundle.thresholded[0]
        np.testing.assert_array_equal(thresholded[:, :, 1] != 0, thresholded[:, :, 6] != 0)
        assert bundle.binarized is None
        assert bundle.inclusion[0].shape == (6, 6)

    def test_mean(self, random_files):
        stack, files = random_files
        bundle = create_mats(files, threshold_by="mean", mat_thresh=0, symm_by="min")
        expected = np.minimum(stack, np.swapaxes(stack, 0, 1))
        np.testing.assert_allclose(bundle.thresholded[0], expected)

    def test_avg_symmetrization(self, random_files):
        stack, files = random_files
        bundle = create_mats(files, mat_thresh=0, sub_thresh=0, symm_by="avg")
        expected = 0.5 * (stack + np.swapaxes(stack, 0, 1))
        np.testing.assert_allclose(bundle.thresholded[0], expected)


class TestConfiguration:
    def test_config_object(self, ones_files):
        cfg = MatrixConfig(mat_thresh=1)
        bundle = create_mats(ones_files, config=cfg)
        assert bundle.config is cfg

    def test_config_mapping_from_yaml(self, ones_files, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text(yaml.safe_dump({"threshold.by": "mean", "mat.thresh": [0.5]}))
        bundle = create_mats(ones_files, config=MatrixConfig.from_yaml(path))
        assert bundle.config.threshold_by == "mean"

    def test_config_and_options(self, ones_files):
        with pytest.raises(ConfigurationError):
            create_mats(ones_files, config=MatrixConfig(), mat_thresh=1)

    def test_bad_option_before_reading(self, tmp_path):
        missing = [tmp_path / "absent.txt"]
        with pytest.raises(ConfigurationError):
            create_mats(missing, threshold_by="density", mat_thresh=1.5)

    def test_nan_threshold_before_reading(self, tmp_path):
        missing = [tmp_path / "absent.txt"]
        with pytest.raises(ConfigurationError):
            create_mats(missing, threshold_by="density", mat_thresh=float("nan"))

    def test_group_sizes_must_match_files(self, ones_files):
        with pytest.raises(ConfigurationError):
            create_mats(ones_files, inds=[[0, 1]])

    def test_divisor_files_required(self, ones_files):
        with pytest.raises(ConfigurationError):
            create_mats(ones_files, divisor="waytotal")

    def test_one_divisor_file_per_subject(self, ones_files, tmp_path):
        path = tmp_path / "way.txt"
        write_grid(path, np.ones(4))
        with pytest.raises(ConfigurationError):
            create_mats(ones_files, divisor="waytotal", div_files=[path])


class TestInputErrors:
    def test_missing_matrix_file(self, ones_files, tmp_path):
        with pytest.raises(InputError):
            create_mats(ones_files + [tmp_path / "absent.txt"])

    def test_missing_single_path(self, tmp_path):
        missing = tmp_path / "absent.txt"
        with pytest.raises(InputError, match="absent.txt"):
            create_mats(str(missing))

    def test_missing_divisor_file(self, ones_files, tmp_path):
        div_files = [tmp_path / f"way_{s}.txt" for s in range(3)]
        with pytest.raises(InputError):
            create_mats(ones_files, divisor="size", div_files=div_files)

    def test_mismatched_matrix(self, ones_files, tmp_path):
        path = tmp_path / "small.txt"
        write_grid(path, np.ones((3, 3)))
        with pytest.raises(InputError):
            create_mats(ones_files + [path])

    def test_no_files(self):
        with pytest.raises(InputError):
            create_mats([])


class TestBundle:
    def test_arrays_are_read_only(self, ones_files):
        bundle = create_mats(ones_files)
        with pytest.raises(ValueError):
            bundle.raw[0, 0, 0] = 5
        with pytest.raises(ValueError):
            bundle.group_means[0][0][0, 0] = 5

    def test_frozen(self, ones_files):
        bundle = create_mats(ones_files)
        with pytest.raises(AttributeError):
            bundle.raw = None

    def test_shape_properties(self, ones_files):
        bundle = create_mats(ones_files)
        assert bundle.n_nodes == 4
        assert bundle.n_subjects == 3
