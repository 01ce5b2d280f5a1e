"""Connection stacks and the subject grouping.

A connection stack is a 3-d array (Nv, Nv, N): one Nv x Nv connection
matrix per subject, subject on the last axis. Strategy code never loops
over that axis by hand; it hands a per-matrix function to map_slices or
a per-edge reduction to reduce_subjects.

GroupIndex partitions subject positions into groups. Strategies gather
subjects group by group and scatter the results back, so that slice i of
every output belongs to the subject whose file was i-th in the input.
"""

from dataclasses import dataclass
from numbers import Integral

import numpy as np

from connmats.errors import ConfigurationError, InputError


def as_stack(A):
    """A float (Nv, Nv, N) array; a single matrix becomes a 1-subject stack."""
    A = np.asarray(A, dtype=float)
    if A.ndim == 2:
        A = A[:, :, np.newaxis]
    if A.ndim != 3 or A.shape[0] != A.shape[1]:
        raise InputError(f"Expected a stack of square matrices, got shape {A.shape}")
    return A


def map_slices(func, stack, **kwargs):
    """Apply func to every subject matrix and restack the results."""
    stack = np.asarray(stack)
    if stack.shape[-1] == 0:
        return stack.copy()
    slices = [func(stack[:, :, s], **kwargs) for s in range(stack.shape[-1])]
    return np.stack(slices, axis=-1)


def reduce_subjects(func, stack, **kwargs):
    """Reduce the subject axis with func, one value per node pair.

    func must accept an ``axis`` keyword, as numpy and scipy reductions do.
    """
    return func(np.asarray(stack), axis=-1, **kwargs)


def lower_triangle(matrix):
    """Strict lower-triangle values of a square matrix."""
    matrix = np.asarray(matrix)
    return matrix[np.tril_indices(matrix.shape[0], k=-1)]


def max_edges(nv):
    """Number of possible undirected edges among nv nodes."""
    return nv * (nv - 1) // 2


@dataclass(frozen=True)
class GroupIndex:
    """An ordered partition of subject positions into groups.

    Parameters
    ----------
    groups : sequence of sequences of int
        0-based subject positions, one sequence per group.

    Every position in 0..N-1 must appear exactly once, where N is the
    total number of positions listed.
    """

    groups: tuple

    def __post_init__(self):
        groups = []
        for members in self.groups:
            members = tuple(members) if np.ndim(members) else (members,)
            for s in members:
                if not isinstance(s, Integral) or isinstance(s, bool):
                    raise ConfigurationError(f"Subject index {s!r} is not an integer")
            groups.append(tuple(int(s) for s in members))
        if not groups:
            raise ConfigurationError("At least one group is required")
        if any(len(members) == 0 for members in groups):
            raise ConfigurationError("Groups must not be empty")

        order = [s for members in groups for s in members]
        if sorted(order) != list(range(len(order))):
            raise ConfigurationError(
                "Group indices must cover every subject position "
                f"0..{len(order) - 1} exactly once"
            )
        object.__setattr__(self, "groups", tuple(groups))

    @classmethod
    def single(cls, n_subjects):
        """All subjects in one group, in file order."""
        return cls((tuple(range(n_subjects)),))

    @classmethod
    def from_sizes(cls, sizes):
        """Consecutive groups of the given sizes."""
        bounds = np.cumsum([0] + list(sizes))
        return cls(tuple(tuple(range(a, b)) for a, b in zip(bounds[:-1], bounds[1:])))

    @classmethod
    def from_labels(cls, labels):
        """Group subjects by label, groups ordered by first appearance."""
        groups = {}
        for position, label in enumerate(labels):
            groups.setdefault(label, []).append(position)
        return cls(tuple(groups.values()))

    @classmethod
    def coerce(cls, inds, n_subjects):
        """A GroupIndex for n_subjects from None, a GroupIndex, or sequences."""
        groups = cls.single(n_subjects) if inds is None else (
            inds if isinstance(inds, cls) else cls(tuple(inds)))
        if groups.n_subjects != n_subjects:
            raise ConfigurationError(
                f"Group sizes {groups.sizes} sum to {groups.n_subjects}, "
                f"but there are {n_subjects} subjects"
            )
        return groups

    def __len__(self):
        return len(self.groups)

    def __iter__(self):
        return iter(self.groups)

    @property
    def sizes(self):
        return tuple(len(members) for members in self.groups)

    @property
    def n_subjects(self):
        return sum(self.sizes)

    @property
    def order(self):
        """Subject positions, group after group."""
        return np.array([s for members in self.groups for s in members], dtype=int)

    def subset(self, stack, group):
        """The slices of stack that belong to one group."""
        return np.asarray(stack)[..., list(self.groups[group])]

    def gather(self, stack):
        """Reorder the subject axis so that groups are contiguous."""
        return np.asarray(stack)[..., self.order]

    def scatter(self, stack):
        """Inverse of gather: put grouped slices back at their file positions."""
        stack = np.asarray(stack)
        if stack.shape[-1] != self.n_subjects:
            raise InputError(
                f"Cannot scatter {stack.shape[-1]} slices onto {self.n_subjects} subjects"
            )
        result = np.empty_like(stack)
        result[..., self.order] = stack
        return result


def read_only(obj):
    """Flag every array in a (nested) list as read-only; returns obj."""
    if isinstance(obj, np.ndarray):
        obj.flags.writeable = False
    elif isinstance(obj, (list, tuple)):
        for item in obj:
            read_only(item)
    return obj
