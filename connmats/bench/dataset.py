"""Lazy grid stacks and the @evaluate_datasets decorator.

A GridStack names the per-subject grid files of one measurement and reads
them into a single (Nv, ncols, N) array the first time its value is
needed. create_mats and apply_thresholds take their inputs as GridStacks
(file lists and single paths are wrapped into one), and the array stages
of the pipeline are wrapped in @evaluate_datasets, so a GridStack can be
handed straight to normalize_mats or symmetrize_array.
"""

from pathlib import Path
from dataclasses import dataclass, field

from connmats.errors import InputError
from connmats.utils import get_logger

LOG = get_logger("bench.dataset")


@dataclass
class Dataset:
    """A named piece of data, loaded on first access.

    Subclasses implement load(); value caches what it returns.

    Parameters
    ----------
    name : str
        Human-readable name, used in log messages.
    description : str, optional
        What this dataset contains.
    """

    name: str
    description: str = None

    def define(self):
        """Serializable definition of this dataset, for provenance."""
        return {
            "class": self.__class__.__qualname__,
            "name": self.name,
            "description": self.description or "Not provided",
        }

    def load(self):
        raise NotImplementedError(f"{self.__class__.__qualname__} cannot load data")

    @property
    def value(self):
        """The dataset's data; loaded on first access, then cached."""
        try:
            return self._value
        except AttributeError:
            LOG.debug("Loading dataset '%s'", self.name)
            self._value = self.load()
            return self._value

    @property
    def is_loaded(self):
        return hasattr(self, "_value")


@dataclass
class GridStack(Dataset):
    """Per-subject grid files, loaded together as one (Nv, ncols, N) array.

    Parameters
    ----------
    files : list of Path or str, or a single path
        One grid file per subject, in subject order.
    ncols : int, optional
        Columns per grid; None for square connection matrices, 1 for
        divisor files.
    """

    files: list = field(default_factory=list)
    ncols: int = None

    def __post_init__(self):
        if isinstance(self.files, (str, Path)):
            self.files = [self.files]
        self.files = [Path(f) for f in self.files]

    def __len__(self):
        return len(self.files)

    def check(self):
        """Raise InputError unless every file exists; returns self."""
        from connmats.matrices.io import check_files
        check_files(self.files)
        return self

    def load(self):
        from connmats.matrices.io import read_array
        LOG.debug("Reading grid stack '%s' (%d files)", self.name, len(self.files))
        return read_array(self.files, ncols=self.ncols)

    def define(self):
        definition = super().define()
        definition["files"] = [str(f) for f in self.files]
        definition["ncols"] = self.ncols
        return definition


def grid_stack(files, name, ncols=None):
    """A GridStack of files: a GridStack, a sequence of paths, or one path.

    A GridStack passed in is returned as it is, after checking that it
    reads grids with ncols columns.
    """
    if isinstance(files, GridStack):
        if files.ncols != ncols:
            raise InputError(
                f"Grid stack '{files.name}' reads {files.ncols} columns, "
                f"{name} need {ncols}"
            )
        return files
    return GridStack(name=name, files=files, ncols=ncols)


def evaluate_datasets(method):
    """Decorator: unwrap Dataset arguments to their .value before calling.

    Only Dataset instances are unwrapped; arrays and every other argument
    pass through unchanged.
    """

    def _unwrap(arg):
        return arg.value if isinstance(arg, Dataset) else arg

    def wrapper(*args, **kwargs):
        unwrapped_args = tuple(_unwrap(a) for a in args)
        unwrapped_kwargs = {k: _unwrap(v) for k, v in kwargs.items()}
        return method(*unwrapped_args, **unwrapped_kwargs)

    wrapper.__name__ = method.__name__
    wrapper.__qualname__ = method.__qualname__
    wrapper.__doc__ = method.__doc__
    wrapper.__module__ = method.__module__
    wrapper.__wrapped__ = method
    return wrapper
