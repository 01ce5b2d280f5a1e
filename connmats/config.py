"""Options of the matrix pipeline.

A MatrixConfig is validated once, when it is built. Every later stage can
trust its fields. Options can be given as keyword arguments, as a mapping,
or as a YAML file; the dotted spellings ("threshold.by", "mat.thresh",
"sub.thresh", "symm.by") are accepted as aliases.
"""

from dataclasses import dataclass, field, fields, asdict
from numbers import Integral, Real
from pathlib import Path

import numpy as np
import yaml

from connmats.errors import ConfigurationError, InputError
from connmats.utils import as_tuple

MODALITIES = ("dti", "fmri")
DIVISORS = ("none", "waytotal", "size", "rowSums")
STRATEGIES = ("consensus", "density", "mean", "consistency")
ALGORITHMS = ("probabilistic", "deterministic")
SYMMETRIZE_MODES = ("max", "min", "avg")

# Strategies whose thresholds are fractions of the maximum edge count
FRACTIONAL_STRATEGIES = ("density", "consistency")


def check_choice(option, value, choices):
    """Raise ConfigurationError unless value is one of choices."""
    if value not in choices:
        raise ConfigurationError(
            f"Unknown {option} '{value}'; expected one of {', '.join(choices)}"
        )
    return value


@dataclass(frozen=True)
class MatrixConfig:
    """Validated options for create_mats.

    Parameters
    ----------
    modality : str
        "dti" (tractography) or "fmri". Normalization is skipped for fmri.
    divisor : str
        "none", "waytotal", "size" or "rowSums".
    threshold_by : str
        "consensus", "density", "mean" or "consistency".
    mat_thresh : float or sequence of float
        Thresholds; one result per value. Fractions in [0, 1] for density
        and consistency, raw connection weights otherwise.
    sub_thresh : float
        Fraction of a group's subjects that must have an edge (consensus).
    algo : str
        "probabilistic" or "deterministic" tractography.
    P : int
        Samples per seed voxel, used by the "size" divisor.
    symm_by : str
        "max", "min" or "avg", forwarded to symmetrize_mats.
    """

    modality: str = "dti"
    divisor: str = "none"
    threshold_by: str = "consensus"
    mat_thresh: tuple = field(default=(0.0,))
    sub_thresh: float = 0.5
    algo: str = "probabilistic"
    P: int = 5000
    symm_by: str = "max"

    def __post_init__(self):
        check_choice("modality", self.modality, MODALITIES)
        check_choice("divisor", self.divisor, DIVISORS)
        check_choice("threshold strategy", self.threshold_by, STRATEGIES)
        check_choice("algorithm", self.algo, ALGORITHMS)
        check_choice("symmetrize mode", self.symm_by, SYMMETRIZE_MODES)

        thresholds = as_tuple(self.mat_thresh)
        if not thresholds:
            raise ConfigurationError("At least one matrix threshold is required")
        if not all(isinstance(t, Real) and not isinstance(t, bool) for t in thresholds):
            raise ConfigurationError(f"Matrix thresholds must be numeric: {thresholds}")
        thresholds = tuple(float(t) for t in thresholds)
        if not all(np.isfinite(thresholds)):
            raise ConfigurationError(f"Matrix thresholds must be finite: {thresholds}")
        if self.threshold_by in FRACTIONAL_STRATEGIES:
            if not all(0 <= t <= 1 for t in thresholds):
                raise ConfigurationError(
                    f"Thresholds for '{self.threshold_by}' must lie in [0, 1]: "
                    f"{thresholds}"
                )
        object.__setattr__(self, "mat_thresh", thresholds)

        if (not isinstance(self.sub_thresh, Real) or isinstance(self.sub_thresh, bool)
                or not 0 <= self.sub_thresh <= 1):
            raise ConfigurationError(
                f"sub_thresh must lie in [0, 1], got {self.sub_thresh}"
            )
        if (not isinstance(self.P, Integral) or isinstance(self.P, bool)
                or self.P <= 0):
            raise ConfigurationError(f"P must be a positive integer, got {self.P}")

    @property
    def normalizes(self):
        """True when the loaded matrices are divided by a normalizer."""
        return (self.modality == "dti" and self.algo == "probabilistic"
                and self.divisor != "none")

    @property
    def renormalizes_after_binarizing(self):
        """Deterministic tractography normalized by region size after consensus."""
        return (self.modality == "dti" and self.algo == "deterministic"
                and self.divisor == "size" and self.threshold_by == "consensus")

    @property
    def needs_divisor_files(self):
        """True when the run will read divisor files."""
        if self.normalizes:
            return self.divisor in ("waytotal", "size")
        return self.renormalizes_after_binarizing

    def to_dict(self):
        """Plain dict of the options, for provenance."""
        definition = asdict(self)
        definition["mat_thresh"] = list(self.mat_thresh)
        return definition

    @classmethod
    def from_dict(cls, options):
        """Build from a mapping; dotted keys are accepted as aliases."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in dict(options or {}).items():
            name = str(key).replace(".", "_")
            if name not in known:
                raise ConfigurationError(f"Unknown option '{key}'")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path):
        """Read options from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise InputError(f"Configuration file not found: {path}")
        with open(path, "r") as f:
            options = yaml.safe_load(f)
        if options is not None and not isinstance(options, dict):
            raise ConfigurationError(f"{path} does not hold a mapping of options")
        return cls.from_dict(options)
