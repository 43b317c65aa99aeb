"""
Configuration of the steerable wavelet analysis.

A `PyramidConfig` is fixed before any transform runs. Changing a value means
building a new config (the dataclass is frozen), and with it new filter
generators.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .errors import ConfigurationError
from .kernels import WAVELET_FAMILIES

SUPPORTED_DIMENSIONS = (2, 3)

RECONSTRUCTION_FLAGS = {"Apply": True, "NoApply": False}


def wavelet_name(wavelet: str) -> str:
    """Canonical family name, ConfigurationError if unknown."""
    family = WAVELET_FAMILIES.get(str(wavelet).lower())
    if family is None:
        raise ConfigurationError(
            f"{wavelet} wavelet type not supported. "
            f"Use one of: {', '.join(k.name for k in WAVELET_FAMILIES.values())}"
        )
    return family.name


def parse_reconstruction_flag(value: str) -> bool:
    """'Apply' -> True, 'NoApply' -> False."""
    try:
        return RECONSTRUCTION_FLAGS[value]
    except KeyError:
        raise ConfigurationError(
            f"Unknown string: {value}. Use Apply or NoApply."
        ) from None


@dataclass(frozen=True)
class PyramidConfig:
    """
    Parameters of the pyramid + Riesz + structure tensor pipeline.

    Parameters
    ----------
    levels : int
        Pyramid levels L (>= 0).
    bands : int
        High-pass sub-bands per level K (>= 1).
    wavelet : str
        Held, Vow, Simoncelli or Shannon.
    riesz_order : int
        Generalized Riesz order N (>= 1).
    apply_reconstruction_factors : bool
        Undo the analysis normalization in the inverse pyramid.
    dimension : int
        Image dimension, 2 or 3.
    kernel_params : dict or sequence of (name, value) pairs
        Extra wavelet parameters (polynomial_order, kappa). Stored as a
        sorted tuple of items so the config stays hashable.
    """
    levels: int = 1
    bands: int = 1
    wavelet: str = "Simoncelli"
    riesz_order: int = 1
    apply_reconstruction_factors: bool = True
    dimension: int = 3
    kernel_params: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self):
        if int(self.levels) != self.levels or self.levels < 0:
            raise ConfigurationError(f"levels must be >= 0, got {self.levels}")
        if int(self.bands) != self.bands or self.bands < 1:
            raise ConfigurationError(f"bands must be >= 1, got {self.bands}")
        if int(self.riesz_order) != self.riesz_order or self.riesz_order < 1:
            raise ConfigurationError(
                f"Riesz order = {self.riesz_order}. It has to be greater than 0."
            )
        if self.dimension not in SUPPORTED_DIMENSIONS:
            raise ConfigurationError(
                f"Only 2 or 3 dimensions allowed, {self.dimension} selected."
            )
        object.__setattr__(self, "wavelet", wavelet_name(self.wavelet))
        object.__setattr__(self, "kernel_params", tuple(sorted(dict(self.kernel_params).items())))

    @property
    def number_of_outputs(self) -> int:
        return self.levels * self.bands + 1

    @property
    def kernel_kwargs(self) -> Dict[str, Any]:
        return dict(self.kernel_params)
