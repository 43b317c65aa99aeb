"""
Generalized Riesz Transform Filter Bank

The Riesz transform is the N-D generalization of the Hilbert transform. Its
order-N generalization has one component per multi-index α = (α_1, ..., α_d)
with α_i ≥ 0 and Σα_i = N:

    R_α(ω) = sqrt(N! / (α_1! ··· α_d!)) · Π_i (-i ω_i / |ω|)^α_i,   ω ≠ 0
    R_α(0) = 0

There are M = C(N + d - 1, d - 1) components. By the multinomial theorem

    Σ_α |R_α(ω)|² = (Σ_i ω_i² / |ω|²)^N = 1

so the bank is a tight frame on every sub-band it multiplies, and any
rotation of the directional basis is a linear combination of the M
components (steerability).

Components are enumerated in lexicographic order of decreasing α_1, then
α_2, ... For d = 3, N = 1 this is (1,0,0), (0,1,0), (0,0,1): the usual
R_x, R_y, R_z along array axes 0, 1, 2.

References:
    - Unser & Van De Ville (2010), "Wavelet steerability and the
      higher-order Riesz transform"
    - Chenouard & Unser (2012), "3D steerable wavelets in practice"
"""

import logging
import math
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError, GeometryError
from .frequency import frequency_grid, validate_shape

logger = logging.getLogger(__name__)


def _check_order(order: int) -> int:
    if int(order) != order or order < 1:
        raise ConfigurationError(f"Riesz order = {order}. It has to be greater than 0.")
    return int(order)


def number_of_components(order: int, dimension: int) -> int:
    """M = (N + d - 1)! / ((d - 1)! N!)."""
    order = _check_order(order)
    if dimension < 1:
        raise ConfigurationError(f"dimension must be >= 1, got {dimension}")
    return math.comb(order + dimension - 1, dimension - 1)


def riesz_indices(order: int, dimension: int) -> List[Tuple[int, ...]]:
    """
    All multi-indices of degree `order` in `dimension` parts.

    Ordered by decreasing first entry, then decreasing second entry, ...

    >>> riesz_indices(2, 2)
    [(2, 0), (1, 1), (0, 2)]
    """
    order = _check_order(order)
    if dimension < 1:
        raise ConfigurationError(f"dimension must be >= 1, got {dimension}")

    def compositions(total: int, parts: int):
        if parts == 1:
            yield (total,)
            return
        for first in range(total, -1, -1):
            for rest in compositions(total - first, parts - 1):
                yield (first,) + rest

    return list(compositions(order, dimension))


def multinomial_coefficient(alpha: Sequence[int]) -> int:
    """N! / (α_1! ··· α_d!) with N = Σα."""
    result = math.factorial(sum(alpha))
    for a in alpha:
        result //= math.factorial(a)
    return result


def riesz_filter_bank(
    shape: Sequence[int],
    order: int = 1,
) -> Tuple[List[np.ndarray], Dict[str, Any]]:
    """
    Create the generalized Riesz filter bank for a frequency grid.

    Parameters
    ----------
    shape : tuple of int
        Frequency grid shape; d = len(shape).
    order : int
        Riesz order N >= 1.

    Returns
    -------
    filters : list of ndarray (complex), length M
        One filter per multi-index, in `riesz_indices` order.
    info : dict
        'indices', 'order', 'dimension', 'n_components' and the energy
        check 'energy_ok' (Σ|R_α|² = 1 off DC).
    """
    order = _check_order(order)
    shape = validate_shape(shape)
    d = len(shape)
    indices = riesz_indices(order, d)

    grid = frequency_grid(shape)
    radius = np.sqrt(sum(g ** 2 for g in grid))
    dc = radius == 0
    safe_radius = np.where(dc, 1.0, radius)

    # -i ω_j / |ω| per axis, shared by every component
    directions = [(-1j) * g / safe_radius for g in grid]

    filters = []
    for alpha in indices:
        component = np.full(shape, np.sqrt(multinomial_coefficient(alpha)), dtype=np.complex128)
        for direction, power in zip(directions, alpha):
            if power:
                component *= direction ** power
        component[dc] = 0
        filters.append(component)

    energy = sum(np.abs(f) ** 2 for f in filters)
    info = {
        'shape': shape,
        'order': order,
        'dimension': d,
        'indices': indices,
        'n_components': len(filters),
        'energy_ok': bool(np.allclose(energy[~dc], 1.0, atol=1e-10)),
    }
    logger.debug("Generated Riesz bank: shape=%s order=%d components=%d",
                 shape, order, len(filters))
    return filters, info


class RieszFilterBankGenerator:
    """
    Memoizing generator of generalized Riesz filter banks.

    The order is the only configuration; `set_order` validates it and
    returns the new component count. Callers must re-query
    `number_of_components` (or use the returned value) after every order
    change. Cached banks are read-only and keyed by grid shape.

    Parameters
    ----------
    order : int
        Riesz order N >= 1.
    dimension : int, optional
        Grid dimension d. Taken from the reference image when not given.

    Example
    -------
    >>> gen = RieszFilterBankGenerator(order=1)
    >>> gen.set_output_parameters_from_image(band_spectrum)
    >>> components = gen.apply(band_spectrum)
    >>> assert len(components) == gen.number_of_components
    """

    def __init__(self, order: int = 1, dimension: Optional[int] = None):
        self._order = _check_order(order)
        self._cache: Dict[Tuple[int, ...], List[np.ndarray]] = {}
        self._lock = threading.Lock()
        self.dimension = dimension
        self.shape: Optional[Tuple[int, ...]] = None
        self.spacing: Optional[Tuple[float, ...]] = None

    @property
    def order(self) -> int:
        return self._order

    def set_order(self, order: int) -> Optional[int]:
        """
        Set N and drop banks built for the previous order.

        Returns the new number of components, or None while the dimension
        is still unknown.
        """
        order = _check_order(order)
        with self._lock:
            if order != self._order:
                self._order = order
                self._cache.clear()
        if self.dimension is None:
            return None
        return self.number_of_components

    @property
    def number_of_components(self) -> int:
        """M for the current order and dimension."""
        if self.dimension is None:
            raise GeometryError("Dimension unknown; call set_output_parameters_from_image")
        return number_of_components(self._order, self.dimension)

    @property
    def indices(self) -> List[Tuple[int, ...]]:
        if self.dimension is None:
            raise GeometryError("Dimension unknown; call set_output_parameters_from_image")
        return riesz_indices(self._order, self.dimension)

    def set_output_parameters_from_image(
        self,
        image: np.ndarray,
        spacing: Optional[Sequence[float]] = None,
    ) -> None:
        """Take the output geometry from a reference (frequency) image."""
        shape = validate_shape(np.shape(image))
        if self.dimension is not None and self.dimension != len(shape):
            raise GeometryError(
                f"Reference image is {len(shape)}-D, generator is {self.dimension}-D"
            )
        self.shape = shape
        self.dimension = len(shape)
        self.spacing = tuple(spacing) if spacing is not None else (1.0,) * len(shape)

    def generate(self, shape: Optional[Sequence[int]] = None) -> List[np.ndarray]:
        """Filters for `shape` (default: the geometry set from an image)."""
        if shape is None:
            if self.shape is None:
                raise GeometryError("No shape given and output geometry not set")
            shape = self.shape
        shape = validate_shape(shape)
        if self.dimension is not None and self.dimension != len(shape):
            raise GeometryError(f"Expected a {self.dimension}-D grid, got shape {shape}")
        with self._lock:
            filters = self._cache.get(shape)
            if filters is None:
                filters, _ = riesz_filter_bank(shape, self._order)
                for f in filters:
                    f.setflags(write=False)
                self._cache[shape] = filters
            return filters

    def apply(self, spectrum: np.ndarray) -> List[np.ndarray]:
        """Multiply a spectrum by every Riesz component."""
        return [spectrum * f for f in self.generate(np.shape(spectrum))]
