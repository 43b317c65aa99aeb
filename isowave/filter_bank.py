"""
Isotropic Wavelet Filter Bank

One pyramid level of K band-pass filters plus one low-pass filter, built in
the frequency domain from an isotropic kernel (see kernels.py).

Theory:
    With the kernel's high pass H and K high-pass sub-bands, let

        P_k(w) = H(w · 2^(k/K)),   k = 0, ..., K-1

    P_k moves the transition down by k/K of an octave and P_k² grows with k.
    The filters telescope:

        band 0        = P_0
        band k        = sqrt(P_k² - P_{k-1}²),   k = 1, ..., K-1
        low pass      = sqrt(1 - P_{K-1}²)

    hence the Littlewood-Paley (partition of unity) identity

        Σ_k |band_k(ω)|² + |low(ω)|² = 1   for every ω

    holds exactly, and the low pass vanishes for w ≥ 1/2 so the next level
    can drop the upper half of the spectrum without loss.

References:
    - Chenouard & Unser (2012), "3D steerable wavelets in practice"
    - Unser & Van De Ville (2010), "Wavelet steerability and the
      higher-order Riesz transform"
"""

import logging
import threading
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError
from .frequency import normalized_radius, validate_shape
from .kernels import IsotropicKernel, get_kernel

logger = logging.getLogger(__name__)


def _check_bands(bands: int) -> int:
    if int(bands) != bands or bands < 1:
        raise ConfigurationError(f"Number of high-pass sub-bands must be >= 1, got {bands}")
    return int(bands)


def evaluate_sub_band(
    kernel: IsotropicKernel,
    freq_norm: np.ndarray,
    band: int,
    bands: int,
) -> np.ndarray:
    """
    Evaluate a single filter of a level.

    Parameters
    ----------
    kernel : IsotropicKernel
        Wavelet family.
    freq_norm : ndarray
        Normalized radial frequency |ω|/π.
    band : int
        0..bands-1 for the band-pass filters (0 = highest frequencies),
        `bands` for the low pass.
    bands : int
        Number of high-pass sub-bands K.

    Returns
    -------
    values : ndarray
        Real, non-negative filter values.
    """
    bands = _check_bands(bands)
    if band < 0 or band > bands:
        raise ConfigurationError(f"band must be in [0, {bands}], got {band}")
    w = np.asarray(freq_norm, dtype=np.float64)

    def p_sq(k):
        return kernel.high_pass(w * 2.0 ** (k / bands)) ** 2

    if band == bands:
        return np.sqrt(np.clip(1.0 - p_sq(bands - 1), 0.0, None))
    if band == 0:
        return kernel.high_pass(w)
    return np.sqrt(np.clip(p_sq(band) - p_sq(band - 1), 0.0, None))


def wavelet_filter_bank(
    shape: Sequence[int],
    bands: int = 1,
    wavelet="Simoncelli",
    **kernel_params,
) -> Tuple[List[np.ndarray], Dict[str, Any]]:
    """
    Create the filters of one isotropic wavelet pyramid level.

    Parameters
    ----------
    shape : tuple of int
        Frequency grid shape (same as the spectrum to be filtered).
    bands : int
        Number of high-pass sub-bands K (>= 1).
    wavelet : str or IsotropicKernel
        Held, Vow, Simoncelli or Shannon.
    **kernel_params
        Passed to the kernel (polynomial_order, kappa).

    Returns
    -------
    filters : list of ndarray, length K+1
        K band-pass filters from high to low frequency, then the low pass.
    info : dict
        Metadata including partition of unity verification.

    Examples
    --------
    >>> filters, info = wavelet_filter_bank((64, 64), bands=2, wavelet="Held")
    >>> assert info['pou_ok'], "Partition of unity failed"
    """
    bands = _check_bands(bands)
    shape = validate_shape(shape)
    kernel = get_kernel(wavelet, **kernel_params)

    w = normalized_radius(shape)

    # P_k² for k = 0..K-1
    p_sq = [kernel.high_pass(w * 2.0 ** (k / bands)) ** 2 for k in range(bands)]

    filters = [np.sqrt(p_sq[0])]
    for k in range(1, bands):
        filters.append(np.sqrt(np.clip(p_sq[k] - p_sq[k - 1], 0.0, None)))
    filters.append(np.sqrt(np.clip(1.0 - p_sq[-1], 0.0, None)))

    pou = sum(f ** 2 for f in filters)

    info = {
        'shape': shape,
        'bands': bands,
        'wavelet': kernel.name,
        'n_band_pass': bands,
        'n_low_pass': 1,
        'n_total': len(filters),
        'pou_min': float(pou.min()),
        'pou_max': float(pou.max()),
        'pou_ok': bool(np.allclose(pou, 1.0, atol=1e-10)),
    }
    logger.debug("Generated %s filter bank: shape=%s bands=%d pou=[%.3g, %.3g]",
                 kernel.name, shape, bands, info['pou_min'], info['pou_max'])

    return filters, info


def verify_littlewood_paley(filters: Sequence[np.ndarray], tol: float = 1e-10) -> Dict:
    """
    Verify the Littlewood-Paley condition Σ|F_k(ω)|² = 1.

    Parameters
    ----------
    filters : list of ndarray
        Filters of one level (band-pass and low pass).
    tol : float
        Allowed deviation from 1.

    Returns
    -------
    result : dict
        'sum_sq': ndarray - sum of squared magnitudes at each frequency
        'min', 'max', 'mean': float
        'passed': bool
    """
    sum_sq = np.zeros(np.shape(filters[0]), dtype=np.float64)
    for f in filters:
        sum_sq += np.abs(f) ** 2

    return {
        'sum_sq': sum_sq,
        'min': float(np.min(sum_sq)),
        'max': float(np.max(sum_sq)),
        'mean': float(np.mean(sum_sq)),
        'passed': bool(np.abs(sum_sq - 1.0).max() < tol),
    }


class WaveletFilterBankGenerator:
    """
    Memoizing generator of wavelet filter banks.

    Filter sets are cached per grid shape and returned as read-only arrays.
    Changing the number of bands or the wavelet family drops the cache.
    Generation and invalidation run under a lock, so threads sharing a
    generator never see a half-built set.

    Parameters
    ----------
    bands : int
        Number of high-pass sub-bands K.
    wavelet : str or IsotropicKernel
        Wavelet family.
    **kernel_params
        Family parameters.
    """

    def __init__(self, bands: int = 1, wavelet="Simoncelli", **kernel_params):
        self._bands = _check_bands(bands)
        self._kernel = get_kernel(wavelet, **kernel_params)
        self._cache: Dict[Tuple[int, ...], List[np.ndarray]] = {}
        self._lock = threading.Lock()

    @property
    def bands(self) -> int:
        return self._bands

    @property
    def kernel(self) -> IsotropicKernel:
        return self._kernel

    @property
    def number_of_outputs(self) -> int:
        return self._bands + 1

    def set_bands(self, bands: int) -> int:
        """Change K; returns the new number of filters per level."""
        bands = _check_bands(bands)
        with self._lock:
            if bands != self._bands:
                self._bands = bands
                self._cache.clear()
        return self.number_of_outputs

    def set_wavelet(self, wavelet, **kernel_params) -> None:
        kernel = get_kernel(wavelet, **kernel_params)
        with self._lock:
            if kernel != self._kernel:
                self._kernel = kernel
                self._cache.clear()

    def generate(self, shape: Sequence[int]) -> List[np.ndarray]:
        """Filters for `shape`: K band-pass filters then the low pass."""
        shape = validate_shape(shape)
        with self._lock:
            filters = self._cache.get(shape)
            if filters is None:
                filters, _ = wavelet_filter_bank(shape, self._bands, self._kernel)
                for f in filters:
                    f.setflags(write=False)
                self._cache[shape] = filters
            return filters

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
