"""
Isotropic Wavelet Kernels

Radial frequency envelopes of the mother wavelets used by the pyramid.

Theory:
    Every family is a band-pass mother ψ(w) of the normalized radial
    frequency w = |ω|/π (per-axis Nyquist at w = 1), supported in (1/4, 1],
    satisfying the dyadic partition of unity

        ψ(w)² + ψ(2w)² = 1    for w ∈ (1/4, 1/2]

    One pyramid level is split into a high pass H and a low pass Lo:

        H(w)  = 1 for w ≥ 1/2,  ψ(w) otherwise
        Lo(w) = 1 for w ≤ 1/4,  ψ(2w) on (1/4, 1/2),  0 for w ≥ 1/2

    so that H² + Lo² = 1 everywhere and Lo vanishes where the next level
    discards the spectrum.

References:
    - Portilla & Simoncelli (2000), "A parametric texture model based on
      joint statistics of complex wavelet coefficients"
    - Held et al. (2010), "Steerable wavelet frames based on the Riesz
      transform"
    - Papadakis et al. (2003), "Variance-optimized wavelets" (Vow)
    - Chenouard & Unser (2012), "3D steerable wavelets in practice"
"""

import math
from dataclasses import dataclass
from typing import Dict, Type

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True)
class IsotropicKernel:
    """
    Base class of the isotropic wavelet families.

    Subclasses implement `magnitude`; `high_pass` and `low_pass` derive the
    two halves of a pyramid level from it.
    """

    name = "isotropic"

    def magnitude(self, freq_norm: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def high_pass(self, freq_norm: np.ndarray) -> np.ndarray:
        """H(w): ψ(w) below w = 1/2, 1 above."""
        w = np.asarray(freq_norm, dtype=np.float64)
        return np.where(w >= 0.5, 1.0, self.magnitude(w))

    def low_pass(self, freq_norm: np.ndarray) -> np.ndarray:
        """Lo(w): 1 below w = 1/4, ψ(2w) on the transition, 0 from w = 1/2."""
        w = np.asarray(freq_norm, dtype=np.float64)
        out = np.where(w <= 0.25, 1.0, self.magnitude(2.0 * w))
        return np.where(w >= 0.5, 0.0, out)

    def __call__(self, freq_norm: np.ndarray) -> np.ndarray:
        return self.magnitude(freq_norm)


def _log2_2w(w: np.ndarray) -> np.ndarray:
    # only read inside the support; w = 0 is replaced before log2
    return np.log2(2.0 * np.where(w > 0, w, 1.0))


@dataclass(frozen=True)
class SimoncelliWavelet(IsotropicKernel):
    """
    Simoncelli wavelet.

        ψ(w) = cos(π/2 · log2(2w)),   w ∈ (1/4, 1]
    """

    name = "Simoncelli"

    def magnitude(self, freq_norm: np.ndarray) -> np.ndarray:
        w = np.asarray(freq_norm, dtype=np.float64)
        support = (w > 0.25) & (w <= 1.0)
        return np.where(support, np.cos(0.5 * np.pi * _log2_2w(w)), 0.0)


def smoothstep_polynomial(t: np.ndarray, order: int = 3) -> np.ndarray:
    """
    Symmetric smoothstep q_n(t) of degree 2n+1 on [0, 1].

    q(0) = 0, q(1) = 1, q(t) + q(1 - t) = 1 and the first n derivatives
    vanish at both ends. For n = 3:

        q(t) = t⁴ (35 - 84t + 70t² - 20t³)
    """
    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    total = np.zeros_like(t)
    for k in range(order + 1):
        coeff = math.comb(order + k, k) * math.comb(2 * order + 1, order - k)
        total += coeff * (-t) ** k
    return t ** (order + 1) * total


@dataclass(frozen=True)
class HeldWavelet(IsotropicKernel):
    """
    Held wavelet with a smoothstep transition of the given polynomial order.

        ψ(w) = sin(π/2 · q(s + 1)),  w ∈ (1/4, 1/2]
        ψ(w) = cos(π/2 · q(s)),      w ∈ (1/2, 1]
        s = log2(2w)
    """

    polynomial_order: int = 3
    name = "Held"

    def __post_init__(self):
        if self.polynomial_order < 0:
            raise ConfigurationError(
                f"Held polynomial_order must be >= 0, got {self.polynomial_order}"
            )

    def magnitude(self, freq_norm: np.ndarray) -> np.ndarray:
        w = np.asarray(freq_norm, dtype=np.float64)
        s = _log2_2w(w)
        rising = np.sin(0.5 * np.pi * smoothstep_polynomial(s + 1.0, self.polynomial_order))
        falling = np.cos(0.5 * np.pi * smoothstep_polynomial(s, self.polynomial_order))
        out = np.where((w > 0.25) & (w <= 0.5), rising, 0.0)
        return np.where((w > 0.5) & (w <= 1.0), falling, out)


@dataclass(frozen=True)
class VowWavelet(IsotropicKernel):
    """
    Variance-optimized wavelet (Vow).

        ψ(w)² = 1/2 + arctan(κ(1 + 2s))/π,  w ∈ (1/4, 1/2]
        ψ(w)² = 1/2 + arctan(κ(1 - 2s))/π,  w ∈ (1/2, 1]
        s = log2(2w)

    The envelope jumps at the support edges; the partition of unity still
    holds exactly.
    """

    kappa: float = 0.75
    name = "Vow"

    def __post_init__(self):
        if self.kappa <= 0:
            raise ConfigurationError(f"Vow kappa must be positive, got {self.kappa}")

    def magnitude(self, freq_norm: np.ndarray) -> np.ndarray:
        w = np.asarray(freq_norm, dtype=np.float64)
        s = _log2_2w(w)
        rising = 0.5 + np.arctan(self.kappa * (1.0 + 2.0 * s)) / np.pi
        falling = 0.5 + np.arctan(self.kappa * (1.0 - 2.0 * s)) / np.pi
        sq = np.where((w > 0.25) & (w <= 0.5), rising, 0.0)
        sq = np.where((w > 0.5) & (w <= 1.0), falling, sq)
        return np.sqrt(sq)


@dataclass(frozen=True)
class ShannonWavelet(IsotropicKernel):
    """
    Shannon wavelet (ideal band-pass).

        ψ(w) = 1,  w ∈ [1/2, 1)
    """

    name = "Shannon"

    def magnitude(self, freq_norm: np.ndarray) -> np.ndarray:
        w = np.asarray(freq_norm, dtype=np.float64)
        return np.where((w >= 0.5) & (w < 1.0), 1.0, 0.0)


WAVELET_FAMILIES: Dict[str, Type[IsotropicKernel]] = {
    "held": HeldWavelet,
    "vow": VowWavelet,
    "simoncelli": SimoncelliWavelet,
    "shannon": ShannonWavelet,
}


def get_kernel(wavelet, **params) -> IsotropicKernel:
    """
    Resolve a wavelet family.

    Parameters
    ----------
    wavelet : str or IsotropicKernel
        Family name ("Held", "Vow", "Simoncelli", "Shannon", case-insensitive)
        or an already-built kernel, which is returned unchanged.
    **params
        Family parameters (`polynomial_order` for Held, `kappa` for Vow).

    Returns
    -------
    kernel : IsotropicKernel
    """
    if isinstance(wavelet, IsotropicKernel):
        return wavelet
    try:
        family = WAVELET_FAMILIES[str(wavelet).lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown wavelet family: {wavelet}. "
            f"Use one of: {', '.join(k.name for k in WAVELET_FAMILIES.values())}"
        ) from None
    try:
        return family(**params)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid parameters for {family.name}: {exc}") from None


def verify_partition_of_unity(kernel: IsotropicKernel, n_samples: int = 1024) -> Dict:
    """
    Check ψ(w)² + ψ(2w)² = 1 on (1/4, 1/2] and H² + Lo² = 1 on [0, 2].

    Returns
    -------
    result : dict
        'dyadic_error', 'level_error' (max abs deviation) and 'passed'.
    """
    w = np.linspace(0.25, 0.5, n_samples + 1)[1:]
    dyadic = kernel.magnitude(w) ** 2 + kernel.magnitude(2.0 * w) ** 2
    grid = np.linspace(0.0, 2.0, 4 * n_samples + 1)
    level = kernel.high_pass(grid) ** 2 + kernel.low_pass(grid) ** 2
    dyadic_error = float(np.max(np.abs(dyadic - 1.0)))
    level_error = float(np.max(np.abs(level - 1.0)))
    return {
        'dyadic_error': dyadic_error,
        'level_error': level_error,
        'passed': dyadic_error < 1e-12 and level_error < 1e-12,
    }
