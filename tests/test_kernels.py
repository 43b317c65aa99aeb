#!/usr/bin/env python3
"""
Tests for the isotropic wavelet kernels

Checks, for every family (Held, Vow, Simoncelli, Shannon):
1. Hard support: exactly zero at DC and outside (1/4, 1]
2. Dyadic partition of unity ψ(w)² + ψ(2w)² = 1
3. One-level split H² + Lo² = 1, with Lo = 0 from w = 1/2 on
4. Name lookup and parameter validation

Run: python tests/test_kernels.py
"""

import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from isowave.errors import ConfigurationError
from isowave.kernels import (
    HeldWavelet,
    ShannonWavelet,
    SimoncelliWavelet,
    VowWavelet,
    WAVELET_FAMILIES,
    get_kernel,
    smoothstep_polynomial,
    verify_partition_of_unity,
)

FAMILIES = ["Held", "Vow", "Simoncelli", "Shannon"]


def test_zero_outside_support():
    """Every family is exactly 0 at DC and outside its support."""
    w = np.array([0.0, 0.1, 0.25, 1.2, 1.5, 2.0])
    for name in FAMILIES:
        kernel = get_kernel(name)
        values = kernel.magnitude(w)
        print(f"  {name:<12} {values}")
        assert np.all(values == 0.0), f"{name} leaks outside its support"


def test_dc_is_defined():
    """Evaluating at the origin gives 0 and no warnings."""
    for name in FAMILIES:
        kernel = get_kernel(name)
        with np.errstate(all="raise"):
            assert kernel.magnitude(np.zeros(3)).tolist() == [0.0, 0.0, 0.0]
            assert kernel.high_pass(np.zeros(1))[0] == 0.0
            assert kernel.low_pass(np.zeros(1))[0] == 1.0


def test_partition_of_unity():
    """ψ(w)² + ψ(2w)² = 1 and H² + Lo² = 1 for all families."""
    print(f"\n  {'Family':<12} {'dyadic err':<14} {'level err':<14}")
    for name in FAMILIES:
        result = verify_partition_of_unity(get_kernel(name))
        print(f"  {name:<12} {result['dyadic_error']:<14.2e} {result['level_error']:<14.2e}")
        assert result['passed'], f"{name}: {result}"


def test_low_pass_vanishes_above_half_nyquist():
    w = np.linspace(0.5, 1.8, 200)
    for name in FAMILIES:
        kernel = get_kernel(name)
        assert np.all(kernel.low_pass(w) == 0.0)
        assert np.all(kernel.high_pass(w) == 1.0)


def test_high_pass_is_monotone():
    """The sub-band construction needs a non-decreasing high pass."""
    w = np.linspace(0.0, 1.5, 3001)
    for name in FAMILIES:
        h = get_kernel(name).high_pass(w)
        assert np.all(np.diff(h) >= -1e-12), f"{name} high pass decreases"


def test_simoncelli_closed_form():
    kernel = SimoncelliWavelet()
    assert np.isclose(kernel.magnitude(0.5), 1.0)
    w = np.array([0.3, 0.7, 0.9])
    expected = np.cos(0.5 * np.pi * np.log2(2 * w))
    assert np.allclose(kernel.magnitude(w), expected)


def test_shannon_is_ideal():
    kernel = ShannonWavelet()
    assert kernel.magnitude(0.5) == 1.0
    assert kernel.magnitude(0.75) == 1.0
    assert kernel.magnitude(0.49) == 0.0
    assert kernel.magnitude(1.0) == 0.0


def test_smoothstep_symmetry():
    t = np.linspace(0, 1, 101)
    for order in range(0, 6):
        q = smoothstep_polynomial(t, order)
        assert np.isclose(q[0], 0.0) and np.isclose(q[-1], 1.0)
        assert np.allclose(q + q[::-1], 1.0, atol=1e-12), f"order {order}"
    # n = 3 is t⁴ (35 - 84t + 70t² - 20t³)
    q3 = t ** 4 * (35 - 84 * t + 70 * t ** 2 - 20 * t ** 3)
    assert np.allclose(smoothstep_polynomial(t, 3), q3)


def test_family_parameters():
    assert get_kernel("Held", polynomial_order=5) == HeldWavelet(polynomial_order=5)
    assert get_kernel("vow", kappa=1.5).kappa == 1.5
    for order in (1, 5):
        assert verify_partition_of_unity(HeldWavelet(order))['passed']
    assert verify_partition_of_unity(VowWavelet(kappa=2.0))['passed']


def test_lookup():
    assert isinstance(get_kernel("SIMONCELLI"), SimoncelliWavelet)
    assert isinstance(get_kernel("held"), HeldWavelet)
    kernel = ShannonWavelet()
    assert get_kernel(kernel) is kernel
    assert set(WAVELET_FAMILIES) == {"held", "vow", "simoncelli", "shannon"}


def test_unknown_family_rejected():
    for bad in ("Morlet", "", "Paul"):
        try:
            get_kernel(bad)
        except ConfigurationError as exc:
            assert isinstance(exc, ValueError)
        else:
            raise AssertionError(f"{bad!r} accepted")


def test_bad_parameters_rejected():
    for build in (lambda: VowWavelet(kappa=0.0),
                  lambda: HeldWavelet(polynomial_order=-1),
                  lambda: get_kernel("Shannon", kappa=1.0)):
        try:
            build()
        except ConfigurationError:
            pass
        else:
            raise AssertionError("invalid kernel parameters accepted")


def main():
    print("=" * 70)
    print("ISOTROPIC KERNEL TESTS")
    print("=" * 70)
    tests = [v for k, v in globals().items() if k.startswith("test_") and callable(v)]
    failed = 0
    for test in tests:
        try:
            test()
            print(f"  ✓ {test.__name__}")
        except AssertionError as exc:
            failed += 1
            print(f"  ✗ {test.__name__}: {exc}")
    print(f"\nPassed: {len(tests) - failed}/{len(tests)}")
    return failed == 0


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
