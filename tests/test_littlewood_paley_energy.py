#!/usr/bin/env python3
"""
Test: Littlewood-Paley Energy Identity of the Isotropic Filter Bank

Every pyramid level satisfies the partition of unity

    Σ_k |F_k(ω)|² + |F_low(ω)|² = 1    for every ω

and the pyramid subsamples only where the low pass vanishes. Together with
the analysis normalization c_{l,k} = 2^(d(l + k/K)/2) this gives, for a
single band per level (K = 1), exact energy conservation across the pyramid:

    ||f||² = Σ_i ||y_i||²      (spatial energies, y_i = IFFT(output i))

For K > 1 the in-level factors 2^(dk/(2K)) make the sum larger, bounded by
the largest in-level factor squared.

Run: python tests/test_littlewood_paley_energy.py
"""

import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from isowave.filter_bank import verify_littlewood_paley, wavelet_filter_bank
from isowave.frequency import forward_fft
from isowave.pyramid import ForwardPyramid

FAMILIES = ["Held", "Vow", "Simoncelli", "Shannon"]


def spatial_energy(image):
    return float(np.sum(np.abs(image) ** 2))


def test_littlewood_paley_identity():
    """Σ|F|² = 1 on every grid, for every family and sub-band count."""
    print("=" * 70)
    print("TEST: LITTLEWOOD-PALEY IDENTITY PER LEVEL")
    print("=" * 70)

    shapes = [(32, 32), (33, 20), (8, 8, 8), (64,)]
    print(f"\n  {'Family':<12} {'K':<4} {'Shape':<14} {'min':<12} {'max':<12}")
    print("  " + "-" * 56)
    for name in FAMILIES:
        for bands in (1, 2, 3):
            for shape in shapes:
                filters, info = wavelet_filter_bank(shape, bands=bands, wavelet=name)
                result = verify_littlewood_paley(filters, tol=1e-10)
                if shape == shapes[0]:
                    print(f"  {name:<12} {bands:<4} {str(shape):<14} "
                          f"{result['min']:<12.10f} {result['max']:<12.10f}")
                assert result['passed'], f"{name} K={bands} {shape}: {result['min']}..{result['max']}"
                assert info['pou_ok']
                assert len(filters) == bands + 1


def test_energy_conservation_single_band():
    """With K = 1 the normalized pyramid preserves spatial energy exactly."""
    print("\n" + "=" * 70)
    print("TEST: PYRAMID ENERGY CONSERVATION (K = 1)")
    print("=" * 70)

    np.random.seed(42)
    n = 64
    x = np.arange(n)
    test_images = {
        'white_noise': np.random.randn(n, n),
        'sinusoid': np.cos(2 * np.pi * 5 * x / n)[:, None] * np.ones(n)[None, :] + 3.0,
        'impulse': np.zeros((n, n)),
        'noise_3d': np.random.randn(16, 16, 16),
    }
    test_images['impulse'][n // 2, n // 3] = 10.0

    print(f"\n  {'Image':<14} {'Family':<12} {'||f||²':<14} {'Σ||y||²':<14} {'ratio':<10}")
    print("  " + "-" * 64)
    for img_name, image in test_images.items():
        levels = 3 if image.ndim == 2 else 2
        for name in FAMILIES:
            coeffs = ForwardPyramid(levels, 1, name).transform(forward_fft(image))
            total = sum(spatial_energy(coeffs.spatial(i)) for i in range(coeffs.number_of_outputs))
            reference = spatial_energy(image)
            ratio = total / reference
            print(f"  {img_name:<14} {name:<12} {reference:<14.4f} {total:<14.4f} {ratio:<10.8f}")
            assert abs(ratio - 1.0) < 1e-10, f"{img_name}/{name}: ratio {ratio}"


def test_energy_by_level_sums_to_total():
    np.random.seed(0)
    image = np.random.randn(32, 32)
    coeffs = ForwardPyramid(2, 1, "Simoncelli").transform(forward_fft(image))
    by_level = coeffs.energy_by_level()
    assert sorted(by_level) == [0, 1, 2]
    assert np.isclose(sum(by_level.values()), spatial_energy(image), rtol=1e-10)


def test_energy_bound_multiple_bands():
    """For K > 1 the energy lies in [||f||², 2^(d(K-1)/K) ||f||²]."""
    print("\n" + "=" * 70)
    print("TEST: PYRAMID ENERGY BOUNDS (K > 1)")
    print("=" * 70)

    np.random.seed(7)
    image = np.random.randn(64, 64)
    reference = spatial_energy(image)
    d = image.ndim
    for name in FAMILIES:
        for bands in (2, 3):
            coeffs = ForwardPyramid(2, bands, name).transform(forward_fft(image))
            total = sum(coeffs.energy_by_level().values())
            ratio = total / reference
            upper = 2.0 ** (d * (bands - 1) / bands)
            print(f"  {name:<12} K={bands}: ratio = {ratio:.6f} (bound {upper:.4f})")
            assert 1.0 - 1e-10 <= ratio <= upper + 1e-10


def main():
    test_littlewood_paley_identity()
    test_energy_conservation_single_band()
    test_energy_by_level_sums_to_total()
    test_energy_bound_multiple_bands()
    print("\n✓ All Littlewood-Paley energy tests passed")


if __name__ == "__main__":
    main()
