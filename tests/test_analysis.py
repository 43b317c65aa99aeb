#!/usr/bin/env python3
"""
End-to-end tests of the steerable wavelet analysis pipeline.

Reference scenario: a 64×64 image, 2 levels, 2 bands per level, Shannon
wavelet, first-order Riesz in 2-D. The pyramid has 5 outputs, every
band-pass output has 2 Riesz components, and the unmodified round trip
reproduces the image.

Run: python tests/test_analysis.py
"""

import io
import sys
from contextlib import redirect_stdout
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from isowave.analysis import AnalysisOutput, BandAnalysis, RieszWaveletAnalysis
from isowave.config import PyramidConfig
from isowave.errors import ConfigurationError, GeometryError


def make_test_image(n=64, seed=42):
    """Oriented grating plus a blob plus noise."""
    rng = np.random.RandomState(seed)
    y, x = np.mgrid[0:n, 0:n]
    grating = np.cos(2 * np.pi * (3 * x + 5 * y) / n)
    blob = np.exp(-((x - n / 3) ** 2 + (y - n / 2) ** 2) / (2 * 4.0 ** 2))
    return grating + 2.0 * blob + 0.1 * rng.randn(n, n)


def scenario_config(**overrides):
    params = dict(levels=2, bands=2, wavelet="Shannon", riesz_order=1, dimension=2)
    params.update(overrides)
    return PyramidConfig(**params)


def test_reference_scenario_counts():
    analysis = RieszWaveletAnalysis(scenario_config())
    assert analysis.number_of_outputs == 5
    assert analysis.number_of_riesz_components == 2

    output = analysis.analyze(make_test_image())
    assert isinstance(output, AnalysisOutput)
    assert output.coefficients.number_of_outputs == 5
    assert output.modified.number_of_outputs == 5
    assert len(output.bands) == 4
    for band in output.bands:
        assert isinstance(band, BandAnalysis)
        assert band.number_of_components == 2
        shape = output.coefficients.expected_shape(band.index)
        assert band.projection.shape == shape
        assert all(c.shape == shape for c in band.riesz_components)
    assert output.band(1, 0) is output.bands[2]


def test_unmodified_round_trip():
    image = make_test_image()
    analysis = RieszWaveletAnalysis(scenario_config())
    rec = analysis.reconstruct(analysis.decompose(image))
    err = np.linalg.norm(rec - image) / np.linalg.norm(image)
    print(f"  round-trip relative error: {err:.2e}")
    assert err < 1e-10


def test_round_trip_all_families():
    image = make_test_image(32, seed=1)
    for wavelet in ("Held", "Vow", "Simoncelli", "Shannon"):
        analysis = RieszWaveletAnalysis(scenario_config(wavelet=wavelet, bands=3))
        rec = analysis.reconstruct(analysis.decompose(image))
        assert np.allclose(rec, image, atol=1e-10), wavelet


def test_kernel_parameters_reach_the_pyramid():
    config = scenario_config(wavelet="Held", kernel_params={'polynomial_order': 1})
    analysis = RieszWaveletAnalysis(config)
    assert analysis.generator.kernel.polynomial_order == 1
    image = make_test_image(32, seed=3)
    rec = analysis.reconstruct(analysis.decompose(image))
    assert np.allclose(rec, image, atol=1e-10)


def test_low_pass_is_kept():
    output = RieszWaveletAnalysis(scenario_config()).analyze(make_test_image())
    assert np.array_equal(output.modified.low_pass, output.coefficients.low_pass)
    for i in range(4):
        assert output.modified.outputs[i].shape == output.coefficients.outputs[i].shape


def test_riesz_components_carry_band_energy():
    analysis = RieszWaveletAnalysis(scenario_config())
    coeffs = analysis.decompose(make_test_image())
    for i in range(4):
        band_energy = np.sum(coeffs.spatial(i) ** 2)
        components = analysis.riesz_components(coeffs.outputs[i])
        comp_energy = sum(np.sum(c ** 2) for c in components)
        assert comp_energy <= band_energy * (1 + 1e-10)
        assert comp_energy > 0.5 * band_energy


def test_threaded_matches_sequential():
    image = make_test_image()
    sequential = RieszWaveletAnalysis(scenario_config(), n_workers=1).analyze(image)
    threaded = RieszWaveletAnalysis(scenario_config(), n_workers=4).analyze(image)
    for a, b in zip(sequential.bands, threaded.bands):
        assert (a.level, a.band) == (b.level, b.band)
        assert np.allclose(a.projection, b.projection)
    for a, b in zip(sequential.modified.outputs, threaded.modified.outputs):
        assert np.allclose(a, b)


def test_run_returns_reconstruction():
    image = make_test_image()
    output, rec = RieszWaveletAnalysis(scenario_config(), window_radius=0).run(image)
    assert rec.shape == image.shape
    assert np.isrealobj(rec)
    assert np.all(np.isfinite(rec))
    assert output.modified.number_of_outputs == 5


def test_subtract_mean():
    image = make_test_image() + 10.0
    analysis = RieszWaveletAnalysis(scenario_config(), subtract_mean=True)
    rec = analysis.reconstruct(analysis.decompose(image))
    assert np.allclose(rec, image - image.mean(), atol=1e-10)


def test_verbose_progress():
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        RieszWaveletAnalysis(scenario_config(), verbose=True).analyze(make_test_image())
    text = buffer.getvalue()
    assert "Output #: 0 / 4" in text
    assert "Output #: 4 / 4" in text
    assert text.count("RieszOutputs: 2") == 4


def test_three_dimensional_second_order():
    rng = np.random.RandomState(0)
    image = rng.randn(16, 16, 16)
    config = PyramidConfig(levels=1, bands=1, wavelet="Held", riesz_order=2, dimension=3)
    analysis = RieszWaveletAnalysis(config)
    assert analysis.number_of_riesz_components == 6
    output, rec = analysis.run(image)
    assert len(output.bands) == 1
    assert output.bands[0].number_of_components == 6
    assert output.bands[0].tensor.matrix().shape == (16, 16, 16, 6, 6)
    assert rec.shape == image.shape


def test_image_validation():
    analysis = RieszWaveletAnalysis(scenario_config(dimension=3))
    for bad in (np.zeros((16, 16)), np.zeros((16, 16, 16), dtype=complex)):
        try:
            analysis.decompose(bad)
        except GeometryError:
            pass
        else:
            raise AssertionError(f"image {bad.shape} {bad.dtype} accepted")
    try:
        RieszWaveletAnalysis(scenario_config(), n_workers=0)
    except ConfigurationError:
        pass
    else:
        raise AssertionError("n_workers=0 accepted")


def main():
    print("=" * 70)
    print("RIESZ WAVELET ANALYSIS TESTS")
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
