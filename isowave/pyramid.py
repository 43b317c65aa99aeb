"""
Isotropic Wavelet Pyramid (frequency domain)

Forward (analysis) and inverse (synthesis) multi-level transforms built on
the filter bank in filter_bank.py.

Structure:
    Level l works on the spectrum X_l (X_0 = input spectrum):

        Y_{l,k}  = c_{l,k} · F_k · X_l        k = 0..K-1  (outputs)
        X_{l+1}  = shrink(F_K · X_l)                       (next level)

    After L levels the residual c_L · X_L is emitted. Outputs are ordered
    level-major, band-minor, residual last: L·K + 1 in total.

    The analysis normalization c_{l,k} = 2^(d(l + k/K)/2) (c_L = 2^(dL/2))
    compensates the 2^-d energy loss of each subsampling step so that
    white-noise coefficients have comparable variance across scales.

Inversion:
    Filters are real and satisfy Σ_k F_k² + F_K² = 1, and F_K vanishes where
    `shrink` drops the spectrum, so

        X_l = Σ_k F_k · Y_{l,k} / c_{l,k} + F_K · expand(X_{l+1})

    reconstructs exactly. Dividing by c (the reconstruction factors) is
    optional; without it the result is the input with every sub-band
    re-weighted by its factor.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import ConfigurationError, GeometryError
from .filter_bank import WaveletFilterBankGenerator
from .kernels import IsotropicKernel
from .frequency import (
    compute_max_number_of_levels,
    expand_spectrum,
    inverse_fft,
    level_spacing,
    shrink_spectrum,
    validate_shape,
)

logger = logging.getLogger(__name__)

SCALE_FACTOR = 2


def _check_levels(levels: int) -> int:
    if int(levels) != levels or levels < 0:
        raise ConfigurationError(f"Number of levels must be >= 0, got {levels}")
    return int(levels)


def analysis_factor(level: int, band: int, bands: int, dimension: int) -> float:
    """
    Normalization applied by the forward pyramid to output (level, band).

    The residual after L levels uses (level=L, band=0).
    """
    exponent = dimension * (level + band / bands) / 2.0
    return float(SCALE_FACTOR) ** exponent


def reconstruction_factor(level: int, band: int, bands: int, dimension: int) -> float:
    """Inverse of `analysis_factor`."""
    return 1.0 / analysis_factor(level, band, bands, dimension)


@dataclass
class PyramidCoefficients:
    """
    Output of the forward pyramid.

    Attributes
    ----------
    outputs : list of ndarray
        L·K + 1 spectra, level-major then band-minor, residual last.
    levels, bands : int
        L and K.
    input_shape : tuple
        Shape of the level-0 spectrum.
    spacing : list of tuple
        Pixel spacing of every output (input spacing times 2**level).
    factors : list of float
        Analysis normalization applied to every output.
    wavelet : str
        Name of the wavelet family used.
    kernel : IsotropicKernel, optional
        The kernel itself, family parameters included.
    filter_banks : list of list of ndarray, optional
        Per-level filter sets, when the pyramid was asked to store them.
    """
    outputs: List[np.ndarray]
    levels: int
    bands: int
    input_shape: Tuple[int, ...]
    spacing: List[Tuple[float, ...]] = field(default_factory=list)
    factors: List[float] = field(default_factory=list)
    wavelet: str = ""
    kernel: Optional[IsotropicKernel] = None
    filter_banks: Optional[List[List[np.ndarray]]] = None

    @property
    def number_of_outputs(self) -> int:
        return len(self.outputs)

    @property
    def dimension(self) -> int:
        return len(self.input_shape)

    def index_to_level_band(self, index: int) -> Tuple[int, int]:
        """(level, band) of an output; the residual is (levels, 0)."""
        if index < 0 or index >= self.levels * self.bands + 1:
            raise IndexError(f"Output index {index} out of range")
        if index == self.levels * self.bands:
            return self.levels, 0
        return divmod(index, self.bands)

    def level_band_to_index(self, level: int, band: int) -> int:
        if level == self.levels and band == 0:
            return self.levels * self.bands
        if not (0 <= level < self.levels and 0 <= band < self.bands):
            raise IndexError(f"No output for level={level}, band={band}")
        return level * self.bands + band

    def expected_shape(self, index: int) -> Tuple[int, ...]:
        level, _ = self.index_to_level_band(index)
        return tuple(n // SCALE_FACTOR ** level for n in self.input_shape)

    def high_pass(self, level: int) -> List[np.ndarray]:
        """The K band-pass outputs of one level."""
        return [self.outputs[self.level_band_to_index(level, k)] for k in range(self.bands)]

    @property
    def low_pass(self) -> np.ndarray:
        """The residual low-pass output."""
        return self.outputs[-1]

    def spatial(self, index: int) -> np.ndarray:
        """Output `index` brought back to the spatial domain (real part)."""
        return inverse_fft(self.outputs[index])

    def energy_by_level(self) -> Dict[int, float]:
        """Spatial-domain energy of the outputs, grouped by level."""
        result = {}
        for i, out in enumerate(self.outputs):
            level, _ = self.index_to_level_band(i)
            energy = float(np.sum(np.abs(out) ** 2)) / out.size
            result[level] = result.get(level, 0.0) + energy
        return result

    def with_outputs(self, outputs: Sequence[np.ndarray]) -> "PyramidCoefficients":
        """Copy carrying modified outputs (same count and geometry)."""
        outputs = list(outputs)
        if len(outputs) != len(self.outputs):
            raise ConfigurationError(
                f"Expected {len(self.outputs)} outputs, got {len(outputs)}"
            )
        for i, out in enumerate(outputs):
            if np.shape(out) != self.expected_shape(i):
                raise GeometryError(
                    f"Output {i}: shape {np.shape(out)}, expected {self.expected_shape(i)}"
                )
        return replace(self, outputs=outputs)


class ForwardPyramid:
    """
    Forward isotropic wavelet pyramid.

    Parameters
    ----------
    levels : int
        Number of levels L (>= 0).
    bands : int
        High-pass sub-bands per level K (>= 1).
    wavelet : str or IsotropicKernel
        Held, Vow, Simoncelli or Shannon.
    store_filter_bank_pyramid : bool
        Keep every level's filter set in the returned coefficients.
    generator : WaveletFilterBankGenerator, optional
        Shared generator (and its cache); built from bands/wavelet if None.
    **kernel_params
        Family parameters.

    Example
    -------
    >>> fwd = ForwardPyramid(levels=2, bands=2, wavelet="Shannon")
    >>> coeffs = fwd.transform(np.fft.fftn(image))
    >>> assert coeffs.number_of_outputs == 5
    """

    def __init__(
        self,
        levels: int = 1,
        bands: int = 1,
        wavelet="Simoncelli",
        store_filter_bank_pyramid: bool = False,
        generator: Optional[WaveletFilterBankGenerator] = None,
        **kernel_params,
    ):
        self.levels = _check_levels(levels)
        if generator is None:
            generator = WaveletFilterBankGenerator(bands, wavelet, **kernel_params)
        elif generator.bands != bands:
            raise ConfigurationError(
                f"Generator has {generator.bands} bands, pyramid asks for {bands}"
            )
        self.generator = generator
        self.store_filter_bank_pyramid = store_filter_bank_pyramid

    @property
    def bands(self) -> int:
        return self.generator.bands

    @property
    def number_of_outputs(self) -> int:
        return self.levels * self.bands + 1

    def transform(
        self,
        spectrum: np.ndarray,
        spacing: Optional[Sequence[float]] = None,
    ) -> PyramidCoefficients:
        """
        Decompose a spectrum.

        Parameters
        ----------
        spectrum : ndarray
            Input spectrum (FFT layout). Every axis must be divisible by
            2**levels.
        spacing : sequence of float, optional
            Pixel spacing of the input image.

        Returns
        -------
        coefficients : PyramidCoefficients
        """
        shape = validate_shape(np.shape(spectrum))
        max_levels = compute_max_number_of_levels(shape, SCALE_FACTOR)
        if self.levels > max_levels:
            raise GeometryError(
                f"levels={self.levels} too large for shape {shape}; at most {max_levels}"
            )
        d = len(shape)
        K = self.bands

        x = np.asarray(spectrum, dtype=np.complex128)
        outputs, spacings, factors = [], [], []
        filter_banks = [] if self.store_filter_bank_pyramid else None

        for level in range(self.levels):
            filters = self.generator.generate(x.shape)
            if filter_banks is not None:
                filter_banks.append(filters)
            for band in range(K):
                c = analysis_factor(level, band, K, d)
                outputs.append(x * filters[band] * c)
                spacings.append(level_spacing(spacing, d, level))
                factors.append(c)
            logger.debug("Level %d/%d: shape=%s", level + 1, self.levels, x.shape)
            x = shrink_spectrum(x * filters[K], SCALE_FACTOR)

        c = analysis_factor(self.levels, 0, K, d)
        outputs.append(x * c)
        spacings.append(level_spacing(spacing, d, self.levels))
        factors.append(c)

        return PyramidCoefficients(
            outputs=outputs,
            levels=self.levels,
            bands=K,
            input_shape=shape,
            spacing=spacings,
            factors=factors,
            wavelet=self.generator.kernel.name,
            kernel=self.generator.kernel,
            filter_banks=filter_banks,
        )


class InversePyramid:
    """
    Inverse isotropic wavelet pyramid.

    Parameters
    ----------
    levels, bands, wavelet : see ForwardPyramid
    apply_reconstruction_factors : bool
        Undo the forward analysis normalization (exact reconstruction).
        When False the normalized coefficients are synthesized as they are.
    generator : WaveletFilterBankGenerator, optional
        Shared generator.
    """

    def __init__(
        self,
        levels: int = 1,
        bands: int = 1,
        wavelet="Simoncelli",
        apply_reconstruction_factors: bool = True,
        generator: Optional[WaveletFilterBankGenerator] = None,
        **kernel_params,
    ):
        self.levels = _check_levels(levels)
        if generator is None:
            generator = WaveletFilterBankGenerator(bands, wavelet, **kernel_params)
        elif generator.bands != bands:
            raise ConfigurationError(
                f"Generator has {generator.bands} bands, pyramid asks for {bands}"
            )
        self.generator = generator
        self.apply_reconstruction_factors = apply_reconstruction_factors

    @property
    def bands(self) -> int:
        return self.generator.bands

    @property
    def number_of_inputs(self) -> int:
        return self.levels * self.bands + 1

    def _input_shape(self, inputs: Sequence[np.ndarray]) -> Tuple[int, ...]:
        if self.levels == 0:
            return validate_shape(np.shape(inputs[-1]))
        return validate_shape(np.shape(inputs[0]))

    def transform(self, inputs: Union[PyramidCoefficients, Sequence[np.ndarray]]) -> np.ndarray:
        """
        Reconstruct the level-0 spectrum.

        Parameters
        ----------
        inputs : PyramidCoefficients or sequence of ndarray
            Exactly L·K + 1 spectra in forward-pyramid order.

        Returns
        -------
        spectrum : ndarray (complex)
        """
        if isinstance(inputs, PyramidCoefficients):
            if (inputs.levels, inputs.bands) != (self.levels, self.bands):
                raise ConfigurationError(
                    f"Coefficients have levels={inputs.levels}, bands={inputs.bands}; "
                    f"inverse expects levels={self.levels}, bands={self.bands}"
                )
            input_shape = tuple(inputs.input_shape)
            inputs = inputs.outputs
        else:
            inputs = list(inputs)
            if len(inputs) != self.number_of_inputs:
                raise ConfigurationError(
                    f"Inverse pyramid needs {self.number_of_inputs} inputs "
                    f"(levels={self.levels}, bands={self.bands}), got {len(inputs)}"
                )
            input_shape = self._input_shape(inputs)

        if len(inputs) != self.number_of_inputs:
            raise ConfigurationError(
                f"Inverse pyramid needs {self.number_of_inputs} inputs, got {len(inputs)}"
            )

        d = len(input_shape)
        K = self.bands
        L = self.levels
        if L and any(n % SCALE_FACTOR ** L for n in input_shape):
            raise GeometryError(f"Shape {input_shape} cannot hold {L} dyadic levels")

        for i, x in enumerate(inputs):
            level = L if i == len(inputs) - 1 else i // K
            expected = tuple(n // SCALE_FACTOR ** level for n in input_shape)
            if np.shape(x) != expected:
                raise GeometryError(
                    f"Input {i} (level {level}) has shape {np.shape(x)}, expected {expected}"
                )

        def rescale(x, level, band):
            if self.apply_reconstruction_factors:
                return x * reconstruction_factor(level, band, K, d)
            return x

        rec = rescale(np.asarray(inputs[-1], dtype=np.complex128), L, 0)
        for level in range(L - 1, -1, -1):
            shape = tuple(n // SCALE_FACTOR ** level for n in input_shape)
            filters = self.generator.generate(shape)
            acc = filters[K] * expand_spectrum(rec, shape, SCALE_FACTOR)
            for band in range(K):
                acc += filters[band] * rescale(inputs[level * K + band], level, band)
            rec = acc
            logger.debug("Reconstructed level %d: shape=%s", level, shape)

        return rec


def forward_pyramid(
    spectrum: np.ndarray,
    levels: int = 1,
    bands: int = 1,
    wavelet="Simoncelli",
    spacing: Optional[Sequence[float]] = None,
    **kernel_params,
) -> PyramidCoefficients:
    """Functional form of `ForwardPyramid(...).transform(spectrum)`."""
    return ForwardPyramid(levels, bands, wavelet, **kernel_params).transform(spectrum, spacing)


def inverse_pyramid(
    coefficients: PyramidCoefficients,
    wavelet=None,
    apply_reconstruction_factors: bool = True,
    **kernel_params,
) -> np.ndarray:
    """
    Functional form of `InversePyramid(...).transform(coefficients)`.

    The wavelet defaults to the kernel recorded in the coefficients, with
    the parameters the forward pyramid used.
    """
    if wavelet is None:
        if coefficients.kernel is not None and not kernel_params:
            wavelet = coefficients.kernel
        else:
            wavelet = coefficients.wavelet or "Simoncelli"
    inverse = InversePyramid(
        coefficients.levels,
        coefficients.bands,
        wavelet,
        apply_reconstruction_factors=apply_reconstruction_factors,
        **kernel_params,
    )
    return inverse.transform(coefficients)
