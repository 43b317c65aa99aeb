"""
isowave - Steerable Isotropic Wavelets

Frequency-domain isotropic wavelet pyramids for 2-D/3-D images, enriched
with the generalized Riesz transform and a per-pixel structure tensor.

Basic usage:
    >>> from isowave import PyramidConfig, RieszWaveletAnalysis
    >>> config = PyramidConfig(levels=2, bands=2, wavelet="Shannon",
    ...                        riesz_order=1, dimension=2)
    >>> analysis = RieszWaveletAnalysis(config)
    >>> coeffs = analysis.decompose(image)
    >>> reconstructed = analysis.reconstruct(coeffs)

Low-level usage:
    >>> from isowave import wavelet_filter_bank, riesz_filter_bank
    >>> filters, info = wavelet_filter_bank((64, 64), bands=2, wavelet="Held")
    >>> assert info['pou_ok']
    >>> riesz, info = riesz_filter_bank((64, 64), order=2)
    >>> coeffs = forward_pyramid(np.fft.fftn(image), levels=2, bands=2)
    >>> spectrum = inverse_pyramid(coeffs)
"""

__version__ = "0.1.0"

from .errors import (
    IsowaveError,
    ConfigurationError,
    GeometryError,
)

from .kernels import (
    IsotropicKernel,
    HeldWavelet,
    VowWavelet,
    SimoncelliWavelet,
    ShannonWavelet,
    WAVELET_FAMILIES,
    get_kernel,
)

from .frequency import (
    compute_max_number_of_levels,
    shrink_spectrum,
    expand_spectrum,
    zero_dc,
)

from .filter_bank import (
    WaveletFilterBankGenerator,
    wavelet_filter_bank,
    verify_littlewood_paley,
)

from .riesz import (
    RieszFilterBankGenerator,
    riesz_filter_bank,
    riesz_indices,
    number_of_components,
)

from .pyramid import (
    ForwardPyramid,
    InversePyramid,
    PyramidCoefficients,
    forward_pyramid,
    inverse_pyramid,
)

from .structure_tensor import (
    StructureTensor,
    TensorField,
    structure_tensor_projection,
)

from .config import PyramidConfig

from .analysis import (
    RieszWaveletAnalysis,
    AnalysisOutput,
    BandAnalysis,
)

__all__ = [
    # High-level API
    "PyramidConfig",
    "RieszWaveletAnalysis",
    "AnalysisOutput",
    "BandAnalysis",
    # Errors
    "IsowaveError",
    "ConfigurationError",
    "GeometryError",
    # Kernels
    "IsotropicKernel",
    "HeldWavelet",
    "VowWavelet",
    "SimoncelliWavelet",
    "ShannonWavelet",
    "WAVELET_FAMILIES",
    "get_kernel",
    # Frequency geometry
    "compute_max_number_of_levels",
    "shrink_spectrum",
    "expand_spectrum",
    "zero_dc",
    # Filter banks
    "WaveletFilterBankGenerator",
    "wavelet_filter_bank",
    "verify_littlewood_paley",
    "RieszFilterBankGenerator",
    "riesz_filter_bank",
    "riesz_indices",
    "number_of_components",
    # Pyramid
    "ForwardPyramid",
    "InversePyramid",
    "PyramidCoefficients",
    "forward_pyramid",
    "inverse_pyramid",
    # Structure tensor
    "StructureTensor",
    "TensorField",
    "structure_tensor_projection",
]
