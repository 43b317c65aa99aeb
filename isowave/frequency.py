"""
Frequency-domain geometry helpers.

All spectra use the numpy FFT layout (DC at index 0, no fftshift); axis i of
an array carries the frequency component ω_i. Frequencies are normalized so
that the Nyquist frequency of every axis is 1, i.e. w_i = ω_i / π.

The dyadic pyramid moves between levels with `shrink_spectrum` and
`expand_spectrum`. Shrinking keeps the central low-frequency half of each
axis and scales by 2^-d, which is the spectrum of the subsampled image when
nothing aliases. Expanding is its exact inverse for spectra that vanish
outside the kept half, which is what the wavelet low pass guarantees.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import GeometryError


def validate_shape(shape: Sequence[int]) -> Tuple[int, ...]:
    """Return `shape` as a tuple; GeometryError on empty or zero extent."""
    shape = tuple(int(n) for n in shape)
    if len(shape) == 0:
        raise GeometryError("Cannot build frequency filters for a 0-dimensional grid")
    if any(n <= 0 for n in shape):
        raise GeometryError(f"Grid has zero extent along an axis: shape={shape}")
    return shape


def frequency_axes(shape: Sequence[int]) -> List[np.ndarray]:
    """Per-axis normalized frequencies in [-1, 1) (Nyquist = 1)."""
    shape = validate_shape(shape)
    return [2.0 * np.fft.fftfreq(n) for n in shape]


def frequency_grid(shape: Sequence[int]) -> List[np.ndarray]:
    """Normalized frequency coordinates, one full array per axis."""
    return np.meshgrid(*frequency_axes(shape), indexing="ij")


def normalized_radius(shape: Sequence[int]) -> np.ndarray:
    """
    |ω| / π at every frequency sample.

    Reaches sqrt(d) at the corners of a d-dimensional grid.
    """
    grid = frequency_grid(shape)
    return np.sqrt(sum(g ** 2 for g in grid))


def compute_max_number_of_levels(shape: Sequence[int], scale_factor: int = 2) -> int:
    """
    Largest number of pyramid levels the grid supports.

    A level divides every axis by `scale_factor`; the axes must stay
    integer-sized and at least 1 sample long.
    """
    shape = validate_shape(shape)
    if scale_factor < 2:
        raise GeometryError(f"scale_factor must be >= 2, got {scale_factor}")
    levels = 0
    while all(n % scale_factor == 0 for n in shape):
        shape = tuple(n // scale_factor for n in shape)
        levels += 1
    return levels


def _kept_indices(n_parent: int, n_child: int) -> np.ndarray:
    # FFT-layout indices of the parent axis that survive in the child axis
    k = np.round(np.fft.fftfreq(n_child) * n_child).astype(int)
    return np.mod(k, n_parent)


def shrink_spectrum(spectrum: np.ndarray, factor: int = 2) -> np.ndarray:
    """
    Dyadic frequency-domain subsampling.

    Parameters
    ----------
    spectrum : ndarray
        Spectrum in FFT layout; every axis must be divisible by `factor`.
    factor : int
        Subsampling factor per axis.

    Returns
    -------
    shrunk : ndarray
        Spectrum of shape `spectrum.shape // factor`, scaled by factor^-d.
    """
    shape = validate_shape(spectrum.shape)
    if any(n % factor for n in shape):
        raise GeometryError(f"Cannot shrink shape {shape} by a factor {factor}")
    child = tuple(n // factor for n in shape)
    index = np.ix_(*[_kept_indices(n, m) for n, m in zip(shape, child)])
    scale = float(factor) ** (-len(shape))
    return spectrum[index] * scale


def expand_spectrum(spectrum: np.ndarray, shape: Sequence[int], factor: int = 2) -> np.ndarray:
    """
    Inverse of `shrink_spectrum`: zero-pad to `shape` and scale by factor^d.
    """
    shape = validate_shape(shape)
    child = tuple(spectrum.shape)
    if len(shape) != len(child) or any(n != m * factor for n, m in zip(shape, child)):
        raise GeometryError(
            f"Cannot expand shape {child} to {shape} with factor {factor}"
        )
    out = np.zeros(shape, dtype=np.result_type(spectrum.dtype, np.complex128))
    index = np.ix_(*[_kept_indices(n, m) for n, m in zip(shape, child)])
    out[index] = spectrum * float(factor) ** len(shape)
    return out


def forward_fft(image: np.ndarray) -> np.ndarray:
    """N-D forward FFT over all axes."""
    return np.fft.fftn(image)


def inverse_fft(spectrum: np.ndarray, real: bool = True) -> np.ndarray:
    """N-D inverse FFT over all axes; real part only when `real`."""
    image = np.fft.ifftn(spectrum)
    return image.real if real else image


def zero_dc(image: np.ndarray) -> np.ndarray:
    """Remove the mean (the DC coefficient) of an image."""
    return image - np.mean(image)


def level_spacing(spacing: Optional[Sequence[float]], ndim: int, level: int) -> Tuple[float, ...]:
    """Pixel spacing of a pyramid level: the input spacing times 2**level."""
    if spacing is None:
        spacing = (1.0,) * ndim
    if len(spacing) != ndim:
        raise GeometryError(f"spacing has {len(spacing)} entries for a {ndim}-D grid")
    return tuple(float(s) * 2 ** level for s in spacing)
