"""
Structure Tensor of a vector-valued image

Given M real images u_1..u_M (typically the spatial Riesz components of one
wavelet band), the structure tensor at every pixel is the M×M second-moment
matrix

    T(x) = G_σ * (u(x) u(x)ᵀ)

where G_σ is an optional Gaussian window. T is symmetric positive
semi-definite (a non-negative combination of outer products). Its
eigenvector of largest eigenvalue is the locally dominant direction in
component space; projecting u onto it gives the dominant response image.

Eigen-analysis uses `numpy.linalg.eigh` (eigenvalues ascending). Repeated
largest eigenvalues are resolved by projecting the canonical axes e_0,
e_1, ... onto the tied eigenspace and keeping the first non-vanishing
projection, so a zero tensor yields e_0. The rest of the tied eigenspace is
reflected around that choice, keeping the eigenbasis orthonormal. Every
eigenvector is signed so its first non-negligible entry is positive.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import ndimage

from .errors import ConfigurationError, GeometryError

logger = logging.getLogger(__name__)

# relative tolerance for "equal" eigenvalues
TIE_RTOL = 1e-10
# squared projection below which a canonical axis counts as orthogonal
AXIS_EPS = 1e-12


def packed_indices(m: int) -> Tuple[np.ndarray, np.ndarray]:
    """Row/column indices of the upper triangle, row-major."""
    return np.triu_indices(m)


def _orient(vectors: np.ndarray) -> np.ndarray:
    # vectors: (..., M) -> sign so the first entry with |v_i|² > AXIS_EPS is positive
    significant = vectors ** 2 > AXIS_EPS
    first = np.argmax(significant, axis=-1)
    lead = np.take_along_axis(vectors, first[..., None], axis=-1)
    sign = np.where(lead < 0, -1.0, 1.0)
    return vectors * sign


def _align_last_column(vectors: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Reflect an orthonormal eigenbasis so its last column becomes `target`.

    `target` lies in the eigenspace of the last column, so the Householder
    reflection along w = v_last - target stays inside that eigenspace:
    columns of other eigenvalues are unchanged and the result is still
    orthonormal.
    """
    w = vectors[..., :, -1] - target
    norm_sq = np.sum(w ** 2, axis=-1)
    active = norm_sq > AXIS_EPS
    coeff = np.einsum("...i,...ij->...j", w, vectors) / np.where(active, norm_sq, 1.0)[..., None]
    reflected = vectors - 2.0 * w[..., :, None] * coeff[..., None, :]
    aligned = np.where(active[..., None, None], reflected, vectors)
    aligned[..., :, -1] = target
    return aligned


@dataclass
class TensorField:
    """
    Per-pixel symmetric tensor of M components.

    Attributes
    ----------
    packed : ndarray, shape (..., M(M+1)/2)
        Upper-triangular entries (row-major) of every pixel's tensor.
    components : ndarray, shape (..., M)
        The component vectors the tensor was built from.
    """
    packed: np.ndarray
    components: np.ndarray
    _eigen: Optional[Tuple[np.ndarray, np.ndarray]] = field(default=None, repr=False)

    @property
    def number_of_components(self) -> int:
        return self.components.shape[-1]

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.components.shape[:-1]

    def matrix(self) -> np.ndarray:
        """Full symmetric tensors, shape (..., M, M)."""
        m = self.number_of_components
        rows, cols = packed_indices(m)
        full = np.zeros(self.shape + (m, m), dtype=self.packed.dtype)
        full[..., rows, cols] = self.packed
        full[..., cols, rows] = self.packed
        return full

    def eigen(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Eigenvalues (ascending, shape (..., M)) and eigenvectors (columns,
        shape (..., M, M), orthonormal), with the deterministic tie-break
        applied to the largest one and the sign convention to all.
        """
        if self._eigen is None:
            values, vectors = np.linalg.eigh(self.matrix())
            vectors = _align_last_column(vectors, self._dominant_vector(values, vectors))
            vectors = np.swapaxes(_orient(np.swapaxes(vectors, -1, -2)), -1, -2)
            self._eigen = (values, vectors)
        return self._eigen

    @staticmethod
    def _dominant_vector(values: np.ndarray, vectors: np.ndarray) -> np.ndarray:
        largest = values[..., -1:]
        scale = np.max(np.abs(values), axis=-1, keepdims=True)
        tied = values >= largest - TIE_RTOL * scale

        # projector onto the span of the tied eigenvectors
        masked = vectors * tied[..., None, :]
        projector = masked @ np.swapaxes(vectors, -1, -2)

        diag = np.diagonal(projector, axis1=-2, axis2=-1)
        first = np.argmax(diag > AXIS_EPS, axis=-1)
        column = np.take_along_axis(
            projector, np.broadcast_to(first[..., None, None], projector.shape[:-1] + (1,)), axis=-1
        )[..., 0]
        norm = np.sqrt(np.take_along_axis(diag, first[..., None], axis=-1))
        return _orient(column / norm)

    def eigenvalues(self) -> np.ndarray:
        return self.eigen()[0]

    def largest_eigenvalue(self) -> np.ndarray:
        return self.eigen()[0][..., -1]

    def dominant_direction(self) -> np.ndarray:
        """Unit eigenvector of the largest eigenvalue, shape (..., M)."""
        return self.eigen()[1][..., :, -1]

    def projection(self, eigen_number: int) -> np.ndarray:
        """
        Components projected onto eigenvector `eigen_number`.

        Eigenvectors are numbered by ascending eigenvalue, so M-1 is the
        largest response.
        """
        m = self.number_of_components
        if not 0 <= eigen_number < m:
            raise IndexError(f"eigen_number must be in [0, {m}), got {eigen_number}")
        direction = self.eigen()[1][..., :, eigen_number]
        return np.sum(self.components * direction, axis=-1)

    def projection_with_largest_response(self) -> np.ndarray:
        return self.projection(self.number_of_components - 1)


class StructureTensor:
    """
    Structure tensor with an optional Gaussian window.

    Parameters
    ----------
    window_radius : int
        Radius of the Gaussian window in pixels. 0 disables smoothing.
    window_sigma : float
        Standard deviation of the window in pixels.
    mode : str
        Boundary handling of the window (scipy.ndimage mode). Components
        coming out of an inverse FFT are periodic, hence 'wrap'.
    """

    def __init__(self, window_radius: int = 2, window_sigma: float = 1.0, mode: str = "wrap"):
        if window_radius < 0:
            raise ConfigurationError(f"window_radius must be >= 0, got {window_radius}")
        if window_radius > 0 and window_sigma <= 0:
            raise ConfigurationError(f"window_sigma must be positive, got {window_sigma}")
        self.window_radius = int(window_radius)
        self.window_sigma = float(window_sigma)
        self.mode = mode

    def _smooth(self, image: np.ndarray) -> np.ndarray:
        if self.window_radius == 0:
            return image
        return ndimage.gaussian_filter(
            image,
            sigma=self.window_sigma,
            mode=self.mode,
            truncate=self.window_radius / self.window_sigma,
        )

    def compute(self, components: Sequence[np.ndarray]) -> TensorField:
        """
        Build the tensor field.

        Parameters
        ----------
        components : sequence of ndarray
            M >= 1 real images of identical shape.

        Returns
        -------
        tensor : TensorField
        """
        components = list(components)
        if not components:
            raise ConfigurationError("Structure tensor needs at least one component image")
        shape = np.shape(components[0])
        for i, c in enumerate(components):
            if np.shape(c) != shape:
                raise GeometryError(
                    f"Component {i} has shape {np.shape(c)}, expected {shape}"
                )
            if np.iscomplexobj(c):
                raise ConfigurationError(f"Component {i} is complex; pass real images")

        stacked = np.stack([np.asarray(c, dtype=np.float64) for c in components], axis=-1)
        m = stacked.shape[-1]
        rows, cols = packed_indices(m)
        packed = np.stack(
            [self._smooth(stacked[..., r] * stacked[..., c]) for r, c in zip(rows, cols)],
            axis=-1,
        )
        logger.debug("Structure tensor: shape=%s components=%d radius=%d",
                     shape, m, self.window_radius)
        return TensorField(packed=packed, components=stacked)


def structure_tensor_projection(
    components: Sequence[np.ndarray],
    window_radius: int = 2,
    window_sigma: float = 1.0,
) -> np.ndarray:
    """Dominant-response projection image of a set of component images."""
    tensor = StructureTensor(window_radius, window_sigma).compute(components)
    return tensor.projection_with_largest_response()
