"""
Command line harness.

    isowave inputImage outputImage levels bands [waveletFunction] rieszOrder
            [applyReconstructionFactors] [dimension]

Images are .npy arrays. The input is decomposed, every band-pass output is
replaced by the dominant structure-tensor projection of its Riesz
components, and the reconstruction is written to outputImage.

Exit status is 0 on success, 2 on a usage error and 1 for an invalid
configuration (unknown wavelet, Apply/NoApply string, dimension, ...).
"""

import argparse
import sys
from typing import List, Optional

import numpy as np

from .analysis import RieszWaveletAnalysis
from .config import PyramidConfig, parse_reconstruction_flag
from .errors import IsowaveError

DEFAULT_WAVELET = "Simoncelli"
DEFAULT_DIMENSION = 3


class InputImageError(IsowaveError):
    """Input image missing or not a readable .npy array."""


def _is_int(token: str) -> bool:
    try:
        int(token)
    except ValueError:
        return False
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="isowave",
        description="Isotropic wavelet pyramid with generalized Riesz structure tensor",
        usage=(
            "%(prog)s [options] inputImage outputImage levels bands "
            "[waveletFunction] rieszOrder [Apply|NoApply] [dimension]"
        ),
    )
    parser.add_argument("input_image", help="input image (.npy)")
    parser.add_argument("output_image", help="reconstructed image (.npy)")
    parser.add_argument("levels", type=int, help="pyramid levels")
    parser.add_argument("bands", type=int, help="high-pass sub-bands per level")
    parser.add_argument(
        "rest", nargs="+", metavar="...",
        help="[waveletFunction] rieszOrder [Apply|NoApply] [dimension]",
    )
    parser.add_argument("--window-radius", type=int, default=2,
                        help="structure tensor Gaussian window radius (0 = none)")
    parser.add_argument("--window-sigma", type=float, default=1.0,
                        help="structure tensor Gaussian window sigma")
    parser.add_argument("--workers", type=int, default=1,
                        help="threads used to process the bands")
    parser.add_argument("--keep-dc", action="store_true",
                        help="do not subtract the image mean before the FFT")
    parser.add_argument("--no-riesz", action="store_true",
                        help="plain forward + inverse wavelet round trip")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def parse_positional(rest: List[str], parser: argparse.ArgumentParser) -> dict:
    """Resolve the optional positional arguments after `bands`."""
    tokens = list(rest)
    wavelet = DEFAULT_WAVELET
    if tokens and not _is_int(tokens[0]):
        wavelet = tokens.pop(0)
    if not tokens or not _is_int(tokens[0]):
        parser.error("rieszOrder (integer) is required")
    riesz_order = int(tokens.pop(0))

    apply_flag = "Apply"
    if tokens and not _is_int(tokens[0]):
        apply_flag = tokens.pop(0)
    dimension = DEFAULT_DIMENSION
    if tokens:
        if not _is_int(tokens[0]):
            parser.error(f"dimension must be an integer, got {tokens[0]}")
        dimension = int(tokens.pop(0))
    if tokens:
        parser.error(f"unexpected arguments: {' '.join(tokens)}")

    return {
        'wavelet': wavelet,
        'riesz_order': riesz_order,
        'apply_flag': apply_flag,
        'dimension': dimension,
    }


def _load_image(path: str) -> np.ndarray:
    try:
        return np.load(path)
    except (OSError, ValueError) as exc:
        raise InputImageError(f"Cannot read {path}: {exc}") from exc


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    positional = parse_positional(args.rest, parser)

    try:
        config = PyramidConfig(
            levels=args.levels,
            bands=args.bands,
            wavelet=positional['wavelet'],
            riesz_order=positional['riesz_order'],
            apply_reconstruction_factors=parse_reconstruction_flag(positional['apply_flag']),
            dimension=positional['dimension'],
        )
        analysis = RieszWaveletAnalysis(
            config,
            window_radius=args.window_radius,
            window_sigma=args.window_sigma,
            n_workers=args.workers,
            subtract_mean=not args.keep_dc,
            verbose=args.verbose,
        )
        image = _load_image(args.input_image)

        if args.verbose:
            print(f"Input: {args.input_image} shape={image.shape}")
            print(f"Wavelet: {config.wavelet}, levels={config.levels}, bands={config.bands}")
            print(f"RieszOrder: {config.riesz_order}")

        if args.no_riesz:
            result = analysis.reconstruct(analysis.decompose(image))
        else:
            _, result = analysis.run(image)
    except IsowaveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    np.save(args.output_image, result)
    if args.verbose:
        print(f"Output: {args.output_image}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
