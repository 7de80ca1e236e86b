"""Homogeneous 3x3 matrix algebra and canonical/pixel coordinate conversion.

Matrices are float64 numpy arrays of shape (3, 3), row-major:

    | a b c |
    | d e f |
    | g h i |

Products read right to left: ``outer @ middle @ inner`` applies ``inner`` first.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

Matrix3x3 = np.ndarray


def identity() -> Matrix3x3:
    return np.eye(3, dtype=np.float64)


def from_coefficients(coeffs: Sequence[float]) -> Matrix3x3:
    """Build a matrix from 9 row-major coefficients."""
    m = np.asarray(coeffs, dtype=np.float64)
    if m.size != 9:
        raise ValueError(f"Expected 9 coefficients, got {m.size}")
    return m.reshape(3, 3).copy()


def to_coefficients(m: Matrix3x3) -> Tuple[float, ...]:
    return tuple(float(v) for v in np.asarray(m, dtype=np.float64).reshape(9))


def is_identity(m: Matrix3x3) -> bool:
    return bool(np.array_equal(m, np.eye(3)))


def multiply(a: Matrix3x3, b: Matrix3x3) -> Matrix3x3:
    return np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)


def determinant(m: Matrix3x3) -> float:
    """Cofactor expansion along the first row."""
    (a, b, c), (d, e, f), (g, h, i) = np.asarray(m, dtype=np.float64)
    return float(a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g))


def inverse(m: Matrix3x3, det: float) -> Matrix3x3:
    """Invert ``m`` given its determinant.

    The caller has already checked ``det != 0``; the determinant is not
    recomputed here.
    """
    (a, b, c), (d, e, f), (g, h, i) = np.asarray(m, dtype=np.float64)
    adj = np.array([
        [e * i - f * h, c * h - b * i, b * f - c * e],
        [f * g - d * i, a * i - c * g, c * d - a * f],
        [d * h - e * g, b * g - a * h, a * e - b * d],
    ], dtype=np.float64)
    return adj / det


def canonical_to_pixel(pixel_aspect_ratio: float, scale_x: float, scale_y: float,
                       fielded: bool) -> Matrix3x3:
    """Canonical -> pixel coordinates for a render scale and pixel aspect ratio.

    ``fielded`` halves the vertical scale for interlaced (single field) renders.
    """
    return np.array([
        [scale_x / pixel_aspect_ratio, 0.0, 0.0],
        [0.0, 0.5 * scale_y if fielded else scale_y, 0.0],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


def pixel_to_canonical(pixel_aspect_ratio: float, scale_x: float, scale_y: float,
                       fielded: bool) -> Matrix3x3:
    """Inverse of :func:`canonical_to_pixel`."""
    return np.array([
        [pixel_aspect_ratio / scale_x, 0.0, 0.0],
        [0.0, 2.0 / scale_y if fielded else 1.0 / scale_y, 0.0],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


def to_pixel_space(m: Matrix3x3, pixel_aspect_ratio: float, render_scale: Tuple[float, float],
                   fielded: bool) -> Matrix3x3:
    """Express a canonical-space transform in pixel space."""
    sx, sy = render_scale
    c2p = canonical_to_pixel(pixel_aspect_ratio, sx, sy, fielded)
    p2c = pixel_to_canonical(pixel_aspect_ratio, sx, sy, fielded)
    return c2p @ m @ p2c


def translation(tx: float, ty: float) -> Matrix3x3:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]], dtype=np.float64)


def rotation(degrees: float) -> Matrix3x3:
    """Counter-clockwise rotation about the origin."""
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)


def scaling(sx: float, sy: float) -> Matrix3x3:
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)


def skewing(skew_x: float, skew_y: float) -> Matrix3x3:
    return np.array([[1.0, skew_x, 0.0], [skew_y, 1.0, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)


def homography_from_quads(src: Sequence[Tuple[float, float]],
                          dst: Sequence[Tuple[float, float]]) -> Optional[Matrix3x3]:
    """Homography mapping the 4 ``src`` points onto the 4 ``dst`` points.

    Solves the 8x8 direct linear system with h33 = 1. Returns None when the
    quads are degenerate (three collinear points, repeated points).
    """
    src = np.asarray(src, dtype=np.float64)
    dst = np.asarray(dst, dtype=np.float64)
    if src.shape != (4, 2) or dst.shape != (4, 2):
        raise ValueError(f"Expected two (4, 2) point sets, got {src.shape} and {dst.shape}")

    A = np.zeros((8, 8), dtype=np.float64)
    rhs = np.zeros(8, dtype=np.float64)
    for k, ((x, y), (u, v)) in enumerate(zip(src, dst)):
        A[2 * k] = [x, y, 1.0, 0.0, 0.0, 0.0, -u * x, -u * y]
        A[2 * k + 1] = [0.0, 0.0, 0.0, x, y, 1.0, -v * x, -v * y]
        rhs[2 * k] = u
        rhs[2 * k + 1] = v

    try:
        h = np.linalg.solve(A, rhs)
    except np.linalg.LinAlgError:
        return None
    if not np.isfinite(h).all():
        return None
    return np.append(h, 1.0).reshape(3, 3)
