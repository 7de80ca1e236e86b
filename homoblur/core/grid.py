"""Sampling grids for torch resamplers.

Converts the pixel-space inverse transforms of a :class:`TransformSampleSet`
into the normalized coordinates expected by ``torch.nn.functional.grid_sample``
(``align_corners=False``). Row ``j`` of a grid holds pixel row
``window.y1 + j``, so images must be stored with rows in increasing y.
"""

from typing import Optional, Union

import numpy as np
import torch

from .coords import Rect
from .sampling import TransformSampleSet


def pixel_coordinates(window: Rect, device: Union[str, torch.device] = "cpu",
                      dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """Homogeneous pixel-center coordinates of a window, [H, W, 3]."""
    W = int(window.x2 - window.x1)
    H = int(window.y2 - window.y1)
    yg, xg = torch.meshgrid(
        torch.arange(H, device=device, dtype=dtype) + window.y1 + 0.5,
        torch.arange(W, device=device, dtype=dtype) + window.x1 + 0.5,
        indexing="ij",
    )
    return torch.stack([xg, yg, torch.ones_like(xg)], dim=-1)


def sampling_grids(
    samples: TransformSampleSet,
    window: Rect,
    source_bounds: Rect,
    device: Union[str, torch.device] = "cpu",
    dtype: torch.dtype = torch.float32,
) -> torch.Tensor:
    """Source sampling positions for every destination pixel of ``window``.

    Args:
        samples: pixel-space inverse transforms (destination -> source)
        window: destination pixel window (integer bounds)
        source_bounds: pixel bounds of the source image tensor
        device: torch device
        dtype: output dtype

    Returns:
        grids: [N, H, W, 2] in [-1, 1] over ``source_bounds``. Positions on
        the far side of the line at infinity from the window center are set
        to NaN.
    """
    mats = torch.from_numpy(np.ascontiguousarray(samples.matrices)).to(device=device, dtype=torch.float64)
    # a homography and its negation are the same mapping: orient each one so
    # that the window center has z > 0
    center = torch.tensor([(window.x1 + window.x2) / 2, (window.y1 + window.y2) / 2, 1.0],
                          device=device, dtype=torch.float64)
    sign = 1.0 - 2.0 * (mats[:, 2] @ center < 0).to(torch.float64)
    mats = mats * sign.view(-1, 1, 1)

    coords = pixel_coordinates(window, device=device)
    src = torch.einsum("nij,hwj->nhwi", mats, coords)

    z = src[..., 2]
    valid = z > 0
    z_safe = torch.where(valid, z, torch.ones_like(z))
    x = src[..., 0] / z_safe
    y = src[..., 1] / z_safe

    sw = source_bounds.x2 - source_bounds.x1
    sh = source_bounds.y2 - source_bounds.y1
    gx = 2 * (x - source_bounds.x1) / sw - 1
    gy = 2 * (y - source_bounds.y1) / sh - 1
    grid = torch.stack([gx, gy], dim=-1)
    grid = torch.where(valid.unsqueeze(-1), grid, torch.full_like(grid, float("nan")))
    return grid.to(dtype)


def sample_weights(samples: TransformSampleSet, device: Union[str, torch.device] = "cpu",
                   dtype: torch.dtype = torch.float32) -> torch.Tensor:
    """Normalized per-sample weights [N]; uniform when the set is unweighted."""
    w: Optional[np.ndarray] = samples.weights
    n = len(samples)
    if w is None:
        return torch.full((n,), 1.0 / max(n, 1), device=device, dtype=dtype)
    t = torch.from_numpy(w).to(device=device, dtype=dtype)
    total = t.sum()
    if total <= 0:
        return torch.full((n,), 1.0 / max(n, 1), device=device, dtype=dtype)
    return t / total
