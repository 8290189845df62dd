from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy import ndimage


class MarkerDetectionError(RuntimeError):
    pass


class MarkerNotFoundError(MarkerDetectionError):
    pass


class MarkerAmbiguityError(MarkerDetectionError):
    pass


@dataclass(frozen=True)
class PixelCentroid:
    """Integer pixel location, origin top-left, row-major."""

    row: int
    col: int


_EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


def black_mask(frame: np.ndarray) -> np.ndarray:
    """
    Pixels whose RGB channels sum to exactly zero.

    Accepts (H,W,3) or (H,W,4) uint8 frames; an alpha channel is ignored.
    The sum is taken in int32 so bright pixels cannot wrap around to zero.
    """
    frame = np.asarray(frame)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"expected an (H,W,3) or (H,W,4) frame, got shape {frame.shape}")
    flat = frame[..., :3].astype(np.int32).sum(axis=-1)
    return flat == 0


def locate_marker(frame: np.ndarray) -> PixelCentroid:
    """
    Centroid of the single pure-black marker footprint in `frame`.

    The centroid is the midpoint of the row extent and of the column extent of the footprint,
    each rounded half up. Anti-aliased partial pixels never qualify.
    """
    mask = black_mask(frame)
    _labels, n_regions = ndimage.label(mask, structure=_EIGHT_CONNECTED)
    if n_regions == 0:
        raise MarkerNotFoundError("no pure-black marker pixels in frame (marker hidden or occluded?)")
    if n_regions > 1:
        raise MarkerAmbiguityError(f"found {n_regions} disjoint black regions, expected exactly one marker")

    rows = np.flatnonzero(mask.any(axis=1))
    cols = np.flatnonzero(mask.any(axis=0))
    mid_row = int(math.floor((rows[0] + rows[-1]) / 2.0 + 0.5))
    mid_col = int(math.floor((cols[0] + cols[-1]) / 2.0 + 0.5))
    return PixelCentroid(row=mid_row, col=mid_col)


def overlay_centroids(frame: np.ndarray, centroids: list[PixelCentroid]) -> np.ndarray:
    """Copy of `frame` (RGB) with each centroid painted white, for visual inspection."""
    out = np.array(np.asarray(frame)[..., :3], dtype=np.uint8, copy=True)
    h, w = out.shape[:2]
    for c in centroids:
        if 0 <= c.row < h and 0 <= c.col < w:
            out[c.row, c.col, :] = 255
    return out
