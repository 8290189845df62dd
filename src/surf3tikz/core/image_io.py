from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def load_rgb_u8(path: str | Path) -> np.ndarray:
    """
    Load an image as an (H,W,3) uint8 RGB array.

    Transparent pixels keep their stored colour; alpha is dropped.
    """
    with Image.open(Path(path)) as im:
        im = im.convert("RGB")
        arr = np.asarray(im, dtype=np.uint8)
    return arr


def save_rgb_u8(path: str | Path, arr: np.ndarray) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    img = Image.fromarray(np.ascontiguousarray(np.asarray(arr, dtype=np.uint8)[..., :3]))
    img.save(p)
    return p


def make_white_transparent(path: str | Path) -> Path:
    """
    Rewrite a PNG in place so pure-white pixels become fully transparent.

    The dpi stored in the file is preserved, since it fixes the physical size of the image.
    """
    p = Path(path)
    with Image.open(p) as im:
        dpi = im.info.get("dpi")
        rgba = np.array(im.convert("RGBA"), dtype=np.uint8)
    white = np.all(rgba[..., :3] == 255, axis=-1)
    rgba[white, 3] = 0
    out = Image.fromarray(rgba)
    if dpi is not None:
        out.save(p, dpi=dpi)
    else:
        out.save(p)
    return p
