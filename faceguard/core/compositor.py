"""
compositor.py
-------------
Full-image blend of an original photo and a replacement of the same size.

For every pixel and channel:

    out = round(original * w + replacement * (1 - w))

where w is the protection weight (fraction of the original to keep).
Alpha is forced opaque unless the caller asks to preserve it.
"""

from typing import Union

import numpy as np

from ..errors import DimensionMismatch
from .mask_generator import ProtectionField

BAND_ROWS = 256   # rows evaluated per pass when weights come from a field

Weights = Union[ProtectionField, np.ndarray, float]


def to_rgba(image: np.ndarray) -> np.ndarray:
    """HxWx3 or HxWx4 uint8 -> HxWx4 uint8 (new buffer)."""
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Expected an HxWx3 or HxWx4 image, got shape {image.shape}")
    if image.shape[2] == 4:
        return image.astype(np.uint8, copy=True)

    alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([image.astype(np.uint8), alpha], axis=2)


def _blend(orig: np.ndarray, repl: np.ndarray, w: np.ndarray) -> np.ndarray:
    w = w[..., None]
    mixed = orig.astype(np.float64) * w + repl.astype(np.float64) * (1.0 - w)
    # round half up, so 127.5 lands on 128
    return np.clip(np.floor(mixed + 0.5), 0, 255).astype(np.uint8)


def composite(original: np.ndarray,
              replacement: np.ndarray,
              weights: Weights,
              preserve_alpha: bool = False) -> np.ndarray:
    """
    Blend `original` over `replacement` with per-pixel protection weights.

    Args:
        original: HxWx3/4 uint8, pixels kept where the weight is 1
        replacement: same size as original; never resampled here
        weights: ProtectionField, HxW float array in [0, 1], or a constant
        preserve_alpha: blend alpha like a color channel instead of forcing 255

    Returns:
        New HxWx4 uint8 buffer. Inputs are not modified.
    """
    orig = to_rgba(original)
    repl = to_rgba(replacement)

    if orig.shape != repl.shape:
        raise DimensionMismatch(orig.shape[:2], repl.shape[:2])

    height, width = orig.shape[:2]
    out = np.empty_like(orig)

    if isinstance(weights, ProtectionField):
        weights.check_size(width, height)
        for y0 in range(0, height, BAND_ROWS):
            y1 = min(y0 + BAND_ROWS, height)
            w = weights.rows(y0, y1, width)
            out[y0:y1] = _blend(orig[y0:y1], repl[y0:y1], w)
    else:
        w = np.asarray(weights, dtype=np.float64)
        if w.ndim == 0:
            w = np.full((height, width), float(w))
        elif w.shape != (height, width):
            raise DimensionMismatch((height, width), w.shape[:2], what="weight field")
        out[:] = _blend(orig, repl, np.clip(w, 0.0, 1.0))

    if not preserve_alpha:
        out[..., 3] = 255

    return out
