"""
overlay_renderer.py
-------------------
Draws a positioned hair sprite on top of the original photo.

This is an affine draw, not a blend field: the photo is the base layer,
the sprite is resized into its placement rectangle, rotated about the
rectangle's center, scaled by the opacity and composited source-over
with its own per-pixel alpha.
"""

import cv2
import numpy as np

from .compositor import to_rgba
from .hair_placement import OverlayPlacement

HAIR_CUTOFF_RATIO = 0.35   # top share of a reference photo treated as hair


def placement_matrix(asset_width: int, asset_height: int,
                     placement: OverlayPlacement) -> np.ndarray:
    """
    2x3 affine taking asset pixel coordinates to base image coordinates.

    Scale into the placement rectangle, then rotate about its center.
    Positive degrees turn clockwise on screen (y grows downwards).
    """
    sx = placement.width / asset_width
    sy = placement.height / asset_height
    place = np.array([
        [sx, 0.0, placement.x],
        [0.0, sy, placement.y],
        [0.0, 0.0, 1.0],
    ])

    cx, cy = placement.center
    theta = np.deg2rad(placement.rotation_degrees)
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    rotate = np.array([
        [cos_t, -sin_t, cx - cos_t * cx + sin_t * cy],
        [sin_t, cos_t, cy - sin_t * cx - cos_t * cy],
        [0.0, 0.0, 1.0],
    ])

    return (rotate @ place)[:2]


def render_overlay(base: np.ndarray, asset: np.ndarray,
                   placement: OverlayPlacement) -> np.ndarray:
    """
    Original photo with the hair asset drawn at `placement`.

    Transparent asset pixels leave the photo untouched. Returns a new
    HxWx4 uint8 buffer the size of `base`.
    """
    base_rgba = to_rgba(base)
    sprite = to_rgba(asset)

    height, width = base_rgba.shape[:2]
    ah, aw = sprite.shape[:2]

    # Premultiply so interpolation does not bleed dark fringes from
    # fully transparent neighbours.
    sprite_f = sprite.astype(np.float32) / 255.0
    sprite_f[..., :3] *= sprite_f[..., 3:4]

    m = placement_matrix(aw, ah, placement)
    warped = cv2.warpAffine(
        sprite_f, m, (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )

    opacity = float(np.clip(placement.opacity, 0.0, 1.0))
    src_rgb = warped[..., :3] * opacity
    src_a = warped[..., 3:4] * opacity

    dst = base_rgba.astype(np.float32) / 255.0
    dst_a = dst[..., 3:4]

    out_a = src_a + dst_a * (1.0 - src_a)
    out_rgb_p = src_rgb + dst[..., :3] * dst_a * (1.0 - src_a)
    out_rgb = np.divide(out_rgb_p, out_a, out=np.zeros_like(out_rgb_p), where=out_a > 0)

    out = np.concatenate([out_rgb, out_a], axis=2)
    return np.clip(np.floor(out * 255.0 + 0.5), 0, 255).astype(np.uint8)


def fade_out_below(reference: np.ndarray,
                   cutoff_ratio: float = HAIR_CUTOFF_RATIO) -> np.ndarray:
    """
    Hair sprite from a reference photo when no cut-out exists.

    Alpha is kept above 0.8 * cutoff, ramps linearly to zero at
    1.2 * cutoff, and is zero below.
    """
    sprite = to_rgba(reference)
    height = sprite.shape[0]

    cutoff = height * cutoff_ratio
    fade_start = cutoff * 0.8
    fade_end = cutoff * 1.2

    ys = np.arange(height, dtype=np.float64)
    keep = np.ones(height)
    ramp = (ys > fade_start) & (ys <= fade_end)
    if fade_end > fade_start:
        keep[ramp] = 1.0 - (ys[ramp] - fade_start) / (fade_end - fade_start)
    keep[ys > fade_end] = 0.0

    alpha = sprite[..., 3].astype(np.float64) * keep[:, None]
    sprite[..., 3] = np.clip(np.floor(alpha + 0.5), 0, 255).astype(np.uint8)
    return sprite
