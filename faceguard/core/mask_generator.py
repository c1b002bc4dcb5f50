"""
Mask Generator - protection fields that decide, per pixel, how much of the
original photo survives compositing.

Convention everywhere: weight 1.0 = keep the original pixel,
0.0 = take the replacement pixel.

Strategies:
  - EllipticalProtectionField  radial band around the face ellipse
  - HorizontalBoundaryField    everything below a line is protected
  - MaskImageField             externally supplied mask image
"""

from abc import ABC, abstractmethod

import cv2
import numpy as np
from PIL import Image, ImageDraw

from ..errors import DegenerateGeometry, DimensionMismatch
from ..modules.face_region import FaceRegion, Point
from ..utils.geometry import clamp01, ellipse_value, smoothstep
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BLEND_RATIO = 0.4      # blend band relative to the face radius
FACE_MASK_PADDING = 0.1        # bbox ellipse padding, fraction of the smaller side
EYEBROW_MARGIN = 10            # px the landmark outline sits above the brows
DEFAULT_FEATHER = 31           # gaussian kernel for rasterized face masks


class ProtectionField(ABC):
    """Per-pixel protection weight in [0, 1]."""

    @abstractmethod
    def _weights(self, xs, ys):
        """Vectorized weights for broadcastable pixel coordinate arrays."""

    def weight_at(self, x: float, y: float) -> float:
        return float(clamp01(self._weights(np.float64(x), np.float64(y))))

    def rows(self, y0: int, y1: int, width: int) -> np.ndarray:
        """Weights for rows [y0, y1) as a (y1 - y0, width) float array."""
        ys = np.arange(y0, y1, dtype=np.float64)[:, None]
        xs = np.arange(width, dtype=np.float64)[None, :]
        w = np.broadcast_to(self._weights(xs, ys), (y1 - y0, width))
        return clamp01(w).astype(np.float64)

    def check_size(self, width: int, height: int):
        """Raise DimensionMismatch when the field is bound to another image size."""

    def materialize(self, width: int, height: int) -> np.ndarray:
        return self.rows(0, height, width)


# ============================
# STRATEGY A - ELLIPTICAL
# ============================

class EllipticalProtectionField(ProtectionField):
    """
    1.0 inside the face ellipse, smoothstep falloff across a band of
    `blend_size` pixels (measured on the shorter radius), 0.0 beyond.

    Use when the replacement is a second full photo whose framing may not
    match the original face exactly.
    """

    def __init__(self, center: Point, rx: float, ry: float, blend_size: float):
        if rx <= 0 or ry <= 0:
            raise DegenerateGeometry(f"Ellipse radii must be positive, got rx={rx}, ry={ry}")
        if blend_size < 0:
            raise DegenerateGeometry(f"Blend size must not be negative, got {blend_size}")

        self.center = center
        self.rx = float(rx)
        self.ry = float(ry)
        self.blend_size = float(blend_size)
        self.normalized_blend = self.blend_size / min(self.rx, self.ry)

    @classmethod
    def from_face(cls, face: FaceRegion, blend_size=None,
                  blend_ratio: float = DEFAULT_BLEND_RATIO, **radii_kwargs):
        rx, ry = face.face_radii(**radii_kwargs)
        if blend_size is None:
            blend_size = blend_ratio * min(rx, ry)
        return cls(face.center(), rx, ry, blend_size)

    def ellipse_value(self, x, y):
        return ellipse_value(x, y, self.center.x, self.center.y, self.rx, self.ry)

    def _weights(self, xs, ys):
        e = self.ellipse_value(xs, ys)
        d = np.sqrt(e) - 1.0

        if self.normalized_blend > 0:
            band = 1.0 - smoothstep(d / self.normalized_blend)
            outside = np.where(d < self.normalized_blend, band, 0.0)
        else:
            outside = np.zeros_like(d)

        return np.where(e <= 1.0, 1.0, outside)

    def __repr__(self):
        return (f"EllipticalProtectionField(center=({self.center.x:.1f}, {self.center.y:.1f}), "
                f"rx={self.rx:.1f}, ry={self.ry:.1f}, blend_size={self.blend_size:.1f})")


# ============================
# STRATEGY B - HORIZONTAL BOUNDARY
# ============================

class HorizontalBoundaryField(ProtectionField):
    """
    Replacement above the boundary, original below it, smoothstep band of
    +-blend_height around the line. x is ignored.

    Only valid when the two images are pixel-aligned and the head is
    upright (hair and face separated vertically).
    """

    def __init__(self, boundary_y: float, blend_height: float):
        if blend_height < 0:
            raise DegenerateGeometry(f"Blend height must not be negative, got {blend_height}")
        self.boundary_y = float(boundary_y)
        self.blend_height = float(blend_height)

    @classmethod
    def from_face(cls, face: FaceRegion, blend_height=None,
                  blend_ratio: float = DEFAULT_BLEND_RATIO, **radii_kwargs):
        _, ry = face.face_radii(**radii_kwargs)
        if blend_height is None:
            blend_height = blend_ratio * ry
        return cls(face.hair_boundary_y(**radii_kwargs), blend_height)

    def replacement_weight(self, ys):
        top = self.boundary_y - self.blend_height
        if self.blend_height == 0:
            return np.where(ys < self.boundary_y, 1.0, 0.0)
        t = (ys - top) / (2.0 * self.blend_height)
        return 1.0 - smoothstep(t)

    def _weights(self, xs, ys):
        return 1.0 - self.replacement_weight(ys) + np.zeros_like(xs)

    def __repr__(self):
        return (f"HorizontalBoundaryField(boundary_y={self.boundary_y:.1f}, "
                f"blend_height={self.blend_height:.1f})")


# ============================
# EXTERNAL MASK IMAGE
# ============================

MASK_KEEP_BELOW = 50       # darker mask pixels keep the original exactly
MASK_REPLACE_ABOVE = 200   # brighter mask pixels take the replacement exactly


class MaskImageField(ProtectionField):
    """
    Protection from a grayscale mask image.

    By default white marks the area to REPLACE (inpainting convention).
    With `threshold`, pixels brighter than it are replaced outright.
    Without, the mask has three zones: below `keep_below` the original is
    kept untouched, above `replace_above` the replacement is taken as-is,
    and gray levels in between blend by their value. Pass None for either
    bound to disable that zone.

    The field is bound to the mask's size; resample the mask first.
    """

    def __init__(self, mask: np.ndarray, threshold=None, protect_white: bool = False,
                 keep_below=MASK_KEEP_BELOW, replace_above=MASK_REPLACE_ABOVE):
        mask = np.asarray(mask)
        if mask.ndim == 3:
            mask = mask[..., 0]
        if mask.ndim != 2:
            raise ValueError(f"Mask must be a 2D array, got shape {mask.shape}")

        if threshold is not None:
            replace = (mask > threshold).astype(np.float64)
        else:
            replace = mask.astype(np.float64) / 255.0
            if keep_below is not None:
                replace[mask < keep_below] = 0.0
            if replace_above is not None:
                replace[mask > replace_above] = 1.0

        self.protection = replace if protect_white else 1.0 - replace
        self.height, self.width = self.protection.shape

    def _weights(self, xs, ys):
        xi = np.clip(np.asarray(xs).astype(np.int64), 0, self.width - 1)
        yi = np.clip(np.asarray(ys).astype(np.int64), 0, self.height - 1)
        return self.protection[yi, xi]

    def check_size(self, width: int, height: int):
        if (height, width) != (self.height, self.width):
            raise DimensionMismatch((height, width), (self.height, self.width), what="mask")

    def rows(self, y0: int, y1: int, width: int) -> np.ndarray:
        if width != self.width or y1 > self.height:
            raise DimensionMismatch((y1, width), (self.height, self.width), what="mask")
        return self.protection[y0:y1]

    def materialize(self, width: int, height: int) -> np.ndarray:
        self.check_size(width, height)
        return self.protection.copy()


# ============================
# GENERATOR
# ============================

class MaskGenerator:
    """Build protection fields and mask images for a detected face."""

    METHODS = ("ellipse", "horizontal")

    def __init__(self, blend_ratio: float = DEFAULT_BLEND_RATIO,
                 feather: int = DEFAULT_FEATHER,
                 eyebrow_margin: float = EYEBROW_MARGIN):
        self.blend_ratio = blend_ratio
        self.feather = feather
        self.eyebrow_margin = eyebrow_margin

    def build_field(self, face: FaceRegion, method: str = "ellipse",
                    blend_size=None, **radii_kwargs) -> ProtectionField:
        """
        Smart field selection.

        ellipse     second image is a full photo (e.g. AI output)
        horizontal  images are pixel-aligned, head upright
        """
        if method == "ellipse":
            field = EllipticalProtectionField.from_face(
                face, blend_size=blend_size, blend_ratio=self.blend_ratio, **radii_kwargs)
        elif method == "horizontal":
            field = HorizontalBoundaryField.from_face(
                face, blend_height=blend_size, blend_ratio=self.blend_ratio, **radii_kwargs)
        else:
            raise ValueError(f"Unknown method: {method} (expected one of {self.METHODS})")

        logger.debug("Built %r", field)
        return field

    # -----------------------------------

    def generate_face_mask(self, face: FaceRegion, width: int, height: int,
                           feather=None) -> np.ndarray:
        """
        Rasterized face mask: black = protect, white = replace.

        With landmarks the outline runs along both eyebrows (lifted by
        `eyebrow_margin`) and back along the jaw line. Without, the box
        ellipse padded by 10% of its smaller side.
        """
        mask = Image.new("L", (width, height), 255)
        draw = ImageDraw.Draw(mask)
        lm = face.landmarks

        if lm is not None and lm.has("jaw_line", "left_eyebrow", "right_eyebrow"):
            lift = self.eyebrow_margin
            outline = [(p.x, p.y - lift) for p in lm.left_eyebrow]
            outline += [(p.x, p.y - lift) for p in lm.right_eyebrow]
            outline += [(p.x, p.y) for p in reversed(lm.jaw_line)]
            draw.polygon(outline, fill=0)
        else:
            padding = min(face.width, face.height) * FACE_MASK_PADDING
            c = face.bbox_center()
            rx = face.width / 2.0 + padding
            ry = face.height / 2.0 + padding
            draw.ellipse([c.x - rx, c.y - ry, c.x + rx, c.y + ry], fill=0)

        mask = np.array(mask)

        k = self.feather if feather is None else feather
        if k and k > 1:
            k = k if k % 2 == 1 else k + 1
            mask = cv2.GaussianBlur(mask, (k, k), 0)

        return mask

    def render_field(self, field: ProtectionField, width: int, height: int) -> np.ndarray:
        """Field as a uint8 mask image, white = replace."""
        replace = 1.0 - field.materialize(width, height)
        return np.floor(replace * 255.0 + 0.5).astype(np.uint8)

    def visualize_mask(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Red overlay where the mask replaces; blended 60/40 over the image."""
        rgb = np.ascontiguousarray(image[..., :3])
        if mask.shape[:2] != rgb.shape[:2]:
            raise DimensionMismatch(rgb.shape[:2], mask.shape[:2], what="mask")

        overlay = rgb.copy()
        overlay[mask > 128] = [255, 0, 0]  # Red = will be replaced

        return cv2.addWeighted(rgb, 0.6, overlay, 0.4, 0)
