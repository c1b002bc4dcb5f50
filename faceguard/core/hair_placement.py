"""
hair_placement.py
-----------------
Where to draw a pre-rendered, transparent hair cut-out on the original
photo. Only face geometry is used: no AI image is involved on this path.

The asset is sized relative to the face width, keeps its own aspect
ratio, is centered on the face, and hangs from the forehead line so that
part of it covers the crown.
"""

from dataclasses import dataclass, fields
from typing import Dict, Optional

from ..errors import DegenerateGeometry
from ..modules.face_region import FOREHEAD_LIFT, FaceRegion

WIDTH_FACTOR = 2.2   # hair canopy vs face width across the asset library
CROWN_RATIO = 0.4    # share of asset height above the forehead line


@dataclass(frozen=True)
class OverlaySettings:
    """User fine-tuning. Defaults are the identity."""
    offset_x: float = 0.0   # px
    offset_y: float = 0.0   # px
    scale: float = 1.0      # multiplier
    rotation: float = 0.0   # degrees
    opacity: float = 1.0    # 0..1

    _WIRE = {"offsetX": "offset_x", "offsetY": "offset_y"}

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "OverlaySettings":
        """Partial mapping merged over the defaults; camelCase keys accepted."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = cls._WIRE.get(key, key)
            if name in known and value is not None:
                kwargs[name] = float(value)
        return cls(**kwargs)


@dataclass(frozen=True)
class OverlayPlacement:
    x: float
    y: float
    width: float
    height: float
    rotation_degrees: float
    opacity: float

    @property
    def center(self):
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


def compute_hair_placement(face: FaceRegion,
                           asset_width: float,
                           asset_height: float,
                           settings: Optional[OverlaySettings] = None,
                           width_factor: float = WIDTH_FACTOR,
                           crown_ratio: float = CROWN_RATIO,
                           forehead_lift: float = FOREHEAD_LIFT) -> OverlayPlacement:
    """
    Destination rectangle for a hair asset.

        width  = face.width * width_factor * scale
        height = width / (asset_width / asset_height)
        x      = face center x - width / 2 + offset_x
        y      = forehead line - height * crown_ratio + offset_y

    Rotation and opacity pass through untouched.
    """
    if asset_width <= 0 or asset_height <= 0:
        raise DegenerateGeometry(
            f"Hair asset has unusable size {asset_width}x{asset_height}; "
            "the image is corrupt or was not loaded"
        )

    settings = settings or OverlaySettings()
    if settings.scale <= 0:
        raise DegenerateGeometry(f"Overlay scale must be positive, got {settings.scale}")

    width = face.width * width_factor * settings.scale
    height = width / (asset_width / asset_height)

    x = face.center().x - width / 2.0 + settings.offset_x
    y = face.forehead_line(forehead_lift) - height * crown_ratio + settings.offset_y

    return OverlayPlacement(
        x=x,
        y=y,
        width=width,
        height=height,
        rotation_degrees=settings.rotation,
        opacity=settings.opacity,
    )
