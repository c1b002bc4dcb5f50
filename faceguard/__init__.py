"""faceguard - hairstyle previews that keep the original face."""

from .core.compositor import composite
from .core.hair_placement import OverlayPlacement, OverlaySettings, compute_hair_placement
from .core.mask_generator import (
    EllipticalProtectionField,
    HorizontalBoundaryField,
    MaskGenerator,
    MaskImageField,
    ProtectionField,
)
from .core.overlay_renderer import fade_out_below, render_overlay
from .errors import DegenerateGeometry, DimensionMismatch, FaceGuardError, MissingFaceRegion
from .modules.face_region import FaceRegion, LandmarkSet, Point

__version__ = "0.1.0"

__all__ = [
    "composite",
    "OverlayPlacement",
    "OverlaySettings",
    "compute_hair_placement",
    "EllipticalProtectionField",
    "HorizontalBoundaryField",
    "MaskGenerator",
    "MaskImageField",
    "ProtectionField",
    "fade_out_below",
    "render_overlay",
    "DegenerateGeometry",
    "DimensionMismatch",
    "FaceGuardError",
    "MissingFaceRegion",
    "FaceRegion",
    "LandmarkSet",
    "Point",
]
