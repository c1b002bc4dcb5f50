"""
face_region.py

Face geometry shared by mask generation and hair placement.

Consumes:
  - a bounding box {x, y, width, height} from the detector
  - optional landmark groups (jaw line, eyebrows, nose, eyes, mouth)

Produces:
  - FaceRegion with derived anchors:
      * center()          face center
      * face_radii()      ellipse radii hugging the face
      * forehead_line()   y of the forehead line above the eyebrows
      * hair_boundary_y() y separating hair zone from face zone

Missing landmark groups never raise: every anchor falls back to
bounding-box geometry.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from ..errors import DegenerateGeometry
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


# ============================
# CONSTANTS
# ============================

JAW_TIGHTENING = 0.85          # ellipse hugs the face, not the jaw shadow
EYE_TO_JAW_TIGHTENING = 0.95   # forehead stays outside (hair territory)
FOREHEAD_LIFT = 0.15           # fraction of bbox height above the eyebrows
BBOX_RADIUS_FACTOR = 0.5

# wire name -> attribute name
GROUP_KEYS = {
    "jawLine": "jaw_line",
    "leftEyebrow": "left_eyebrow",
    "rightEyebrow": "right_eyebrow",
    "nose": "nose",
    "leftEye": "left_eye",
    "rightEye": "right_eye",
    "mouth": "mouth",
}


# ============================
# DATA STRUCTURES
# ============================

@dataclass(frozen=True)
class Point:
    x: float
    y: float

    @classmethod
    def parse(cls, raw) -> "Point":
        """Accepts {x, y} mappings, (x, y) pairs and Point instances."""
        if isinstance(raw, Point):
            return raw
        if isinstance(raw, dict):
            return cls(float(raw["x"]), float(raw["y"]))
        x, y = raw
        return cls(float(x), float(y))


def _points(raw: Optional[Iterable]) -> Tuple[Point, ...]:
    if raw is None:
        return ()
    return tuple(Point.parse(p) for p in raw)


def _mean_y(points: Sequence[Point]) -> float:
    return sum(p.y for p in points) / len(points)


@dataclass(frozen=True)
class LandmarkSet:
    """
    Ordered landmark groups of one detection.

    Order inside a group matters (jaw line runs ear to ear). An empty
    group means the detector did not provide it.
    """
    jaw_line: Tuple[Point, ...] = ()
    left_eyebrow: Tuple[Point, ...] = ()
    right_eyebrow: Tuple[Point, ...] = ()
    nose: Tuple[Point, ...] = ()
    left_eye: Tuple[Point, ...] = ()
    right_eye: Tuple[Point, ...] = ()
    mouth: Tuple[Point, ...] = ()
    nose_tip: Optional[Point] = None

    def __post_init__(self):
        for attr in GROUP_KEYS.values():
            object.__setattr__(self, attr, _points(getattr(self, attr)))
        if self.nose_tip is not None:
            object.__setattr__(self, "nose_tip", Point.parse(self.nose_tip))

    # -----------------------------------

    def has(self, *groups: str) -> bool:
        return all(len(getattr(self, g)) > 0 for g in groups)

    def eye_level(self) -> Optional[float]:
        """Average of the two eyes' mean heights."""
        if not self.has("left_eye", "right_eye"):
            return None
        return (_mean_y(self.left_eye) + _mean_y(self.right_eye)) / 2.0

    def eyebrow_level(self) -> Optional[float]:
        if not self.has("left_eyebrow", "right_eyebrow"):
            return None
        return (_mean_y(self.left_eyebrow) + _mean_y(self.right_eyebrow)) / 2.0

    def jaw_bottom(self) -> Optional[float]:
        if not self.has("jaw_line"):
            return None
        return max(p.y for p in self.jaw_line)

    def jaw_span(self) -> Optional[float]:
        if not self.has("jaw_line"):
            return None
        xs = [p.x for p in self.jaw_line]
        return max(xs) - min(xs)

    def nose_x(self) -> Optional[float]:
        """Nose tip x if the detector named one, else the nose group's mean x."""
        if self.nose_tip is not None:
            return self.nose_tip.x
        if not self.has("nose"):
            return None
        return sum(p.x for p in self.nose) / len(self.nose)

    def all_points(self) -> Tuple[Point, ...]:
        pts = ()
        for attr in GROUP_KEYS.values():
            pts += getattr(self, attr)
        return pts

    # -----------------------------------

    @classmethod
    def from_dict(cls, data: Dict) -> "LandmarkSet":
        kwargs = {}
        for wire, attr in GROUP_KEYS.items():
            raw = data.get(wire, data.get(attr))
            kwargs[attr] = _points(raw)
        tip = data.get("noseTip", data.get("nose_tip"))
        kwargs["nose_tip"] = Point.parse(tip) if tip is not None else None
        return cls(**kwargs)

    def to_dict(self) -> Dict:
        out = {
            wire: [{"x": p.x, "y": p.y} for p in getattr(self, attr)]
            for wire, attr in GROUP_KEYS.items()
        }
        if self.nose_tip is not None:
            out["noseTip"] = {"x": self.nose_tip.x, "y": self.nose_tip.y}
        return out


@dataclass(frozen=True)
class FaceRegion:
    x: float
    y: float
    width: float
    height: float
    landmarks: Optional[LandmarkSet] = None

    def __post_init__(self):
        if not (self.width > 0 and self.height > 0):
            raise DegenerateGeometry(
                f"Face box must have positive size, got {self.width}x{self.height}"
            )

    # ============================
    # DERIVED ANCHORS
    # ============================

    def bbox_center(self) -> Point:
        return Point(self.x + self.width / 2.0, self.y + self.height / 2.0)

    def center(self) -> Point:
        """
        With eyes, jaw line and nose: x at the nose, y halfway between eye
        level and the lowest jaw point. Otherwise the bounding-box center.
        """
        lm = self.landmarks
        if lm is not None and lm.has("left_eye", "right_eye", "jaw_line"):
            nose_x = lm.nose_x()
            if nose_x is not None:
                return Point(nose_x, (lm.eye_level() + lm.jaw_bottom()) / 2.0)

        return self.bbox_center()

    def face_radii(self,
                   jaw_tightening: float = JAW_TIGHTENING,
                   eye_to_jaw_tightening: float = EYE_TO_JAW_TIGHTENING) -> Tuple[float, float]:
        """
        (rx, ry) of the protection ellipse.

        Landmark radii exclude the forehead. Collapsed landmarks (zero span)
        count as insufficient data and fall back to the box.
        """
        lm = self.landmarks
        if lm is not None and lm.has("jaw_line", "left_eye", "right_eye"):
            rx = lm.jaw_span() / 2.0 * jaw_tightening
            ry = (lm.jaw_bottom() - lm.eye_level()) / 2.0 * eye_to_jaw_tightening
            if rx > 0 and ry > 0:
                return rx, ry
            logger.debug("Landmark radii collapsed (%.2f, %.2f); using bbox", rx, ry)

        return self.width * BBOX_RADIUS_FACTOR, self.height * BBOX_RADIUS_FACTOR

    def forehead_line(self, lift: float = FOREHEAD_LIFT) -> float:
        """Average eyebrow height minus `lift` of the box height; box top without brows."""
        if self.landmarks is not None:
            brow = self.landmarks.eyebrow_level()
            if brow is not None:
                return brow - self.height * lift
        return float(self.y)

    def hair_boundary_y(self, **radii_kwargs) -> float:
        """Face center height raised by half the vertical radius."""
        _, ry = self.face_radii(**radii_kwargs)
        return self.center().y - ry / 2.0

    # ============================
    # DERIVED REGIONS
    # ============================

    def without_landmarks(self) -> "FaceRegion":
        return replace(self, landmarks=None)

    def clamped(self, image_width: int, image_height: int) -> "FaceRegion":
        """Box clipped to the image; landmarks are kept as-is."""
        x1 = min(max(self.x, 0.0), image_width)
        y1 = min(max(self.y, 0.0), image_height)
        x2 = min(max(self.x + self.width, 0.0), image_width)
        y2 = min(max(self.y + self.height, 0.0), image_height)
        if x2 <= x1 or y2 <= y1:
            raise DegenerateGeometry(
                f"Face box {self.as_tuple()} lies outside the {image_width}x{image_height} image"
            )
        if (x1, y1, x2 - x1, y2 - y1) == self.as_tuple():
            return self
        return replace(self, x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    # ============================
    # WIRE FORMAT
    # ============================

    @classmethod
    def from_dict(cls, data: Dict) -> "FaceRegion":
        raw_lm = data.get("landmarks")
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
            landmarks=LandmarkSet.from_dict(raw_lm) if raw_lm else None,
        )

    @classmethod
    def from_xyxy(cls, bbox, landmarks: Optional[LandmarkSet] = None) -> "FaceRegion":
        x1, y1, x2, y2 = (float(v) for v in np.asarray(bbox).ravel()[:4])
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1, landmarks=landmarks)

    def to_dict(self) -> Dict:
        out = {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
        if self.landmarks is not None:
            out["landmarks"] = self.landmarks.to_dict()
        return out
