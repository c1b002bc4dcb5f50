"""
Face Detection using InsightFace (RetinaFace + 2D106 landmarks)
Turns the best detection into a FaceRegion with named landmark groups.
"""

from typing import Optional, Sequence

import cv2
import numpy as np

from ..errors import MissingFaceRegion
from ..utils.logging_config import get_logger
from .face_region import FaceRegion, LandmarkSet, Point

logger = get_logger(__name__)


# ============================
# CONFIG
# ============================

DEFAULT_MODEL_NAME = "buffalo_l"
DEFAULT_DET_SIZE = (640, 640)
DEFAULT_MIN_SCORE = 0.30

# 68-point layout: index ranges per named group
GROUPS_68 = {
    "jaw_line": (0, 17),
    "left_eyebrow": (17, 22),
    "right_eyebrow": (22, 27),
    "nose": (27, 36),
    "left_eye": (36, 42),
    "right_eye": (42, 48),
    "mouth": (48, 68),
}
NOSE_TIP_68 = 30

# InsightFace 2d106det index for each of the 68 points
LANDMARK_106_TO_68 = [
    # jaw
    1, 10, 12, 14, 16, 3, 5, 7, 0, 23, 21, 19, 32, 30, 28, 26, 17,
    # eyebrows
    43, 48, 49, 51, 50,
    102, 103, 104, 105, 101,
    # nose
    72, 73, 74, 86, 78, 79, 80, 85, 84,
    # eyes
    35, 41, 42, 39, 37, 36,
    89, 95, 96, 93, 91, 90,
    # mouth
    52, 64, 63, 71, 67, 68, 61, 58, 59, 53, 56, 55, 65, 66, 62, 70, 69, 57, 60, 54,
]


# ============================
# LANDMARK CONVERSION
# ============================

def _as_points(points, expected: int) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.shape != (expected, 2):
        raise ValueError(f"Expected ({expected},2) landmarks but got {arr.shape}")
    return arr


def landmarks_from_68(points: Sequence) -> LandmarkSet:
    """Named groups from a 68-point (dlib / face-api ordering) array."""
    lm = _as_points(points, 68)
    groups = {
        name: [Point(float(x), float(y)) for x, y in lm[start:end]]
        for name, (start, end) in GROUPS_68.items()
    }
    tip = lm[NOSE_TIP_68]
    return LandmarkSet(nose_tip=Point(float(tip[0]), float(tip[1])), **groups)


def landmarks_from_106(points: Sequence) -> LandmarkSet:
    """Named groups from InsightFace's 106-point layout."""
    lm = _as_points(points, 106)
    return landmarks_from_68(lm[LANDMARK_106_TO_68])


# ============================
# FACE DETECTOR
# ============================

class InsightFaceDetector:
    """
    Explicit detector handle.

    `app` is anything with InsightFace's `get(img_bgr)` signature returning
    objects with `bbox`, `det_score` and optionally `landmark_2d_106`.
    """

    def __init__(self, app, min_score: float = DEFAULT_MIN_SCORE):
        self.app = app
        self.min_score = min_score

    @classmethod
    def load(cls, model_name: str = DEFAULT_MODEL_NAME,
             det_size=DEFAULT_DET_SIZE,
             ctx_id: int = -1,
             min_score: float = DEFAULT_MIN_SCORE) -> "InsightFaceDetector":
        """
        model_name: insightface model pack directory (buffalo_l)
        ctx_id: GPU index (0), or -1 for CPU
        """
        # Optional dependency (pip install faceguard[detect])
        from insightface.app import FaceAnalysis

        logger.info("Loading InsightFace model pack '%s' (det_size=%s)", model_name, det_size)
        app = FaceAnalysis(
            name=model_name,
            providers=['CPUExecutionProvider']
        )
        app.prepare(ctx_id=ctx_id, det_size=tuple(det_size))
        return cls(app, min_score=min_score)

    # -----------------------------------

    def detect(self, image_rgb: np.ndarray) -> Optional[FaceRegion]:
        """
        Highest-scoring face as a FaceRegion, or None.

        Input is RGB or RGBA; InsightFace expects BGR.
        """
        if image_rgb is None:
            raise ValueError("Input image is None.")

        img_bgr = cv2.cvtColor(np.ascontiguousarray(image_rgb[..., :3]), cv2.COLOR_RGB2BGR)
        faces = self.app.get(img_bgr)

        if len(faces) == 0:
            logger.info("No face found")
            return None

        best = max(faces, key=lambda f: f.det_score)

        if best.det_score < self.min_score:
            logger.info("Best face score %.2f below threshold %.2f",
                        best.det_score, self.min_score)
            return None

        raw_lm = getattr(best, "landmark_2d_106", None)
        landmarks = landmarks_from_106(raw_lm) if raw_lm is not None else None

        region = FaceRegion.from_xyxy(best.bbox, landmarks=landmarks)
        logger.debug("Face at %s (score %.2f)", region.as_tuple(), best.det_score)
        return region


def require_face(region: Optional[FaceRegion]) -> FaceRegion:
    if region is None:
        raise MissingFaceRegion()
    return region
