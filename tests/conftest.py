import numpy as np
import pytest

from faceguard.modules.face_region import FaceRegion, LandmarkSet


def _solid(width, height, rgb, alpha=None):
    channels = 3 if alpha is None else 4
    img = np.zeros((height, width, channels), dtype=np.uint8)
    img[..., :3] = rgb
    if alpha is not None:
        img[..., 3] = alpha
    return img


@pytest.fixture
def solid():
    """solid(width, height, rgb, alpha=None) -> uint8 RGB or RGBA image"""
    return _solid


@pytest.fixture
def bbox_face():
    # center (200, 170), radii (100, 120)
    return FaceRegion(x=100, y=50, width=200, height=240)


@pytest.fixture
def landmark_dict():
    return {
        "jawLine": [
            {"x": 100, "y": 150}, {"x": 120, "y": 220}, {"x": 150, "y": 270},
            {"x": 200, "y": 300},
            {"x": 250, "y": 270}, {"x": 280, "y": 220}, {"x": 300, "y": 150},
        ],
        "leftEyebrow": [{"x": 140, "y": 120}, {"x": 170, "y": 120}],
        "rightEyebrow": [{"x": 230, "y": 120}, {"x": 260, "y": 120}],
        "nose": [{"x": 200, "y": 160}, {"x": 200, "y": 200}],
        "noseTip": {"x": 205, "y": 210},
        "leftEye": [{"x": 150, "y": 150}, {"x": 170, "y": 145}, {"x": 170, "y": 155}],
        "rightEye": [{"x": 230, "y": 150}, {"x": 250, "y": 145}, {"x": 250, "y": 155}],
        "mouth": [{"x": 180, "y": 250}, {"x": 220, "y": 250}],
    }


@pytest.fixture
def landmark_face(landmark_dict):
    # eye level 150, jaw bottom 300, jaw span 200, eyebrows at 120
    return FaceRegion(x=90, y=80, width=220, height=240,
                      landmarks=LandmarkSet.from_dict(landmark_dict))
