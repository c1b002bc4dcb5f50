from types import SimpleNamespace

import numpy as np
import pytest

from faceguard.errors import MissingFaceRegion
from faceguard.modules.face_detection import (
    LANDMARK_106_TO_68,
    InsightFaceDetector,
    landmarks_from_68,
    landmarks_from_106,
    require_face,
)
from faceguard.modules.face_region import Point


def _points_106():
    # point i sits at (i, 2i) so every mapped index is recognizable
    return np.stack([np.arange(106), 2 * np.arange(106)], axis=1).astype(np.float32)


class FakeApp:
    def __init__(self, faces):
        self.faces = faces
        self.seen = None

    def get(self, img_bgr):
        self.seen = img_bgr
        return self.faces


def _face(score, bbox=(10, 20, 110, 140), with_landmarks=True):
    face = SimpleNamespace(bbox=np.array(bbox, dtype=np.float32), det_score=score)
    if with_landmarks:
        face.landmark_2d_106 = _points_106()
    return face


def test_mapping_table_covers_68_points():
    assert len(LANDMARK_106_TO_68) == 68
    assert len(set(LANDMARK_106_TO_68)) == 68
    assert all(0 <= i < 106 for i in LANDMARK_106_TO_68)


def test_landmarks_from_106_groups():
    lm = landmarks_from_106(_points_106())
    assert len(lm.jaw_line) == 17
    assert len(lm.left_eyebrow) == len(lm.right_eyebrow) == 5
    assert len(lm.nose) == 9
    assert len(lm.left_eye) == len(lm.right_eye) == 6
    assert len(lm.mouth) == 20
    assert lm.jaw_line[0] == Point(1, 2)
    assert lm.left_eye[0] == Point(35, 70)
    assert lm.nose_tip == Point(86, 172)


def test_landmarks_from_68_nose_tip():
    pts = np.stack([np.arange(68), np.zeros(68)], axis=1)
    lm = landmarks_from_68(pts)
    assert lm.nose_tip == Point(30, 0)
    assert lm.jaw_line[-1] == Point(16, 0)
    assert lm.mouth[0] == Point(48, 0)


def test_wrong_point_count_rejected():
    with pytest.raises(ValueError):
        landmarks_from_68(np.zeros((67, 2)))
    with pytest.raises(ValueError):
        landmarks_from_106(np.zeros((68, 2)))


def test_detect_picks_best_face(solid):
    app = FakeApp([_face(0.5, bbox=(0, 0, 5, 5)), _face(0.9)])
    region = InsightFaceDetector(app).detect(solid(20, 10, (255, 0, 0)))
    assert region.as_tuple() == (10, 20, 100, 120)
    assert region.landmarks is not None
    # InsightFace receives BGR
    assert tuple(app.seen[0, 0]) == (0, 0, 255)


def test_detect_without_landmarks(solid):
    app = FakeApp([_face(0.8, with_landmarks=False)])
    region = InsightFaceDetector(app).detect(solid(4, 4, (0, 0, 0), alpha=255))
    assert region.landmarks is None


def test_detect_returns_none(solid):
    img = solid(4, 4, (0, 0, 0))
    assert InsightFaceDetector(FakeApp([])).detect(img) is None
    assert InsightFaceDetector(FakeApp([_face(0.2)]), min_score=0.3).detect(img) is None


def test_require_face():
    with pytest.raises(MissingFaceRegion) as exc:
        require_face(None)
    assert str(exc.value) == "No face detected. Please use a front-facing photo."
