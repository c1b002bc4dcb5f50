"""
Image I/O and small helpers around the engine.
Decoding and encoding live here; the core only sees numpy arrays.
"""
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from ..modules.face_region import FaceRegion


# ============================
# UTILITY
# ============================

def load_image(path) -> np.ndarray:
    """Decode any Pillow-readable file to an HxWx4 uint8 RGBA array."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cannot load image: {path}")
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"))


def save_image(image: np.ndarray, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.asarray(image, dtype=np.uint8)).save(path)
    return path


def resample_to(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize to exactly width x height; returns the input when it already fits."""
    if image.shape[1] == width and image.shape[0] == height:
        return image
    interp = cv2.INTER_AREA if image.shape[1] > width else cv2.INTER_LINEAR
    return cv2.resize(np.ascontiguousarray(image), (width, height), interpolation=interp)


def extract_face_crop(image: np.ndarray, face: FaceRegion, padding: float = 0.2) -> np.ndarray:
    """Face box grown by `padding` of its size on each side, clipped to the image."""
    h, w = image.shape[:2]
    pad_x = face.width * padding
    pad_y = face.height * padding

    x1 = max(0, int(face.x - pad_x))
    y1 = max(0, int(face.y - pad_y))
    x2 = min(w, int(face.x + face.width + pad_x))
    y2 = min(h, int(face.y + face.height + pad_y))
    return image[y1:y2, x1:x2].copy()


def draw_face_region_debug(image: np.ndarray, face: FaceRegion) -> np.ndarray:
    """
    Debug utility: face box in red, landmarks as small lime dots.
    Works on RGB or RGBA arrays.
    """
    out = np.ascontiguousarray(image).copy()
    opaque = (255,) if out.shape[2] == 4 else ()

    x1, y1 = int(face.x), int(face.y)
    x2, y2 = int(face.x + face.width), int(face.y + face.height)
    cv2.rectangle(out, (x1, y1), (x2, y2), (255, 0, 0) + opaque, 3)

    if face.landmarks is not None:
        for p in face.landmarks.all_points():
            cv2.circle(out, (int(p.x), int(p.y)), 2, (0, 255, 0) + opaque, -1)

    return out
