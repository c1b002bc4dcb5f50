"""
Prompt generator for hair-only image edits
"""

import math

from .face_region import FaceRegion

PROTECTED_FEATURES = [
    "Face shape and bone structure",
    "Eyes: position, shape, color, pupils, eyelids, eyelashes",
    "Eyebrows: shape, thickness, arch",
    "Nose: bridge, tip, nostrils, overall shape",
    "Mouth: lips shape, lip color, teeth if visible",
    "Ears: shape and position",
    "Skin: tone, texture, all marks, moles, freckles, wrinkles",
    "Facial expression and emotion",
    "Jawline and chin shape",
    "Cheekbones structure",
]

EDITABLE_AREAS = [
    "Hair above the forehead",
    "Hair on the sides (not overlapping ears)",
    "Hair at the back of head",
    "Hair color and texture",
]


def _percent(value, total):
    return int(math.floor(value / total * 100 + 0.5))


def generate_face_protection_prompt(face: FaceRegion, image_width: int, image_height: int) -> str:
    """Instruction text telling an image model where the face is and what it may touch."""
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")

    face_x = _percent(face.x, image_width)
    face_y = _percent(face.y, image_height)
    face_w = _percent(face.width, image_width)
    face_h = _percent(face.height, image_height)

    protected = "\n".join(f"- {item}" for item in PROTECTED_FEATURES)
    editable = "\n".join(f"- {item}" for item in EDITABLE_AREAS)

    prompt = (
        "CRITICAL: THE FACE REGION MUST REMAIN COMPLETELY UNCHANGED.\n\n"
        "FACE LOCATION (percentage of image):\n"
        f"- Position: {face_x}% from left, {face_y}% from top\n"
        f"- Size: {face_w}% width, {face_h}% height\n\n"
        "PROTECTED FACIAL FEATURES (DO NOT MODIFY):\n"
        f"{protected}\n\n"
        "ONLY MODIFY:\n"
        f"{editable}\n\n"
        "The resulting image must show the EXACT SAME PERSON - 100% recognizable.\n"
        "Any change to facial features will make this transformation FAILED."
    )

    return prompt
