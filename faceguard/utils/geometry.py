"""
geometry.py
-----------
Scalar helpers shared by every blend.

Each function accepts Python floats or numpy arrays, so the same code
answers a single-pixel query and evaluates a whole pixel grid.
"""

import numpy as np


def clamp01(value):
    """Clip to [0, 1]."""
    return np.clip(value, 0.0, 1.0)


def lerp(a, b, t):
    return a + (b - a) * t


def smoothstep(t):
    """
    Cubic Hermite ease t^2 (3 - 2t).

    Below 0 returns 0, above 1 returns 1. C1-continuous at both ends.
    """
    t = np.clip(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def ellipse_value(px, py, cx, cy, rx, ry):
    """
    ((px - cx) / rx)^2 + ((py - cy) / ry)^2

    <= 1 means the point lies inside the ellipse. Radii must be positive;
    callers validate them first.
    """
    dx = (px - cx) / rx
    dy = (py - cy) / ry
    return dx * dx + dy * dy
