import numpy as np
import pytest

from faceguard.core.compositor import BAND_ROWS, composite, to_rgba
from faceguard.core.mask_generator import (
    EllipticalProtectionField,
    HorizontalBoundaryField,
    MaskImageField,
)
from faceguard.errors import DimensionMismatch


def test_red_blue_half_blend(solid):
    red = solid(4, 4, (255, 0, 0), alpha=255)
    blue = solid(4, 4, (0, 0, 255), alpha=255)
    out = composite(red, blue, 0.5)
    assert out.shape == (4, 4, 4)
    assert np.all(out == np.array([128, 0, 128, 255], dtype=np.uint8))


def test_composite_with_itself_is_identity(bbox_face):
    rng = np.random.default_rng(7)
    img = rng.integers(0, 256, size=(300, 400, 4), dtype=np.uint8)
    img[..., 3] = 255
    field = EllipticalProtectionField.from_face(bbox_face, blend_size=25)
    out = composite(img, img, field)
    assert np.max(np.abs(out.astype(int) - img.astype(int))) <= 1


def test_constant_weights_return_inputs(solid):
    rng = np.random.default_rng(3)
    a = rng.integers(0, 256, size=(20, 30, 3), dtype=np.uint8)
    b = rng.integers(0, 256, size=(20, 30, 3), dtype=np.uint8)

    keep = composite(a, b, 1.0)
    assert np.array_equal(keep[..., :3], a)
    assert np.all(keep[..., 3] == 255)

    take = composite(a, b, 0.0)
    assert np.array_equal(take[..., :3], b)
    assert np.all(take[..., 3] == 255)


def test_alpha_forced_opaque_unless_preserved(solid):
    a = solid(5, 5, (10, 20, 30), alpha=0)
    b = solid(5, 5, (10, 20, 30), alpha=100)
    assert np.all(composite(a, b, 0.5)[..., 3] == 255)
    assert np.all(composite(a, b, 0.5, preserve_alpha=True)[..., 3] == 50)


def test_size_mismatch_rejected(solid):
    with pytest.raises(DimensionMismatch) as exc:
        composite(solid(4, 4, (0, 0, 0)), solid(5, 4, (0, 0, 0)), 0.5)
    assert "5x4" in str(exc.value) and "4x4" in str(exc.value)


def test_weight_array_shape_checked(solid):
    img = solid(4, 4, (0, 0, 0))
    with pytest.raises(DimensionMismatch):
        composite(img, img, np.zeros((3, 4)))


def test_inputs_not_modified(solid):
    a = solid(6, 6, (200, 0, 0))
    b = solid(6, 6, (0, 200, 0))
    a_before, b_before = a.copy(), b.copy()
    composite(a, b, 0.3)
    assert np.array_equal(a, a_before) and np.array_equal(b, b_before)


def test_banded_field_matches_dense_weights(solid):
    height = BAND_ROWS * 2 + 17
    red = solid(40, height, (255, 0, 0))
    blue = solid(40, height, (0, 0, 255))
    field = HorizontalBoundaryField(boundary_y=height / 2, blend_height=60)

    banded = composite(red, blue, field)
    dense = composite(red, blue, field.materialize(40, height))
    assert np.array_equal(banded, dense)
    assert tuple(banded[0, 0]) == (0, 0, 255, 255)
    assert tuple(banded[-1, 0]) == (255, 0, 0, 255)


def test_to_rgba_validates_shape():
    with pytest.raises(ValueError):
        to_rgba(np.zeros((4, 4), dtype=np.uint8))
    assert to_rgba(np.zeros((2, 2, 3), dtype=np.uint8))[..., 3].min() == 255


def test_mask_image_field_composite(solid):
    red = solid(6, 4, (255, 0, 0))
    blue = solid(6, 4, (0, 0, 255))
    mask = np.zeros((4, 6), dtype=np.uint8)
    mask[:2] = 255   # top half replaced
    out = composite(red, blue, MaskImageField(mask))
    assert tuple(out[0, 0]) == (0, 0, 255, 255)
    assert tuple(out[3, 5]) == (255, 0, 0, 255)

    with pytest.raises(DimensionMismatch):
        composite(solid(6, 8, (0, 0, 0)), solid(6, 8, (0, 0, 0)), MaskImageField(mask))


def test_taller_mask_rejected(solid):
    img = solid(6, 4, (0, 0, 0))
    with pytest.raises(DimensionMismatch):
        composite(img, img, MaskImageField(np.zeros((8, 6), dtype=np.uint8)))


def test_dark_mask_pixels_keep_original_exactly(solid):
    red = solid(2, 1, (255, 0, 0))
    blue = solid(2, 1, (0, 0, 255))
    out = composite(red, blue, MaskImageField(np.array([[30, 230]], dtype=np.uint8)))
    assert tuple(out[0, 0]) == (255, 0, 0, 255)
    assert tuple(out[0, 1]) == (0, 0, 255, 255)
