"""Tests for transform effects."""

import pytest
import numpy as np

from homoblur.core import (
    AffineTransform,
    ConfigError,
    CornerPin,
    Mirror,
    ParamsType,
    build_effect,
)
from homoblur.core import matrix as mat


def _apply(m, x, y):
    p = m @ np.array([x, y, 1.0])
    return p[0] / p[2], p[1] / p[2]


class TestAffineTransform:
    def test_defaults(self):
        effect = AffineTransform()
        assert effect.is_identity(0.0)
        np.testing.assert_allclose(effect.forward_transform_canonical(0.0, 1.0), np.eye(3))
        assert effect.params.value_at("shutter", 0.0) == 0.5
        assert effect.params.value_at("black_outside", 0.0) is True

    def test_rotation_about_center(self):
        effect = AffineTransform({"rotate": 90.0, "center_x": 50.0, "center_y": 50.0})
        x, y = _apply(effect.forward_transform_canonical(0.0, 1.0), 100.0, 50.0)
        assert (x, y) == pytest.approx((50.0, 100.0))

    def test_scale_about_center(self):
        effect = AffineTransform({"scale_x": 2.0, "scale_y": 0.5, "center_x": 10.0, "center_y": 10.0})
        assert _apply(effect.forward_transform_canonical(0.0, 1.0), 20.0, 20.0) == pytest.approx((30.0, 15.0))

    def test_amount_blends_from_identity(self):
        effect = AffineTransform({"translate_x": 10.0, "scale_x": 3.0})
        np.testing.assert_allclose(effect.forward_transform_canonical(0.0, 0.0), np.eye(3))
        half = effect.forward_transform_canonical(0.0, 0.5)
        assert half[0, 0] == pytest.approx(2.0)
        assert half[0, 2] == pytest.approx(5.0)

    def test_animated(self):
        effect = AffineTransform({"translate_x": {"keys": [[0.0, 0.0], [10.0, 100.0]]}})
        assert effect.forward_transform_canonical(2.5, 1.0)[0, 2] == pytest.approx(25.0)
        assert effect.is_identity(0.0)
        assert not effect.is_identity(1.0)

    def test_inverse(self):
        effect = AffineTransform({"translate_x": 10.0, "rotate": 30.0})
        inv = effect.get_inverse_transform_canonical(0.0)
        np.testing.assert_allclose(inv @ effect.forward_transform_canonical(0.0, 1.0), np.eye(3), atol=1e-12)
        np.testing.assert_array_equal(effect.get_inverse_transform_canonical(0.0, invert=True),
                                      effect.forward_transform_canonical(0.0, 1.0))

    def test_singular(self):
        effect = AffineTransform({"scale_x": 0.0})
        assert effect.get_inverse_transform_canonical(0.0) is None
        assert effect.get_inverse_transform_canonical(0.0, invert=True) is not None

    def test_snapshot(self):
        effect = AffineTransform({"motion_blur": 1.0, "shutter_offset": "centered"})
        p = effect.snapshot(0.0)
        assert p.motion_blur == 1.0
        assert p.shutter == 0.5
        assert p.amount is None
        assert p.mix is None


class TestMirror:
    def test_flip(self):
        effect = Mirror({"flip": True, "center_x": 50.0})
        assert _apply(effect.forward_transform_canonical(0.0, 1.0), 0.0, 7.0) == pytest.approx((100.0, 7.0))
        assert not effect.is_identity(0.0)

    def test_flop(self):
        effect = Mirror({"flop": True})
        assert _apply(effect.forward_transform_canonical(0.0, 1.0), 3.0, 4.0) == pytest.approx((3.0, -4.0))

    def test_identity(self):
        effect = Mirror()
        assert effect.is_identity(0.0)
        assert effect.params_type == ParamsType.NONE
        assert effect.snapshot(0.0).invert is None

    def test_ignores_amount(self):
        effect = Mirror({"flip": True})
        np.testing.assert_array_equal(effect.forward_transform_canonical(0.0, 0.0),
                                      effect.forward_transform_canonical(0.0, 1.0))


class TestCornerPin:
    @pytest.fixture
    def params(self):
        return {
            "to1_x": 0.0, "to1_y": 0.0,
            "to2_x": 200.0, "to2_y": 10.0,
            "to3_x": 180.0, "to3_y": 150.0,
            "to4_x": -20.0, "to4_y": 100.0,
            "from2_x": 100.0, "from3_x": 100.0, "from3_y": 100.0, "from4_y": 100.0,
        }

    def test_maps_corners(self, params):
        effect = CornerPin(params)
        m = effect.forward_transform_canonical(0.0, 1.0)
        assert _apply(m, 100.0, 0.0) == pytest.approx((200.0, 10.0))
        assert _apply(m, 100.0, 100.0) == pytest.approx((180.0, 150.0))
        assert _apply(m, 0.0, 100.0) == pytest.approx((-20.0, 100.0))

    def test_default_is_identity(self):
        effect = CornerPin()
        assert effect.is_identity(0.0)
        np.testing.assert_allclose(effect.forward_transform_canonical(0.0, 1.0), np.eye(3), atol=1e-12)

    def test_amount(self, params):
        effect = CornerPin(params)
        m = effect.forward_transform_canonical(0.0, 0.5)
        assert _apply(m, 100.0, 0.0) == pytest.approx((150.0, 5.0))

    def test_translation(self):
        params = {f"to{k}_x": x + 2.0 for k, x in zip(range(1, 5), (0.0, 1.0, 1.0, 0.0))}
        params.update({f"to{k}_y": y + 3.0 for k, y in zip(range(1, 5), (0.0, 0.0, 1.0, 1.0))})
        m = CornerPin(params).forward_transform_canonical(0.0, 1.0)
        np.testing.assert_allclose(m, mat.translation(2.0, 3.0), atol=1e-12)


class TestBuildEffect:
    def test_by_name(self):
        assert isinstance(build_effect("affine", {"rotate": 5.0}), AffineTransform)
        assert isinstance(build_effect("corner_pin"), CornerPin)
        effect = build_effect("mirror", {"flip": True}, params_type="dir_blur")
        assert isinstance(effect, Mirror)
        assert effect.params_type == ParamsType.NONE

    def test_params_type_from_string(self):
        effect = build_effect("affine", params_type="dir_blur", masked=True)
        assert effect.params_type == ParamsType.DIR_BLUR
        assert effect.params.value_at("amount", 0.0) == 1.0
        assert effect.params.value_at("mix", 0.0) == 1.0

    def test_unknown(self):
        with pytest.raises(ConfigError):
            build_effect("swirl")
