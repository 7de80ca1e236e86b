"""Tests for shutter and directional blur sampling."""

import pytest
import numpy as np

from homoblur.core import AffineTransform, ShutterOffset, TransformSampleSet
from homoblur.core import matrix as mat
from homoblur.core.sampling import (
    fade_weights,
    inverse_transforms,
    inverse_transforms_blur,
    single_inverse_transform,
)


class RecordingEffect:
    """Inverse translation by ``velocity * time * amount``.

    Records every query; returns None for times inside ``gaps`` and amounts
    below ``min_amount``.
    """

    def __init__(self, velocity=(10.0, 0.0), gaps=(), min_amount=None):
        self.velocity = velocity
        self.gaps = gaps
        self.min_amount = min_amount
        self.times = []
        self.amounts = []

    def get_inverse_transform_canonical(self, time, amount=1.0, invert=False):
        self.times.append(time)
        self.amounts.append(amount)
        if any(a <= time <= b for a, b in self.gaps):
            return None
        if self.min_amount is not None and amount < self.min_amount:
            return None
        tx = self.velocity[0] * time * amount
        ty = self.velocity[1] * time * amount
        return mat.translation(tx, ty) if invert else mat.translation(-tx, -ty)


def _shutter(effect, time=0.0, shutter=1.0, offset=ShutterOffset.START, capacity=5,
             render_scale=(1.0, 1.0), par=1.0):
    return inverse_transforms(effect, time, render_scale, False, par, False,
                              shutter, offset, 0.0, capacity=capacity)


class TestTransformSampleSet:
    def test_capacity(self):
        s = TransformSampleSet(capacity=2)
        s.append(mat.identity())
        s.append(mat.identity())
        with pytest.raises(OverflowError):
            s.append(mat.identity())

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            TransformSampleSet(capacity=0)

    def test_collapse(self):
        s = TransformSampleSet(capacity=3)
        for _ in range(3):
            s.append(mat.translation(1.0, 2.0))
        assert s.collapse()
        assert len(s) == 1
        assert s.capacity == 3

    def test_no_collapse_when_different(self):
        s = TransformSampleSet(capacity=2)
        s.append(mat.identity())
        s.append(mat.translation(1e-9, 0.0))
        assert not s.collapse()
        assert len(s) == 2

    def test_weights(self):
        s = TransformSampleSet(capacity=2)
        s.append(mat.identity())
        assert s.weights is None
        s.set_weights(np.array([0.5]))
        np.testing.assert_array_equal(s.weights, [0.5])
        with pytest.raises(ValueError):
            s.set_weights(np.ones(2))

    def test_matrices_shape(self):
        assert TransformSampleSet(capacity=4).matrices.shape == (0, 3, 3)
        assert TransformSampleSet.single(mat.identity()).matrices.shape == (1, 3, 3)


class TestShutterSampling:
    def test_constant_transform_collapses(self):
        effect = AffineTransform({"translate_x": 5.0, "rotate": 10.0})
        for shutter in (0.25, 1.0, 3.0):
            samples = _shutter(effect, shutter=shutter, capacity=1000)
            assert len(samples) == 1
        expected = mat.inverse(effect.forward_transform_canonical(0.0, 1.0),
                               mat.determinant(effect.forward_transform_canonical(0.0, 1.0)))
        np.testing.assert_allclose(samples[0].matrix, expected)

    def test_linear_spacing(self):
        effect = RecordingEffect()
        samples = _shutter(effect, time=2.0, shutter=1.0, capacity=5)
        assert len(samples) == 5
        assert effect.times[0] == 2.0
        assert effect.times == pytest.approx([2.0, 2.25, 2.5, 2.75, 3.0])
        np.testing.assert_allclose(samples.matrices[:, 0, 2], [-20.0, -22.5, -25.0, -27.5, -30.0])
        assert samples.weights is None

    def test_centered_offset(self):
        effect = RecordingEffect()
        _shutter(effect, time=1.0, shutter=0.5, offset=ShutterOffset.CENTERED, capacity=3)
        assert effect.times == pytest.approx([0.75, 1.0, 1.25])

    def test_missing_transform_is_identity(self):
        effect = RecordingEffect(gaps=[(0.4, 0.6)])
        samples = _shutter(effect, time=0.0, shutter=1.0, capacity=5)
        assert len(samples) == 5
        np.testing.assert_array_equal(samples[2].matrix, np.eye(3))
        assert samples[3].matrix[0, 2] == pytest.approx(-7.5)

    def test_pixel_space(self):
        effect = RecordingEffect(velocity=(10.0, 4.0))
        samples = _shutter(effect, time=1.0, shutter=0.0, capacity=2, render_scale=(0.5, 0.5), par=2.0)
        assert len(samples) == 1
        m = samples[0].matrix
        assert m[0, 2] == pytest.approx(-2.5)
        assert m[1, 2] == pytest.approx(-2.0)
        assert m[0, 0] == pytest.approx(1.0)


class TestDirectionalSampling:
    def test_spacing(self):
        effect = AffineTransform({"translate_x": 8.0})
        samples = inverse_transforms_blur(effect, 0.0, (1.0, 1.0), False, 1.0, False, 0.0, 1.0, capacity=8)
        assert len(samples) == 8
        expected_amounts = [1.0 - (i + 1) / 8 for i in range(8)]
        np.testing.assert_allclose(samples.weights, expected_amounts)
        np.testing.assert_allclose(samples.matrices[:, 0, 2], [-8.0 * a for a in expected_amounts], atol=1e-12)

    def test_centered_range(self):
        effect = RecordingEffect()
        inverse_transforms_blur(effect, 1.0, (1.0, 1.0), False, 1.0, False, -1.0, 1.0, capacity=4)
        assert effect.amounts == pytest.approx([0.5, 0.0, -0.5, -1.0])

    def test_missing_amounts_are_dropped(self):
        effect = RecordingEffect(min_amount=0.3)
        samples = inverse_transforms_blur(effect, 1.0, (1.0, 1.0), False, 1.0, False, 0.0, 1.0, capacity=8)
        assert len(samples) == 5
        np.testing.assert_allclose(samples.weights, [0.875, 0.75, 0.625, 0.5, 0.375])

    def test_zero_amount_collapses(self):
        effect = AffineTransform({"translate_x": 8.0})
        samples = inverse_transforms_blur(effect, 0.0, (1.0, 1.0), False, 1.0, False, 0.0, 0.0, capacity=8)
        assert len(samples) == 1
        np.testing.assert_allclose(samples[0].matrix, np.eye(3), atol=1e-12)


class TestFadeWeights:
    @pytest.fixture
    def samples(self):
        s = TransformSampleSet(capacity=4)
        for amount in (0.75, 0.5, 0.25, 0.0):
            s.append(mat.translation(amount, 0.0), weight=amount)
        return s

    def test_no_fading(self, samples):
        fade_weights(samples, 1.0, 0.0)
        np.testing.assert_array_equal(samples.weights, np.ones(4))

    def test_fading(self, samples):
        fade_weights(samples, 1.0, 2.0)
        np.testing.assert_allclose(samples.weights, [0.0625, 0.25, 0.5625, 1.0])

    def test_zero_amount_to(self, samples):
        fade_weights(samples, 0.0, 2.0)
        np.testing.assert_array_equal(samples.weights, np.ones(4))

    def test_empty(self):
        s = TransformSampleSet(capacity=2)
        fade_weights(s, 1.0, 1.0)
        assert len(s) == 0


class TestSingleTransform:
    def test_value(self):
        samples = single_inverse_transform(RecordingEffect(), 2.0, (1.0, 1.0), False, 1.0, False)
        assert len(samples) == 1
        assert samples[0].matrix[0, 2] == pytest.approx(-20.0)

    def test_missing_is_identity(self):
        effect = RecordingEffect(gaps=[(0.0, 1.0)])
        samples = single_inverse_transform(effect, 0.5, (1.0, 1.0), False, 1.0, False)
        assert len(samples) == 1
        np.testing.assert_array_equal(samples[0].matrix, np.eye(3))
