import math

import numpy as np
import pytest

from ballcapture.envs.core.geometry import NullVectorError, Vector2D, normalize_angle


def test_normalize_angle_range_and_idempotence():
    for angle in [-1e-20, 0.0, 180.0, -180.0, 181.0, 359.9, 540.0, -540.0, -719.5, 1e6, -1e-13]:
        a = normalize_angle(angle)
        assert -180.0 < a <= 180.0
        assert normalize_angle(a) == a
        # Same direction as the input
        assert np.isclose(math.cos(math.radians(a)), math.cos(math.radians(angle)))
        assert np.isclose(math.sin(math.radians(a)), math.sin(math.radians(angle)), atol=1e-9)


def test_normalize_angle_boundaries():
    assert normalize_angle(-180.0) == 180.0
    assert normalize_angle(180.0) == 180.0
    assert normalize_angle(190.0) == -170.0
    assert normalize_angle(-190.0) == 170.0
    assert normalize_angle(720.0) == 0.0


def test_polar_roundtrip():
    v = Vector2D.from_polar(2.0, 90.0)
    assert np.isclose(v.x, 0.0, atol=1e-12)
    assert np.isclose(v.y, 2.0)
    assert np.isclose(v.polar_radius(), 2.0)
    assert np.isclose(v.polar_angle(), 90.0)


def test_zero_vector_has_zero_angle():
    assert Vector2D(0.0, 0.0).polar_angle() == 0.0
    assert Vector2D(0.0, 0.0).polar_radius() == 0.0


def test_clamp_returns_rescaled_copy():
    v = Vector2D(3.0, 4.0)
    c = v.clamp(1.0)
    assert np.isclose(c.polar_radius(), 1.0)
    assert np.isclose(c.polar_angle(), v.polar_angle())
    # original untouched, short vectors unchanged
    assert v == Vector2D(3.0, 4.0)
    assert v.clamp(10.0) == v


def test_arithmetic_and_distances():
    a = Vector2D(1.0, 2.0)
    b = Vector2D(4.0, 6.0)
    assert a.add(b) == Vector2D(5.0, 8.0)
    assert b.subtract(a) == Vector2D(3.0, 4.0)
    assert a.scale(2.0) == Vector2D(2.0, 4.0)
    assert a.dot(b) == 16.0
    assert np.isclose(a.distance_to(b), 5.0)
    assert np.isclose(Vector2D(0.0, 0.0).direction_of(Vector2D(0.0, -1.0)), -90.0)


def test_none_operand_raises():
    v = Vector2D(1.0, 1.0)
    for op in (v.add, v.subtract, v.dot, v.distance_to, v.direction_of):
        with pytest.raises(NullVectorError):
            op(None)
    # still a ValueError for callers catching the broad type
    with pytest.raises(ValueError):
        v.add(None)


def test_str_lists_components():
    assert str(Vector2D(1.5, -2.0)) == "(1.5, -2)"
