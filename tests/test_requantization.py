import numpy as np
import pytest

from q8dw_verification.requantization import (
    compute_requantization_params,
    compute_scalar_requantization_params,
    requantize_scalar,
    requantize_vectorized,
)


def test_half_scale_has_no_shift():
    params = compute_requantization_params(0.5, 128, 0, 255)
    assert params.multiplier == 1 << 30
    assert params.shift == 0
    assert params.remainder_mask == 0
    assert params.remainder_threshold == 0


def test_quarter_scale():
    params = compute_requantization_params(0.25, 0, 0, 255)
    assert params.multiplier == 1 << 30
    assert params.shift == 1
    assert params.remainder_mask == 1
    assert params.remainder_threshold == 0


def test_vector_and_scalar_parameters_are_equivalent():
    vector = compute_requantization_params(0.0123, 100, 10, 240)
    scalar = compute_scalar_requantization_params(0.0123, 100, 10, 240)
    assert vector.path == "vector"
    assert scalar.path == "scalar"
    for field in ('multiplier', 'shift', 'remainder_mask', 'remainder_threshold', 'zero_point', 'qmin', 'qmax'):
        assert getattr(vector, field) == getattr(scalar, field)
    assert vector.min_less_zero_point == -90
    assert vector.max_less_zero_point == 140


@pytest.mark.parametrize("scale", [1.0, 1.5, 0.0, 2.0 ** -40])
def test_scale_out_of_range_fails(scale):
    with pytest.raises(AssertionError):
        compute_requantization_params(scale, 0, 0, 255)


def test_invalid_bounds_fail():
    with pytest.raises(AssertionError):
        compute_scalar_requantization_params(0.5, 0, 200, 100)


@pytest.mark.parametrize(
    "scale,zero_point,qmin,qmax,seed",
    [
        (0.99999, 127, 0, 255, 0),
        (0.0123, 100, 10, 240, 1),
        (0.5, 0, 0, 127, 2),
        (2.0 ** -20, 255, 0, 255, 3),
    ],
)
def test_scalar_and_vectorized_requantize_agree(scale, zero_point, qmin, qmax, seed):
    rng = np.random.default_rng(seed)
    acc = rng.integers(-(2 ** 20), 2 ** 20, size=500, dtype=np.int32)
    params = compute_requantization_params(scale, zero_point, qmin, qmax)

    vectorized = requantize_vectorized(acc, params)
    scalar = np.array([requantize_scalar(int(a), params) for a in acc], dtype=np.uint8)
    np.testing.assert_array_equal(vectorized, scalar)


def test_requantize_close_to_real_arithmetic():
    rng = np.random.default_rng(7)
    acc = rng.integers(-20000, 20000, size=1000, dtype=np.int32)
    scale = 0.0123
    params = compute_requantization_params(scale, 100, 0, 255)

    out = requantize_vectorized(acc, params).astype(np.float64)
    real = np.clip(acc * float(np.float32(scale)) + 100, 0, 255)
    assert np.max(np.abs(out - real)) <= 0.51


def test_requantize_saturates():
    params = compute_requantization_params(0.5, 100, 20, 200)
    assert requantize_scalar(10 ** 6, params) == 200
    assert requantize_scalar(-(10 ** 6), params) == 20
    out = requantize_vectorized(np.array([10 ** 6, -(10 ** 6), 0], dtype=np.int32), params)
    np.testing.assert_array_equal(out, [200, 20, 100])


def test_q31_rounding_without_shift_rounds_half_up():
    params = compute_requantization_params(0.5, 128, 0, 255)
    assert requantize_scalar(1, params) == 129
    assert requantize_scalar(-1, params) == 128
    assert requantize_scalar(3, params) == 130
    assert requantize_scalar(-3, params) == 127


def test_shift_rounds_half_away_from_zero():
    params = compute_requantization_params(0.25, 128, 0, 255)
    assert requantize_scalar(2, params) == 129
    assert requantize_scalar(-2, params) == 127
    np.testing.assert_array_equal(
        requantize_vectorized(np.array([2, -2, 6, -6], dtype=np.int32), params),
        [129, 127, 130, 126],
    )
