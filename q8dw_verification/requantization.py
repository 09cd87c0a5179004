"""
Q31 Fixed-Point Requantization

Default parameter routines handed to the verification engine, and the
requantize functions the reference kernels apply. The scheme maps a float32
scale in [2^-32, 1) to a Q31 multiplier and a rounding right shift:

    q31 = round(acc * multiplier / 2^31)
    out = clamp(round_shift(q31, shift), qmin - zero_point, qmax - zero_point) + zero_point
"""

from dataclasses import dataclass

import numpy as np

Q31_ROUNDING = 1 << 30


@dataclass(frozen=True)
class RequantizationParams:
    """Opaque-to-the-harness bundle consumed by a kernel"""
    multiplier: int
    shift: int
    remainder_mask: int
    remainder_threshold: int
    zero_point: int
    qmin: int
    qmax: int
    path: str = "vector"

    @property
    def min_less_zero_point(self) -> int:
        return self.qmin - self.zero_point

    @property
    def max_less_zero_point(self) -> int:
        return self.qmax - self.zero_point


def _q31_multiplier_and_shift(scale: float):
    scale = np.float32(scale)
    assert scale >= np.float32(2.0 ** -32), f"scale {scale} below 2^-32"
    assert scale < np.float32(1.0), f"scale {scale} must be below 1.0"

    scale_bits = int(np.array(scale, dtype=np.float32).view(np.uint32))
    multiplier = ((scale_bits & 0x007FFFFF) | 0x00800000) << 7
    shift = 127 + 31 - 32 - (scale_bits >> 23)
    assert 0 <= shift < 32, f"shift {shift} out of range"
    return multiplier, shift


def _compute_params(scale: float, zero_point: int, qmin: int, qmax: int, path: str) -> RequantizationParams:
    assert 0 <= zero_point <= 255, f"zero point out of range: {zero_point}"
    assert 0 <= qmin <= qmax <= 255, f"invalid clamp bounds [{qmin}, {qmax}]"
    multiplier, shift = _q31_multiplier_and_shift(scale)
    remainder_mask = (1 << shift) - 1
    return RequantizationParams(
        multiplier=multiplier,
        shift=shift,
        remainder_mask=remainder_mask,
        remainder_threshold=remainder_mask >> 1,
        zero_point=zero_point,
        qmin=qmin,
        qmax=qmax,
        path=path,
    )


def compute_requantization_params(scale: float, zero_point: int, qmin: int, qmax: int) -> RequantizationParams:
    """Parameters for the vectorized kernel path"""
    return _compute_params(scale, zero_point, qmin, qmax, path="vector")


def compute_scalar_requantization_params(scale: float, zero_point: int, qmin: int, qmax: int) -> RequantizationParams:
    """Parameters for the scalar fallback path"""
    return _compute_params(scale, zero_point, qmin, qmax, path="scalar")


def requantize_scalar(acc: int, params: RequantizationParams) -> int:
    product = int(acc) * params.multiplier
    q31product = (product + Q31_ROUNDING) >> 31
    remainder = (q31product & params.remainder_mask) - int(q31product < 0)
    n = (q31product >> params.shift) + int(remainder > params.remainder_threshold)
    n = min(max(n, params.min_less_zero_point), params.max_less_zero_point)
    return n + params.zero_point


def requantize_vectorized(acc: np.ndarray, params: RequantizationParams) -> np.ndarray:
    """
    Lane-wise requantization of an int32 accumulator array.

    Clamps after adding the zero point, in the unsigned output domain.
    """
    product = acc.astype(np.int64) * np.int64(params.multiplier)
    q31product = (product + np.int64(Q31_ROUNDING)) >> 31
    remainder = (q31product & params.remainder_mask) - (q31product < 0)
    n = (q31product >> params.shift) + (remainder > params.remainder_threshold)
    return np.clip(n + params.zero_point, params.qmin, params.qmax).astype(np.uint8)
