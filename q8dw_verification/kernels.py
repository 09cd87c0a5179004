"""
Reference depthwise micro-kernels.

Each factory returns a callable specialized for a tap count and channel tile
size, the same way an optimized micro-kernel is, and follows the kernel
contract the verification engine drives:

    kernel(channels, output_width, indirect_input, packed_weights, bias, output,
           input_increment, output_increment, input_zero_point, kernel_zero_point,
           requantization_params)

``input_increment`` is the distance in bytes between the indirection entries
of two consecutive output positions; ``output_increment`` is the row padding,
in bytes, skipped after each output position.
"""

from typing import Callable, List

import numpy as np

from .config import POINTER_SIZE
from .requantization import RequantizationParams, requantize_scalar, requantize_vectorized

DepthwiseUKernelFunction = Callable[
    [int, int, List[np.ndarray], np.ndarray, np.ndarray, np.ndarray,
     int, int, int, int, RequantizationParams],
    None,
]


def q8dw_ukernel_vectorized(kernel_size: int, cr: int) -> DepthwiseUKernelFunction:
    """Numpy kernel processing all channels of an output position at once"""

    def ukernel(
        channels, output_width, indirect_input, packed_weights, bias, output,
        input_increment, output_increment, input_zero_point, kernel_zero_point,
        requantization_params
    ):
        step = input_increment // POINTER_SIZE
        tiles = (channels + cr - 1) // cr
        weights = packed_weights[:tiles * kernel_size * cr].reshape(tiles, kernel_size, cr)
        weights = weights.transpose(1, 0, 2).reshape(kernel_size, tiles * cr)[:, :channels]
        weights = weights.astype(np.int32) - np.int32(kernel_zero_point)
        vbias = bias[:channels].astype(np.int32)

        out = 0
        for x in range(output_width):
            taps = indirect_input[x * step:x * step + kernel_size]
            samples = np.stack([tap[:channels] for tap in taps]).astype(np.int32) - np.int32(input_zero_point)
            acc = vbias + (samples * weights).sum(axis=0, dtype=np.int32)
            output[out:out + channels] = requantize_vectorized(acc, requantization_params)
            out += channels + output_increment

    ukernel.__name__ = f"q8dw_ukernel_{kernel_size}c{cr}__vectorized"
    return ukernel


def q8dw_ukernel_scalar(kernel_size: int, cr: int) -> DepthwiseUKernelFunction:
    """One channel at a time, walking the packed tile layout directly"""

    def ukernel(
        channels, output_width, indirect_input, packed_weights, bias, output,
        input_increment, output_increment, input_zero_point, kernel_zero_point,
        requantization_params
    ):
        step = input_increment // POINTER_SIZE
        out = 0
        for x in range(output_width):
            taps = indirect_input[x * step:x * step + kernel_size]
            for c in range(channels):
                w = (c // cr) * cr * kernel_size + c % cr
                acc = int(bias[c])
                for k in range(kernel_size):
                    vi = int(taps[k][c]) - input_zero_point
                    vk = int(packed_weights[w + k * cr]) - kernel_zero_point
                    acc += vi * vk
                output[out + c] = requantize_scalar(acc, requantization_params)
            out += channels + output_increment

    ukernel.__name__ = f"q8dw_ukernel_{kernel_size}c{cr}__scalar"
    return ukernel
