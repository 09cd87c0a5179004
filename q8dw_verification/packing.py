"""
Channel-tiled weight packing for depthwise micro-kernels.

Channels are grouped into tiles of ``cr``; inside a tile the weights are
stored tap-major so a kernel loads ``cr`` channels of one tap at a time:

    packed[(c // cr) * cr * kernel_size + k * cr + c % cr] = kernel[c * kernel_size + k]

Padding channels of the last tile are left untouched. The caller fills them
with the kernel zero point beforehand.
"""

import numpy as np


def pack_q8dw_weights(channels: int, kernel_size: int, cr: int, kernel: np.ndarray, packed: np.ndarray):
    tiles = (channels + cr - 1) // cr
    assert kernel.size >= channels * kernel_size
    assert packed.size >= tiles * cr * kernel_size

    weights = kernel[:channels * kernel_size].reshape(channels, kernel_size)
    layout = packed[:tiles * cr * kernel_size].reshape(tiles, kernel_size, cr)
    for tile in range(tiles):
        start = tile * cr
        block = weights[start:start + cr]
        layout[tile, :, :block.shape[0]] = block.T
