"""
Depthwise Convolution Test Configuration

Describes the convolution shape and quantization range a micro-kernel is
verified against. Invalid values are test-authoring mistakes and fail
immediately with an AssertionError.
"""

from dataclasses import dataclass, replace as _replace

import numpy as np

# Size of one indirection table entry, in bytes
POINTER_SIZE = np.dtype(np.intp).itemsize

# Bytes placed in front of the usable input region
INPUT_GUARD_SIZE = 8


@dataclass(frozen=True)
class DepthwiseConfig:
    """
    Immutable, validated description of a depthwise convolution test case.

    Use ``replace`` to derive a modified configuration; it re-runs validation
    and returns the new instance so calls can be chained:

        DepthwiseConfig().replace(channels=5, cr=8).replace(width=3)

    An ``input_stride``/``output_stride`` of 0 means "unset" and the
    effective stride falls back to ``channels``.
    """
    width: int = 1
    kernel_height: int = 1
    kernel_width: int = 1
    subsampling: int = 1
    channels: int = 1
    cr: int = 1
    input_stride: int = 0
    output_stride: int = 0
    qmin: int = 0
    qmax: int = 255
    iterations: int = 3

    def __post_init__(self):
        assert self.width >= 1, f"width must be >= 1, got {self.width}"
        assert self.subsampling >= 1, f"subsampling must be >= 1, got {self.subsampling}"
        assert self.channels >= 1, f"channels must be >= 1, got {self.channels}"
        assert self.cr != 0, "cr must be nonzero"
        assert (self.cr & (self.cr - 1)) == 0, f"cr must be a power of two, got {self.cr}"
        assert self.kernel_height != 0, "kernel_height must be nonzero"
        assert self.kernel_width != 0, "kernel_width must be nonzero"
        assert self.input_stride == 0 or self.input_stride >= self.channels, \
            f"input_stride {self.input_stride} < channels {self.channels}"
        assert self.output_stride == 0 or self.output_stride >= self.channels, \
            f"output_stride {self.output_stride} < channels {self.channels}"
        assert 0 <= self.qmin <= 255, f"qmin out of range: {self.qmin}"
        assert 0 <= self.qmax <= 255, f"qmax out of range: {self.qmax}"
        assert self.qmin <= self.qmax, f"qmin {self.qmin} > qmax {self.qmax}"
        assert self.iterations >= 0, f"iterations must be >= 0, got {self.iterations}"

    def replace(self, **changes) -> "DepthwiseConfig":
        return _replace(self, **changes)

    @property
    def packed_channels(self) -> int:
        """Channels rounded up to a whole number of cr-wide tiles"""
        return (self.channels + self.cr - 1) & ~(self.cr - 1)

    @property
    def kernel_size(self) -> int:
        return self.kernel_height * self.kernel_width

    @property
    def effective_input_stride(self) -> int:
        return self.input_stride or self.channels

    @property
    def effective_output_stride(self) -> int:
        return self.output_stride or self.channels

    @property
    def tap_step(self) -> int:
        """Indirection entries between consecutive output positions"""
        return self.kernel_height * self.subsampling

    @property
    def indirection_size(self) -> int:
        return self.kernel_size + (self.width - 1) * self.tap_step

    @property
    def input_size(self) -> int:
        """Input buffer length in bytes, guard region included"""
        return (
            (self.indirection_size - 1) * self.effective_input_stride
            + self.channels
            + INPUT_GUARD_SIZE
        )

    @property
    def output_size(self) -> int:
        return (self.width - 1) * self.effective_output_stride + self.channels

    @property
    def input_increment(self) -> int:
        """Tap-pointer stride handed to the kernel, in bytes"""
        return self.tap_step * POINTER_SIZE

    @property
    def output_increment(self) -> int:
        """Output row padding handed to the kernel, in bytes"""
        return self.effective_output_stride - self.channels

    def describe(self) -> str:
        return (
            f"width={self.width} kernel={self.kernel_height}x{self.kernel_width} "
            f"subsampling={self.subsampling} channels={self.channels} cr={self.cr} "
            f"input_stride={self.effective_input_stride} "
            f"output_stride={self.effective_output_stride} "
            f"q=[{self.qmin}, {self.qmax}]"
        )
