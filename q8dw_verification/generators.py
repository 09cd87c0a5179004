"""
Constrained-Random Trial Generators

Generates the per-trial buffers of a depthwise convolution test: byte input
behind a guard region, channel-major byte weights, int32 bias and a shuffled
indirection table of views into the input.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .config import DepthwiseConfig, INPUT_GUARD_SIZE

INPUT_ZERO_POINT = 127
KERNEL_ZERO_POINT = 127

BIAS_RANGE = (-10000, 10000)


@dataclass
class Trial:
    """All buffers of one trial. Nothing here outlives the trial."""
    input: np.ndarray
    kernel: np.ndarray
    packed_kernel: np.ndarray
    bias: np.ndarray
    indirection: List[np.ndarray]
    output: np.ndarray


class TrialGenerator:
    """
    Seeded generator of depthwise convolution trials.

    The seed is kept so a failing trial can be regenerated. When no seed is
    given one is drawn from OS entropy and recorded the same way.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = int(np.random.SeedSequence().entropy % (2 ** 32))
        self.seed = seed
        self.rng = np.random.default_rng(seed)

    def random_bytes(self, size: int) -> np.ndarray:
        return self.rng.integers(0, 256, size=size, dtype=np.uint8)

    def generate_input(self, config: DepthwiseConfig) -> np.ndarray:
        return self.random_bytes(config.input_size)

    def generate_kernel(self, config: DepthwiseConfig) -> np.ndarray:
        return self.random_bytes(config.channels * config.kernel_size)

    def generate_bias(self, config: DepthwiseConfig) -> np.ndarray:
        low, high = BIAS_RANGE
        return self.rng.integers(low, high, size=config.packed_channels, dtype=np.int32, endpoint=True)

    def build_indirection(self, config: DepthwiseConfig, input: np.ndarray) -> List[np.ndarray]:
        """
        Build the indirection table and shuffle it.

        Entry ``i`` starts at input row ``i`` past the guard region. The
        shuffle makes the kernel follow the table instead of assuming rows
        are laid out contiguously.
        """
        stride = config.effective_input_stride
        indirection = [
            input[INPUT_GUARD_SIZE + i * stride:]
            for i in range(config.indirection_size)
        ]
        order = self.rng.permutation(len(indirection))
        return [indirection[i] for i in order]

    def generate_output(self, config: DepthwiseConfig) -> np.ndarray:
        # Random fill so writes into row padding are detectable
        return self.random_bytes(config.output_size)

    def generate_trial(self, config: DepthwiseConfig) -> Trial:
        input = self.generate_input(config)
        return Trial(
            input=input,
            kernel=self.generate_kernel(config),
            packed_kernel=np.full(
                config.kernel_size * config.packed_channels, KERNEL_ZERO_POINT, dtype=np.uint8
            ),
            bias=self.generate_bias(config),
            indirection=self.build_indirection(config, input),
            output=self.generate_output(config),
        )

    def generate_shape_variations(self, base_config: DepthwiseConfig, num_variations: int = 20) -> List[DepthwiseConfig]:
        """
        Random shapes covering unaligned channel counts, strided rows and
        restricted output ranges.

        Tap count and cr come from ``base_config``; a micro-kernel is
        specialized for them.
        """
        configs = []
        for _ in range(num_variations):
            channels = int(self.rng.integers(1, 33))
            input_stride = 0
            output_stride = 0
            if self.rng.random() < 0.3:
                input_stride = channels + int(self.rng.integers(1, 8))
            if self.rng.random() < 0.3:
                output_stride = channels + int(self.rng.integers(1, 8))
            qmin, qmax = 0, 255
            if self.rng.random() < 0.2:
                qmin = int(self.rng.integers(0, 64))
                qmax = int(self.rng.integers(192, 256))
            configs.append(base_config.replace(
                width=int(self.rng.integers(1, 9)),
                subsampling=int(self.rng.integers(1, 3)),
                channels=channels,
                input_stride=input_stride,
                output_stride=output_stride,
                qmin=qmin,
                qmax=qmax,
            ))
        return configs
