"""
Reference Computation Engine

Exact integer depthwise convolution used as ground truth, plus the guards
that reject trials whose data cannot tell a correct kernel from a broken one.
"""

from typing import Optional

import numpy as np
import torch

from .config import DepthwiseConfig
from .errors import DegenerateDataError
from .generators import Trial, INPUT_ZERO_POINT, KERNEL_ZERO_POINT


def gather_input(config: DepthwiseConfig, trial: Trial) -> np.ndarray:
    """
    Read the input samples through the indirection table.

    Returns:
        uint8 array of shape (width, kernel_size, channels)
    """
    step = config.tap_step
    samples = np.empty((config.width, config.kernel_size, config.channels), dtype=np.uint8)
    for x in range(config.width):
        for k in range(config.kernel_size):
            samples[x, k] = trial.indirection[x * step + k][:config.channels]
    return samples


def compute_accumulators(config: DepthwiseConfig, trial: Trial) -> np.ndarray:
    """
    Full-precision depthwise convolution.

    For every output position x and channel c:

        bias[c] + sum_k (input[x, k, c] - 127) * (kernel[c, k] - 127)

    Args:
        config: Convolution shape
        trial: Generated buffers (the packed kernel is not read)

    Returns:
        int32 array of shape (width, channels)
    """
    samples = torch.from_numpy(gather_input(config, trial)).to(torch.int64)
    kernel = torch.from_numpy(trial.kernel).to(torch.int64).reshape(config.channels, config.kernel_size)
    bias = torch.from_numpy(trial.bias[:config.channels]).to(torch.int64)

    products = (samples - INPUT_ZERO_POINT) * (kernel.t() - KERNEL_ZERO_POINT)
    accumulators = products.sum(dim=1) + bias
    return accumulators.to(torch.int32).numpy()


def check_contrast(name: str, values: np.ndarray, trial: Optional[int] = None, seed: Optional[int] = None):
    """Reject a buffer whose values are all identical"""
    if values.size > 1 and values.max() == values.min():
        raise DegenerateDataError(
            f"{name} has no contrast: all {values.size} values equal {int(values.max())}",
            trial=trial,
            seed=seed,
        )


def check_accumulator_range(accumulators: np.ndarray, trial: Optional[int] = None, seed: Optional[int] = None):
    if accumulators.size > 1 and int(accumulators.max()) == int(accumulators.min()):
        raise DegenerateDataError(
            f"accumulators span a zero range ({int(accumulators.max())})",
            trial=trial,
            seed=seed,
        )
