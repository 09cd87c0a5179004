"""
Quantization Parameter Derivation

Turns the dynamic range of the reference accumulators into an 8-bit affine
output quantization and asks the requantization routines for the vector and
scalar parameter sets the kernel consumes.
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np

from .config import DepthwiseConfig
from .requantization import RequantizationParams

# Scale used when the accumulators span fewer than 256 codes
SCALE_FLOOR = 1.00001

# One rounding unit plus slack for reordered multiply-accumulate
TOLERANCE = 0.6

RequantizationParamsFunction = Callable[[float, int, int, int], RequantizationParams]


@dataclass(frozen=True)
class OutputQuantization:
    accumulators_min: int
    accumulators_max: int
    scale: float
    zero_point: int

    @property
    def range(self) -> int:
        return self.accumulators_max - self.accumulators_min

    @property
    def requantization_scale(self) -> float:
        """1 / scale, rounded to float32 the way the kernel receives it"""
        return float(np.float32(1.0) / np.float32(self.scale))


@dataclass(frozen=True)
class QuantizationParameters:
    output: OutputQuantization
    requantization: RequantizationParams
    scalar_requantization: RequantizationParams


def derive_output_quantization(accumulators: np.ndarray) -> OutputQuantization:
    accumulators_min = int(accumulators.min())
    accumulators_max = int(accumulators.max())
    accumulators_range = accumulators_max - accumulators_min

    scale = accumulators_range / 255.0 if accumulators_range >= 256 else SCALE_FLOOR
    zero_point = int(np.rint(127.5 - 0.5 * (accumulators_min + accumulators_max) / scale))
    zero_point = min(max(zero_point, 0), 255)

    return OutputQuantization(
        accumulators_min=accumulators_min,
        accumulators_max=accumulators_max,
        scale=scale,
        zero_point=zero_point,
    )


def derive_quantization_parameters(
    accumulators: np.ndarray,
    config: DepthwiseConfig,
    requantization_params_function: RequantizationParamsFunction,
    scalar_requantization_params_function: RequantizationParamsFunction
) -> QuantizationParameters:
    """
    Derive output quantization and both requantization parameter sets.

    Args:
        accumulators: Reference accumulators of the trial
        config: Supplies the qmin/qmax clamp bounds
        requantization_params_function: Vector-path parameter routine
        scalar_requantization_params_function: Scalar-path parameter routine

    Returns:
        QuantizationParameters bundle
    """
    output = derive_output_quantization(accumulators)
    scale = output.requantization_scale
    return QuantizationParameters(
        output=output,
        requantization=requantization_params_function(scale, output.zero_point, config.qmin, config.qmax),
        scalar_requantization=scalar_requantization_params_function(
            scale, output.zero_point, config.qmin, config.qmax
        ),
    )


def expected_output(accumulators: np.ndarray, output: OutputQuantization, config: DepthwiseConfig) -> np.ndarray:
    """
    Reference accumulators rescaled and saturated the way the kernel saturates.

    Values are relative to the output zero point.
    """
    scaled = accumulators.astype(np.float64) / output.scale
    return np.clip(
        scaled,
        float(config.qmin) - float(output.zero_point),
        float(config.qmax) - float(output.zero_point),
    )
