"""
Randomized Verification Suite for Quantized Depthwise Micro-Kernels

Checks 8-bit depthwise convolution kernels against an exact integer
reference with derived Q31 requantization parameters.
"""

from .config import DepthwiseConfig
from .errors import (
    DegenerateDataError,
    OutputCorruptionError,
    ToleranceExceededError,
    VerificationError,
)
from .generators import TrialGenerator, Trial
from .kernels import q8dw_ukernel_scalar, q8dw_ukernel_vectorized
from .packing import pack_q8dw_weights
from .requantization import (
    RequantizationParams,
    compute_requantization_params,
    compute_scalar_requantization_params,
)
from .statistics import StatisticsCollector
from .verification_engine import VerificationEngine
from .scenarios import (
    TestScenario,
    MinimalScenario,
    UnalignedChannelsScenario,
    StridedScenario,
    RestrictedRangeScenario,
    RandomScenario,
)

__all__ = [
    'DepthwiseConfig',
    'DegenerateDataError',
    'OutputCorruptionError',
    'ToleranceExceededError',
    'VerificationError',
    'TrialGenerator',
    'Trial',
    'q8dw_ukernel_scalar',
    'q8dw_ukernel_vectorized',
    'pack_q8dw_weights',
    'RequantizationParams',
    'compute_requantization_params',
    'compute_scalar_requantization_params',
    'StatisticsCollector',
    'VerificationEngine',
    'TestScenario',
    'MinimalScenario',
    'UnalignedChannelsScenario',
    'StridedScenario',
    'RestrictedRangeScenario',
    'RandomScenario',
]
