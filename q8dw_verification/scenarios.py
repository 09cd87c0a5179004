"""
Test Scenarios for Depthwise Kernel Verification

Each scenario produces the configurations a kernel family is exercised with.
Kernels are specialized for a tap count and channel tile, so scenarios are
built for a fixed (kernel_height, kernel_width, cr).
"""

from abc import ABC, abstractmethod
from typing import List

from .config import DepthwiseConfig
from .generators import TrialGenerator


class TestScenario(ABC):
    """Base class for test scenarios"""

    # Not a pytest test class
    __test__ = False

    def __init__(self, name: str, base_config: DepthwiseConfig):
        self.name = name
        self.base_config = base_config

    @abstractmethod
    def generate_configs(self, num_tests: int) -> List[DepthwiseConfig]:
        """Generate a list of configurations"""
        pass

    @abstractmethod
    def get_description(self) -> str:
        pass


class MinimalScenario(TestScenario):
    """Single output position, single channel"""

    def __init__(self, base_config: DepthwiseConfig):
        super().__init__("Minimal", base_config)

    def generate_configs(self, num_tests: int) -> List[DepthwiseConfig]:
        return [self.base_config.replace(width=1, channels=1, subsampling=1)][:num_tests]

    def get_description(self) -> str:
        return "One output position and one channel"


class UnalignedChannelsScenario(TestScenario):
    """Channel counts below, at and above whole tiles"""

    def __init__(self, base_config: DepthwiseConfig):
        super().__init__("Unaligned Channels", base_config)

    def generate_configs(self, num_tests: int) -> List[DepthwiseConfig]:
        cr = self.base_config.cr
        counts = [cr, cr + 1, 2 * cr - 1, 2 * cr + 1, 3 * cr]
        if cr > 1:
            counts = [1, cr - 1] + counts
        # cr of 1 or 2 repeats counts
        counts = list(dict.fromkeys(counts))
        return [
            self.base_config.replace(channels=channels, width=3)
            for channels in counts[:num_tests]
        ]

    def get_description(self) -> str:
        return "Channel counts that leave the last tile partially filled"


class StridedScenario(TestScenario):
    """Padded input and output rows"""

    def __init__(self, base_config: DepthwiseConfig):
        super().__init__("Strided Rows", base_config)

    def generate_configs(self, num_tests: int) -> List[DepthwiseConfig]:
        channels = max(self.base_config.channels, self.base_config.cr + 3)
        base = self.base_config.replace(channels=channels, width=5)
        configs = [
            base.replace(input_stride=channels + 5),
            base.replace(output_stride=channels + 7),
            base.replace(input_stride=2 * channels + 1, output_stride=channels + 3),
            base.replace(subsampling=2, input_stride=channels + 1),
        ]
        return configs[:num_tests]

    def get_description(self) -> str:
        return "Input and output strides larger than the channel count"


class RestrictedRangeScenario(TestScenario):
    """Output clamp bounds narrower than the full byte range"""

    def __init__(self, base_config: DepthwiseConfig):
        super().__init__("Restricted Range", base_config)

    def generate_configs(self, num_tests: int) -> List[DepthwiseConfig]:
        channels = max(self.base_config.channels, self.base_config.cr + 1)
        base = self.base_config.replace(channels=channels, width=4)
        configs = [
            base.replace(qmin=0, qmax=127),
            base.replace(qmin=128, qmax=255),
            base.replace(qmin=64, qmax=191),
        ]
        return configs[:num_tests]

    def get_description(self) -> str:
        return "Saturation at qmin/qmax on both reference and kernel side"


class RandomScenario(TestScenario):
    """Random widths, channel counts, strides and clamp bounds"""

    def __init__(self, base_config: DepthwiseConfig, generator: TrialGenerator):
        super().__init__("Constrained Random", base_config)
        self.generator = generator

    def generate_configs(self, num_tests: int) -> List[DepthwiseConfig]:
        return self.generator.generate_shape_variations(self.base_config, num_tests)

    def get_description(self) -> str:
        return "Random shapes within the kernel's tap count and tile size"
