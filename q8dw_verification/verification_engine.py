"""
Main Verification Engine

Drives randomized trials of a quantized depthwise convolution micro-kernel
against an exact integer reference. Each trial runs

    GENERATE -> PACK -> COMPUTE_REFERENCE -> DERIVE_PARAMS -> INVOKE_KERNEL -> COMPARE

to completion before the next one starts. The first failing trial aborts
with a VerificationError naming the offending output coordinate.
"""

import time
from typing import Callable, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from .config import DepthwiseConfig
from .errors import OutputCorruptionError, ToleranceExceededError, VerificationError
from .generators import TrialGenerator, INPUT_ZERO_POINT, KERNEL_ZERO_POINT
from .kernels import DepthwiseUKernelFunction
from .packing import pack_q8dw_weights
from .quantization import (
    TOLERANCE,
    RequantizationParamsFunction,
    derive_quantization_parameters,
    expected_output,
)
from .reference import check_accumulator_range, check_contrast, compute_accumulators
from .requantization import compute_requantization_params, compute_scalar_requantization_params
from .scenarios import (
    MinimalScenario,
    RandomScenario,
    RestrictedRangeScenario,
    StridedScenario,
    TestScenario,
    UnalignedChannelsScenario,
)
from .statistics import StatisticsCollector, TrialMetrics, compute_metrics

PackFunction = Callable[[int, int, int, np.ndarray, np.ndarray], None]


class VerificationEngine:
    """
    Runs randomized trials of a depthwise micro-kernel.

    The kernel, the packing routine and both requantization parameter
    routines are pluggable; the defaults are the QNNPACK-compatible
    implementations shipped with this package.
    """

    def __init__(
        self,
        kernel_function: DepthwiseUKernelFunction,
        pack_function: PackFunction = pack_q8dw_weights,
        requantization_params_function: RequantizationParamsFunction = compute_requantization_params,
        scalar_requantization_params_function: RequantizationParamsFunction = compute_scalar_requantization_params,
        seed: Optional[int] = None
    ):
        """
        Initialize verification engine.

        Args:
            kernel_function: Micro-kernel under test
            pack_function: Packs flat channel-major weights into the kernel's tile layout
            requantization_params_function: Vector-path parameters handed to the kernel
            scalar_requantization_params_function: Scalar-path parameters
            seed: Random seed for reproducibility; drawn from OS entropy if omitted
        """
        self.kernel_function = kernel_function
        self.pack_function = pack_function
        self.requantization_params_function = requantization_params_function
        self.scalar_requantization_params_function = scalar_requantization_params_function
        self.generator = TrialGenerator(seed=seed)
        self.stats = StatisticsCollector()

    @property
    def seed(self) -> int:
        return self.generator.seed

    def run_trial(self, config: DepthwiseConfig, trial_index: int = 0) -> TrialMetrics:
        """
        Run one trial. Raises a VerificationError subclass on failure.
        """
        seed = self.seed

        # GENERATE
        trial = self.generator.generate_trial(config)
        check_contrast("input", trial.input, trial_index, seed)
        check_contrast("kernel", trial.kernel, trial_index, seed)
        padding = self._padding_snapshot(config, trial.output)

        # PACK
        self.pack_function(config.channels, config.kernel_size, config.cr, trial.kernel, trial.packed_kernel)

        # COMPUTE_REFERENCE
        accumulators = compute_accumulators(config, trial)
        check_accumulator_range(accumulators, trial_index, seed)

        # DERIVE_PARAMS
        params = derive_quantization_parameters(
            accumulators,
            config,
            self.requantization_params_function,
            self.scalar_requantization_params_function,
        )
        zero_point = params.output.zero_point

        # INVOKE_KERNEL
        self.kernel_function(
            config.channels, config.width,
            trial.indirection, trial.packed_kernel, trial.bias, trial.output,
            config.input_increment,
            config.output_increment,
            INPUT_ZERO_POINT, KERNEL_ZERO_POINT, params.requantization,
        )

        # COMPARE
        expected = expected_output(accumulators, params.output, config)
        observed = self._output_rows(config, trial.output).astype(np.int32) - zero_point
        metrics = compute_metrics(expected, observed, TOLERANCE, params.output.scale, zero_point)
        self.stats.record_trial(metrics, {
            'config': config.describe(),
            'trial': trial_index,
            'seed': seed,
        })

        if metrics.num_failures > 0:
            # Report the first offending coordinate in output order
            failing = np.argwhere(np.abs(expected - observed) > TOLERANCE)[0]
            x, c = int(failing[0]), int(failing[1])
            raise ToleranceExceededError(
                x, c, float(expected[x, c]), int(observed[x, c]), TOLERANCE,
                trial=trial_index, seed=seed,
            )

        for offset, value in padding.items():
            if trial.output[offset] != value:
                raise OutputCorruptionError(offset, trial=trial_index, seed=seed)

        return metrics

    def test(self, config: DepthwiseConfig, verbose: bool = False) -> List[TrialMetrics]:
        """
        Run ``config.iterations`` trials, stopping at the first failure.

        Args:
            config: Convolution shape and quantization range
            verbose: Show a progress bar

        Returns:
            Metrics of every trial
        """
        trials = range(config.iterations)
        iterator = tqdm(trials, desc=config.describe()) if verbose else trials
        return [self.run_trial(config, i) for i in iterator]

    @staticmethod
    def _output_rows(config: DepthwiseConfig, output: np.ndarray) -> np.ndarray:
        stride = config.effective_output_stride
        rows = np.empty((config.width, config.channels), dtype=output.dtype)
        for x in range(config.width):
            rows[x] = output[x * stride:x * stride + config.channels]
        return rows

    @staticmethod
    def _padding_snapshot(config: DepthwiseConfig, output: np.ndarray) -> Dict[int, int]:
        stride = config.effective_output_stride
        padding = {}
        for x in range(config.width - 1):
            for offset in range(x * stride + config.channels, (x + 1) * stride):
                padding[offset] = int(output[offset])
        return padding

    def run_scenario(
        self,
        scenario: TestScenario,
        num_tests: int,
        verbose: bool = True
    ) -> Dict:
        """
        Run every configuration of a scenario.

        A failing configuration is counted and reported; the remaining ones
        still run.

        Args:
            scenario: TestScenario instance
            num_tests: Maximum number of configurations
            verbose: Print progress

        Returns:
            Dictionary with results
        """
        configs = scenario.generate_configs(num_tests)

        if verbose:
            print(f"\n{'='*60}")
            print(f"Running Scenario: {scenario.name}")
            print(f"Description: {scenario.get_description()}")
            print(f"Number of configurations: {len(configs)}")
            print(f"{'='*60}")

        passed = 0
        failed = 0
        failures = []

        iterator = tqdm(configs, desc=f"Testing {scenario.name}") if verbose else configs

        for config in iterator:
            try:
                self.test(config)
                passed += 1
            except VerificationError as e:
                failed += 1
                failures.append({'config': config.describe(), 'error': str(e)})
                if verbose:
                    print(f"\n  ❌ FAILED: {config.describe()}")
                    print(f"     {e}")
            except Exception as e:
                # A kernel that raises is a failed configuration, not a suite abort
                failed += 1
                failures.append({'config': config.describe(), 'error': f"{type(e).__name__}: {e}"})
                if verbose:
                    print(f"\n  ❌ ERROR in {config.describe()}: {type(e).__name__}: {e}")

        total = len(configs)
        result = {
            'scenario': scenario.name,
            'total_tests': total,
            'passed': passed,
            'failed': failed,
            'failures': failures,
            'pass_rate': passed / total if total > 0 else 0.0
        }

        if verbose:
            print(f"\nScenario Results:")
            print(f"  Passed: {passed}/{total}")
            print(f"  Failed: {failed}/{total}")
            print(f"  Pass Rate: {result['pass_rate']*100:.2f}%")

        return result

    def run_full_suite(
        self,
        base_config: DepthwiseConfig,
        num_tests_per_scenario: int = 20,
        verbose: bool = True
    ) -> Dict:
        """
        Run all scenarios for the kernel's tap count and tile size.

        Args:
            base_config: Carries kernel_height, kernel_width, cr and iterations
            num_tests_per_scenario: Maximum configurations per scenario
            verbose: Print progress

        Returns:
            Dictionary with comprehensive results
        """
        if verbose:
            print("\n" + "="*60)
            print(" " * 12 + "DEPTHWISE MICRO-KERNEL VERIFICATION")
            print("="*60)
            print(f"Kernel: {getattr(self.kernel_function, '__name__', repr(self.kernel_function))}")
            print(f"Seed: {self.seed}")
            print("="*60)

        scenarios = [
            MinimalScenario(base_config),
            UnalignedChannelsScenario(base_config),
            StridedScenario(base_config),
            RestrictedRangeScenario(base_config),
            RandomScenario(base_config, self.generator),
        ]

        results = []
        start_time = time.time()

        for scenario in scenarios:
            results.append(self.run_scenario(scenario, num_tests_per_scenario, verbose))

        elapsed_time = time.time() - start_time

        full_results = {
            'scenario_results': results,
            'summary': self.stats.get_summary_statistics(),
            'total_failed': sum(r['failed'] for r in results),
            'elapsed_time': elapsed_time,
            'seed': self.seed,
        }

        if verbose:
            self._print_summary(full_results)

        return full_results

    def _print_summary(self, results: Dict):
        """Print summary of verification results"""
        print("\n" + "="*60)
        print(" " * 20 + "VERIFICATION SUMMARY")
        print("="*60)

        summary = results['summary']
        if summary:
            print(f"\nTrial Statistics:")
            print(f"  Total Trials: {summary['total_tests']}")
            print(f"  Passed: {summary['total_passed']}")
            print(f"  Failed: {summary['total_failed']}")
            print(f"  Pass Rate: {summary['pass_rate']*100:.2f}%")

            max_err = summary['max_abs_error']
            print(f"\nMax Absolute Error (output codes):")
            print(f"    Min:  {max_err['min']:.4f}")
            print(f"    Mean: {max_err['mean']:.4f}")
            print(f"    Max:  {max_err['max']:.4f}")
            print(f"    P99:  {max_err['p99']:.4f}")

        print(f"\nFailed configurations: {results['total_failed']}")
        print(f"Seed: {results['seed']}")
        print(f"Elapsed Time: {results['elapsed_time']:.2f} seconds")
        print("="*60)

    def export_report(self, filepath: str):
        """Export detailed verification report"""
        return self.stats.export_report(filepath)

    def get_worst_cases(self, top_n: int = 10) -> List[Dict]:
        return self.stats.get_worst_cases(top_n)
