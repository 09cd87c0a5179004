#!/usr/bin/env python3
"""
Run the depthwise micro-kernel verification suite against a reference kernel.

Usage:
    python -m q8dw_verification.run_verification [options]

Example:
    python -m q8dw_verification.run_verification --kernel scalar --kernel-size 3 3 --cr 8 --seed 42
"""

import argparse
import sys

from .config import DepthwiseConfig
from .kernels import q8dw_ukernel_scalar, q8dw_ukernel_vectorized
from .verification_engine import VerificationEngine

KERNELS = {
    'vectorized': q8dw_ukernel_vectorized,
    'scalar': q8dw_ukernel_scalar,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Run randomized verification of a quantized depthwise micro-kernel'
    )
    parser.add_argument(
        '--kernel',
        choices=sorted(KERNELS),
        default='vectorized',
        help='Reference kernel to verify (default: vectorized)'
    )
    parser.add_argument(
        '--kernel-size',
        type=int,
        nargs=2,
        default=[3, 3],
        metavar=('HEIGHT', 'WIDTH'),
        help='Kernel taps (default: 3 3)'
    )
    parser.add_argument(
        '--cr',
        type=int,
        default=8,
        help='Channel tile size, a power of two (default: 8)'
    )
    parser.add_argument(
        '--tests',
        type=int,
        default=20,
        help='Maximum configurations per scenario (default: 20)'
    )
    parser.add_argument(
        '--iterations',
        type=int,
        default=3,
        help='Trials per configuration (default: 3)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Write a JSON report to this file'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Verbose output'
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    kernel_height, kernel_width = args.kernel_size
    base_config = DepthwiseConfig(
        kernel_height=kernel_height,
        kernel_width=kernel_width,
        cr=args.cr,
        iterations=args.iterations,
    )
    kernel = KERNELS[args.kernel](base_config.kernel_size, base_config.cr)

    engine = VerificationEngine(kernel_function=kernel, seed=args.seed)

    print("="*60)
    print("Depthwise Micro-Kernel Verification")
    print("="*60)
    print(f"Kernel: {kernel.__name__}")
    print(f"Configurations per scenario: {args.tests}")
    print(f"Trials per configuration: {args.iterations}")
    print(f"Seed: {engine.seed}")
    print("="*60)

    results = engine.run_full_suite(
        base_config,
        num_tests_per_scenario=args.tests,
        verbose=args.verbose
    )

    if args.output:
        print(f"\nExporting detailed report to {args.output}...")
        engine.export_report(args.output)

    for scenario in results['scenario_results']:
        print(f"  {scenario['scenario']:<22} {scenario['passed']}/{scenario['total_tests']} passed")

    if results['total_failed'] == 0:
        print("\n✅ VERIFICATION PASSED")
        return 0

    print(f"\n❌ VERIFICATION FAILED ({results['total_failed']} configurations)")
    for scenario in results['scenario_results']:
        for failure in scenario['failures']:
            print(f"  {failure['config']}: {failure['error']}")
    return 1


if __name__ == '__main__':
    sys.exit(main())
