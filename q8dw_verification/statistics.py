"""
Statistical Analysis for Kernel Verification

Collects per-trial error metrics of quantized kernel output against the
reference, and summarises them across trials and configurations.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
from collections import defaultdict
import json


@dataclass
class TrialMetrics:
    """Container for error metrics of a single trial"""
    max_abs_error: float
    mean_abs_error: float
    num_failures: int  # Elements exceeding tolerance
    total_elements: int
    worst_position: Tuple[int, int]  # (x, channel)
    scale: float
    zero_point: int

    def to_dict(self) -> Dict:
        return {
            'max_abs_error': self.max_abs_error,
            'mean_abs_error': self.mean_abs_error,
            'num_failures': self.num_failures,
            'total_elements': self.total_elements,
            'failure_rate': self.num_failures / self.total_elements if self.total_elements > 0 else 0.0,
            'worst_position': list(self.worst_position),
            'scale': self.scale,
            'zero_point': self.zero_point,
        }


def compute_metrics(
    expected: np.ndarray,
    observed: np.ndarray,
    tolerance: float,
    scale: float,
    zero_point: int
) -> TrialMetrics:
    """
    Compare expected and observed outputs of shape (width, channels).

    Both are relative to the output zero point.
    """
    abs_error = np.abs(expected - observed.astype(np.float64))
    worst = np.unravel_index(int(np.argmax(abs_error)), abs_error.shape)
    return TrialMetrics(
        max_abs_error=float(abs_error.max()),
        mean_abs_error=float(abs_error.mean()),
        num_failures=int((abs_error > tolerance).sum()),
        total_elements=int(abs_error.size),
        worst_position=(int(worst[0]), int(worst[1])),
        scale=float(scale),
        zero_point=int(zero_point),
    )


class StatisticsCollector:
    """
    Collects and analyzes metrics across trials.

    Tracks:
    - Error distributions
    - Failure rates
    - Worst-case trials
    - Per-configuration grouping
    """

    def __init__(self):
        self.metrics_history: List[TrialMetrics] = []
        self.test_results: List[Dict] = []
        self.failure_cases: List[Dict] = []
        self.config_statistics: Dict[str, List[TrialMetrics]] = defaultdict(list)

    def record_trial(self, metrics: TrialMetrics, test_info: Optional[Dict] = None) -> TrialMetrics:
        self.metrics_history.append(metrics)

        result = {
            'metrics': metrics.to_dict(),
            'test_info': test_info or {},
            'passed': metrics.num_failures == 0
        }
        self.test_results.append(result)

        if metrics.num_failures > 0:
            self.failure_cases.append(result)

        if test_info and 'config' in test_info:
            self.config_statistics[test_info['config']].append(metrics)

        return metrics

    def get_summary_statistics(self) -> Dict:
        """Get overall summary statistics"""
        if not self.metrics_history:
            return {}

        max_errors = [m.max_abs_error for m in self.metrics_history]
        mean_errors = [m.mean_abs_error for m in self.metrics_history]
        failure_rates = [m.num_failures / m.total_elements for m in self.metrics_history]

        total_tests = len(self.metrics_history)
        total_failures = sum(1 for r in self.test_results if not r['passed'])

        return {
            'total_tests': total_tests,
            'total_passed': total_tests - total_failures,
            'total_failed': total_failures,
            'pass_rate': (total_tests - total_failures) / total_tests,
            'max_abs_error': {
                'min': float(np.min(max_errors)),
                'max': float(np.max(max_errors)),
                'mean': float(np.mean(max_errors)),
                'std': float(np.std(max_errors)),
                'p50': float(np.percentile(max_errors, 50)),
                'p95': float(np.percentile(max_errors, 95)),
                'p99': float(np.percentile(max_errors, 99)),
            },
            'mean_abs_error': {
                'min': float(np.min(mean_errors)),
                'max': float(np.max(mean_errors)),
                'mean': float(np.mean(mean_errors)),
                'std': float(np.std(mean_errors)),
            },
            'failure_rate': {
                'min': float(np.min(failure_rates)),
                'max': float(np.max(failure_rates)),
                'mean': float(np.mean(failure_rates)),
            }
        }

    def get_config_statistics(self) -> Dict:
        """Get statistics grouped by configuration"""
        stats = {}
        for config_key, metrics_list in self.config_statistics.items():
            max_errors = [m.max_abs_error for m in metrics_list]
            stats[config_key] = {
                'num_trials': len(metrics_list),
                'max_abs_error': {
                    'max': float(np.max(max_errors)),
                    'mean': float(np.mean(max_errors)),
                },
                'failures': sum(m.num_failures for m in metrics_list),
            }
        return stats

    def get_worst_cases(self, top_n: int = 10) -> List[Dict]:
        """Get the worst N trials by maximum absolute error"""
        sorted_results = sorted(
            self.test_results,
            key=lambda x: x['metrics']['max_abs_error'],
            reverse=True
        )
        return sorted_results[:top_n]

    def export_report(self, filepath: str):
        """Export detailed report to JSON file"""
        report = {
            'summary': self.get_summary_statistics(),
            'config_statistics': self.get_config_statistics(),
            'worst_cases': self.get_worst_cases(20),
            'failure_cases': self.failure_cases[:100],
        }

        with open(filepath, 'w') as f:
            json.dump(report, f, indent=2)

        return report
