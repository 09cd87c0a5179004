import json

import numpy as np
import pytest

from q8dw_verification.statistics import StatisticsCollector, compute_metrics


def test_compute_metrics():
    expected = np.array([[0.2, -3.0], [10.4, 5.0]])
    observed = np.array([[0, -3], [9, 5]], dtype=np.int32)
    metrics = compute_metrics(expected, observed, 0.6, 2.5, 100)

    assert metrics.max_abs_error == pytest.approx(1.4)
    assert metrics.mean_abs_error == pytest.approx((0.2 + 0 + 1.4 + 0) / 4)
    assert metrics.num_failures == 1
    assert metrics.total_elements == 4
    assert metrics.worst_position == (1, 0)
    assert metrics.to_dict()['failure_rate'] == 0.25


def test_summary_and_worst_cases(tmp_path):
    collector = StatisticsCollector()
    assert collector.get_summary_statistics() == {}

    ok = compute_metrics(np.zeros((1, 2)), np.zeros((1, 2), dtype=np.int32), 0.6, 1.0, 128)
    bad = compute_metrics(np.zeros((1, 2)), np.array([[0, 3]], dtype=np.int32), 0.6, 1.0, 128)
    collector.record_trial(ok, {'config': 'a', 'trial': 0, 'seed': 1})
    collector.record_trial(bad, {'config': 'a', 'trial': 1, 'seed': 1})
    collector.record_trial(ok, {'config': 'b', 'trial': 0, 'seed': 1})

    summary = collector.get_summary_statistics()
    assert summary['total_tests'] == 3
    assert summary['total_failed'] == 1
    assert summary['pass_rate'] == pytest.approx(2 / 3)
    assert summary['max_abs_error']['max'] == 3.0

    worst = collector.get_worst_cases(1)
    assert worst[0]['test_info']['trial'] == 1

    by_config = collector.get_config_statistics()
    assert by_config['a']['num_trials'] == 2
    assert by_config['a']['failures'] == 1
    assert by_config['b']['failures'] == 0

    path = tmp_path / "report.json"
    collector.export_report(str(path))
    report = json.loads(path.read_text())
    assert report['summary']['total_tests'] == 3
    assert len(report['failure_cases']) == 1
