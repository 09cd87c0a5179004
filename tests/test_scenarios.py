import pytest

from q8dw_verification import (
    DepthwiseConfig,
    MinimalScenario,
    RandomScenario,
    RestrictedRangeScenario,
    StridedScenario,
    TrialGenerator,
    UnalignedChannelsScenario,
    VerificationEngine,
    q8dw_ukernel_vectorized,
)

BASE = DepthwiseConfig(kernel_height=3, kernel_width=3, cr=8, iterations=1)


def assert_kernel_specialization_kept(configs):
    for config in configs:
        assert config.kernel_size == BASE.kernel_size
        assert config.cr == BASE.cr


def test_minimal_scenario():
    configs = MinimalScenario(BASE).generate_configs(5)
    assert len(configs) == 1
    assert (configs[0].width, configs[0].channels) == (1, 1)
    assert_kernel_specialization_kept(configs)


def test_unaligned_channels_scenario():
    configs = UnalignedChannelsScenario(BASE).generate_configs(10)
    channels = [c.channels for c in configs]
    assert channels == [1, 7, 8, 9, 15, 17, 24]
    assert any(c.channels % c.cr for c in configs)
    assert_kernel_specialization_kept(configs)


def test_unaligned_channels_scenario_respects_limit():
    assert len(UnalignedChannelsScenario(BASE).generate_configs(3)) == 3


def test_strided_scenario_pads_rows():
    configs = StridedScenario(BASE).generate_configs(10)
    assert len(configs) == 4
    for config in configs:
        assert (config.effective_input_stride > config.channels
                or config.effective_output_stride > config.channels)
    assert_kernel_specialization_kept(configs)


def test_restricted_range_scenario():
    configs = RestrictedRangeScenario(BASE).generate_configs(10)
    assert (configs[0].qmin, configs[0].qmax) == (0, 127)
    assert all(c.qmax - c.qmin < 255 for c in configs)


def test_random_scenario_is_reproducible():
    first = RandomScenario(BASE, TrialGenerator(seed=21)).generate_configs(8)
    second = RandomScenario(BASE, TrialGenerator(seed=21)).generate_configs(8)
    assert first == second
    assert len(first) == 8
    assert_kernel_specialization_kept(first)


@pytest.mark.parametrize(
    "scenario_class",
    [MinimalScenario, UnalignedChannelsScenario, StridedScenario, RestrictedRangeScenario],
)
def test_reference_kernel_passes_scenario(scenario_class):
    engine = VerificationEngine(q8dw_ukernel_vectorized(BASE.kernel_size, BASE.cr), seed=99)
    result = engine.run_scenario(scenario_class(BASE), num_tests=10, verbose=False)
    assert result['failed'] == 0
    assert result['passed'] == result['total_tests']
    assert result['pass_rate'] == 1.0


def test_run_scenario_counts_failures():
    good = q8dw_ukernel_vectorized(BASE.kernel_size, BASE.cr)

    def off_by_two(channels, width, indirection, packed, bias, output, *args):
        good(channels, width, indirection, packed, bias, output, *args)
        output[0] = (int(output[0]) + 2) % 256

    engine = VerificationEngine(off_by_two, seed=4)
    result = engine.run_scenario(StridedScenario(BASE), num_tests=2, verbose=False)
    assert result['failed'] == 2
    assert result['passed'] == 0
    assert all("x = 0, channel = 0" in f['error'] for f in result['failures'])


def test_run_scenario_counts_raising_kernel_as_failed():
    def crashing(*args):
        raise IndexError("read past indirection table")

    engine = VerificationEngine(crashing, seed=6)
    result = engine.run_scenario(StridedScenario(BASE), num_tests=2, verbose=False)
    assert result['total_tests'] == 2
    assert result['failed'] == result['total_tests']
    assert result['passed'] == 0
    assert all(f['error'] == "IndexError: read past indirection table" for f in result['failures'])


def test_full_suite_survives_raising_kernel():
    def crashing(*args):
        raise ValueError("shape mismatch")

    engine = VerificationEngine(crashing, seed=6)
    results = engine.run_full_suite(BASE, num_tests_per_scenario=2, verbose=False)
    assert len(results['scenario_results']) == 5
    assert results['total_failed'] == sum(r['total_tests'] for r in results['scenario_results'])


def test_unaligned_channels_scenario_has_no_duplicates():
    for cr in (1, 2, 4, 8):
        channels = [c.channels for c in UnalignedChannelsScenario(BASE.replace(cr=cr)).generate_configs(10)]
        assert len(channels) == len(set(channels))
    single = UnalignedChannelsScenario(BASE.replace(cr=1)).generate_configs(10)
    assert [c.channels for c in single] == [1, 2, 3]


def test_random_scenario_keeps_base_specialization():
    base = BASE.replace(kernel_height=5, kernel_width=2, cr=4)
    configs = TrialGenerator(seed=3).generate_shape_variations(base, 10)
    assert len(configs) == 10
    for config in configs:
        assert (config.kernel_height, config.kernel_width, config.cr) == (5, 2, 4)
        assert config.iterations == base.iterations


def test_full_suite():
    engine = VerificationEngine(q8dw_ukernel_vectorized(BASE.kernel_size, BASE.cr), seed=2024)
    results = engine.run_full_suite(BASE, num_tests_per_scenario=3, verbose=False)
    assert len(results['scenario_results']) == 5
    assert results['seed'] == 2024
    assert results['summary']['total_tests'] > 0
