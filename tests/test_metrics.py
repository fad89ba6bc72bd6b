from downpour.metrics import LatencyAggregator, percentile


SAMPLE = [10 * i for i in range(1, 101)]


def test_nearest_rank_percentiles():
    assert percentile(SAMPLE, 0.50) == 510
    assert percentile(SAMPLE, 0.90) == 910
    assert percentile(SAMPLE, 0.99) == 1000


def test_percentile_empty_sample():
    assert percentile([], 0.5) is None
    assert LatencyAggregator().percentiles() == (None, None, None)


def test_percentile_single_value():
    assert percentile([42], 0.99) == 42


def test_percentile_is_idempotent_on_sorted_sample():
    agg = LatencyAggregator()
    for v in reversed(SAMPLE):
        agg.append(v)
    first = agg.percentiles()
    assert agg.percentiles() == first
    assert percentile(agg.snapshot(), 0.5) == first[0]


def test_aggregator_counts_success_and_failure():
    agg = LatencyAggregator()
    agg.append(30, ok=True)
    agg.append(10, ok=False)
    agg.append(20, ok=True)
    assert (agg.success, agg.failed) == (2, 1)
    assert agg.snapshot() == (10, 20, 30)


def test_aggregator_merges_runs():
    total = LatencyAggregator()
    total.extend([300, 100], success=2, failed=0)
    total.extend([200], success=0, failed=1)
    assert len(total) == 3
    assert (total.success, total.failed) == (2, 1)
    assert total.percentile(0.5) == 200
