"""Tests for the metric descriptor cache."""

import threading

from cache.metric_cache import LABEL_NAMES, LIMIT_METRIC_NAME, USED_METRIC_NAME, MetricCache
from collector.check_result import MetricIdentity


class TestMetricCache:
    """Test lazy, identity-stable descriptor creation."""

    def test_creates_used_and_limit_descriptors(self, metric_cache):
        identity = MetricIdentity("us-east-1", "EC2", "Elastic IPs")

        used, limit = metric_cache.get_or_create(identity)

        assert used.name == USED_METRIC_NAME
        assert limit.name == LIMIT_METRIC_NAME
        assert used.label_names == LABEL_NAMES
        assert used.label_values == ("us-east-1", "EC2", "Elastic IPs")
        assert limit.label_values == used.label_values

    def test_descriptors_are_reused(self, metric_cache):
        identity = MetricIdentity("us-east-1", "EC2", "Elastic IPs")

        first = metric_cache.get_or_create(identity)
        second = metric_cache.get_or_create(MetricIdentity("us-east-1", "EC2", "Elastic IPs"))

        assert first[0] is second[0]
        assert first[1] is second[1]
        assert len(metric_cache) == 1

    def test_distinct_identities_get_distinct_descriptors(self, metric_cache):
        a = metric_cache.get_or_create(MetricIdentity("us-east-1", "EC2", "Elastic IPs"))
        b = metric_cache.get_or_create(MetricIdentity("eu-west-1", "EC2", "Elastic IPs"))

        assert a[0] is not b[0]
        assert len(metric_cache) == 2
        assert set(metric_cache.identities()) == {
            MetricIdentity("us-east-1", "EC2", "Elastic IPs"),
            MetricIdentity("eu-west-1", "EC2", "Elastic IPs"),
        }

    def test_get_returns_none_for_unknown_identity(self, metric_cache):
        assert metric_cache.get(MetricIdentity("global", "IAM", "Roles")) is None

    def test_concurrent_creation_yields_one_descriptor_pair(self):
        cache = MetricCache()
        identity = MetricIdentity("us-east-1", "RDS", "DB instances")
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(cache.get_or_create(identity))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 1
        assert all(r[0] is results[0][0] and r[1] is results[0][1] for r in results)
