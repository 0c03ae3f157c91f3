# -*- coding: utf-8 -*-
"""
Prometheus Collector 实现模块

功能：
- 每次 scrape 时拉取 Trusted Advisor check 结果并解析
- 通过 MetricCache 复用描述符，保证跨 scrape 的指标身份稳定
- 单个 check 失败不影响其他 check
"""

import time
import logging
from typing import Dict, Iterable, List, Optional
from prometheus_client import Counter, Histogram, REGISTRY
from prometheus_client.core import GaugeMetricFamily

from cache.metric_cache import MetricCache
from collector.check_result import MetricIdentity, Observation
from collector.parser import GLOBAL_REGION, parse_check_result
from errors import UpstreamError
from provider.aws.trusted_advisor import TrustedAdvisorClient, resolve_check_ids

logger = logging.getLogger(__name__)


def classify_upstream_error(error: UpstreamError) -> str:
    """把 UpstreamError 归类为指标 error_type 标签"""
    code = error.code or ''
    if code == 'NoResult':
        return 'no_result'
    if 'AccessDenied' in code or 'SubscriptionRequired' in code:
        return 'permission_denied'
    if 'Throttling' in code or 'TooManyRequests' in code:
        return 'throttled'
    return 'api_error'


class TrustedAdvisorCollector:
    """
    Trusted Advisor 配额收集器

    功能：
    - describe() 不预先声明任何指标（动态指标）
    - collect() 拉取、解析、输出 aws_service_used / aws_service_limit
    - 记录 exporter 自身的错误、跳过、耗时指标
    """

    def __init__(self, client: TrustedAdvisorClient, metric_cache: MetricCache,
                 check_ids: Optional[Iterable[str]] = None, metrics_region: str = '',
                 registry=REGISTRY):
        """
        初始化收集器

        Args:
            client: Trusted Advisor 客户端
            metric_cache: 描述符缓存（启动时创建一次）
            check_ids: 静态 check 列表（为空则动态发现）
            metrics_region: 只输出该区域（以及 global）的指标，为空输出全部区域
            registry: exporter 自身指标注册的 registry
        """
        self.client = client
        self.metric_cache = metric_cache
        self.check_ids = list(check_ids or [])
        self.metrics_region = metrics_region or ''

        # Exporter 自身指标
        self.check_errors_total = Counter(
            'aws_limits_exporter_check_errors_total',
            'Total number of Trusted Advisor check fetch errors',
            ['check_id', 'error_type'],
            registry=registry
        )

        self.resources_skipped_total = Counter(
            'aws_limits_exporter_resources_skipped_total',
            'Total number of flagged resources skipped by the parser',
            ['check_id', 'reason'],
            registry=registry
        )

        self.collect_duration_seconds = Histogram(
            'aws_limits_exporter_collect_duration_seconds',
            'Duration of Trusted Advisor collection in seconds',
            buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
            registry=registry
        )

    def describe(self):
        """动态指标：不预先声明"""
        return []

    def _in_scope(self, observation: Observation) -> bool:
        if not self.metrics_region:
            return True
        return observation.region in (self.metrics_region, GLOBAL_REGION)

    def collect_observations(self) -> List[Observation]:
        """
        拉取并解析所有 check，返回去重后的 Observation 列表

        同一周期内相同身份的观测值以最后一个为准
        """
        try:
            check_ids = resolve_check_ids(self.client, self.check_ids)
        except UpstreamError as e:
            logger.error(f"获取 Trusted Advisor check 列表失败: {e}")
            self.check_errors_total.labels(check_id='-', error_type='list_failed').inc()
            return []

        observations: Dict[MetricIdentity, Observation] = {}
        for check_id in sorted(check_ids):
            try:
                result = self.client.fetch_result(check_id)
            except UpstreamError as e:
                logger.error(f"无法获取 check 结果: {e}")
                self.check_errors_total.labels(
                    check_id=check_id,
                    error_type=classify_upstream_error(e)
                ).inc()
                continue
            except Exception as e:
                logger.error(f"处理 check {check_id} 时发生未知错误: {e}", exc_info=True)
                self.check_errors_total.labels(check_id=check_id, error_type='unknown').inc()
                continue

            if not result.flagged_resources:
                logger.debug(f"check {check_id} 没有 flagged resource")
                continue

            report = parse_check_result(result)
            for skipped in report.skipped:
                self.resources_skipped_total.labels(check_id=check_id, reason=skipped.reason).inc()

            for observation in report.observations:
                if not self._in_scope(observation):
                    continue
                identity = observation.identity
                if identity in observations:
                    logger.debug(f"重复的指标身份，使用最新值: {identity}, check={check_id}")
                observations[identity] = observation

        return list(observations.values())

    def collect(self):
        """
        Prometheus 采集入口

        Returns:
            GaugeMetricFamily 列表（没有可用观测值时为空）
        """
        start_time = time.time()

        observations = self.collect_observations()
        families: Dict[str, GaugeMetricFamily] = {}
        for observation in observations:
            used_desc, limit_desc = self.metric_cache.get_or_create(observation.identity)
            for desc, value in ((used_desc, observation.used), (limit_desc, observation.limit)):
                family = families.get(desc.name)
                if family is None:
                    family = GaugeMetricFamily(desc.name, desc.documentation, labels=list(desc.label_names))
                    families[desc.name] = family
                family.add_metric(list(desc.label_values), value)

        # 记录采集耗时
        duration = time.time() - start_time
        self.collect_duration_seconds.observe(duration)
        logger.debug(f"采集完成: observations={len(observations)}, 耗时 {duration:.2f}s")

        return list(families.values())
