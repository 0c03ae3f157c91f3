# -*- coding: utf-8 -*-
"""
指标描述符缓存模块

功能：
- 按 MetricIdentity 缓存 used / limit 两个 Gauge 描述符
- 描述符懒创建，每个身份只创建一次，进程生命周期内不清理
- 多个 scrape 并发访问时线程安全
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from collector.check_result import MetricIdentity

logger = logging.getLogger(__name__)

USED_METRIC_NAME = 'aws_service_used'
LIMIT_METRIC_NAME = 'aws_service_limit'
LABEL_NAMES = ('region', 'service', 'resource')


@dataclass(frozen=True, eq=False)
class MetricDescriptor:
    """单条时间序列的描述符（按对象身份比较）"""
    name: str
    documentation: str
    label_names: Tuple[str, ...]
    label_values: Tuple[str, ...]


def _new_descriptor(name: str, documentation: str, identity: MetricIdentity) -> MetricDescriptor:
    return MetricDescriptor(
        name=name,
        documentation=documentation,
        label_names=LABEL_NAMES,
        label_values=tuple(identity),
    )


class MetricCache:
    """
    指标描述符缓存

    功能：
    - used / limit 两个映射，key 为 MetricIdentity
    - get_or_create 在锁内完成查找和插入
    """

    def __init__(self):
        """初始化描述符缓存"""
        self._used: Dict[MetricIdentity, MetricDescriptor] = {}
        self._limit: Dict[MetricIdentity, MetricDescriptor] = {}
        self._lock = threading.Lock()

    def get_or_create(self, identity: MetricIdentity) -> Tuple[MetricDescriptor, MetricDescriptor]:
        """
        获取身份对应的描述符，不存在则创建

        Args:
            identity: 指标身份

        Returns:
            (used 描述符, limit 描述符)
        """
        with self._lock:
            used = self._used.get(identity)
            if used is None:
                used = _new_descriptor(USED_METRIC_NAME, 'Current used amount of the given AWS resource.', identity)
                self._used[identity] = used
                logger.debug(f"创建 used 描述符: {identity}")

            limit = self._limit.get(identity)
            if limit is None:
                limit = _new_descriptor(LIMIT_METRIC_NAME, 'Current limit of the given AWS resource.', identity)
                self._limit[identity] = limit
                logger.debug(f"创建 limit 描述符: {identity}")

            return used, limit

    def get(self, identity: MetricIdentity) -> Optional[Tuple[MetricDescriptor, MetricDescriptor]]:
        """获取已缓存的描述符，未缓存返回 None"""
        with self._lock:
            if identity not in self._used:
                return None
            return self._used[identity], self._limit[identity]

    def identities(self) -> List[MetricIdentity]:
        """已缓存的所有身份"""
        with self._lock:
            return list(self._used.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._used)
