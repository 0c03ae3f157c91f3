# -*- coding: utf-8 -*-
"""
Trusted Advisor 检查结果数据结构

功能：
- 定义 check 结果、flagged resource、解析后的 Observation
- 从 boto3 返回的字典构造结果对象（字段缺失时给默认值）
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

# metadata 原始字段：按位置排列的可空字符串
RawResourceFields = Tuple[Optional[str], ...]


@dataclass(frozen=True)
class ResourcesSummary:
    """资源汇总（flagged / processed 数量）"""
    resources_flagged: int = 0
    resources_processed: int = 0


@dataclass(frozen=True)
class FlaggedResource:
    """单个被标记的资源"""
    metadata: RawResourceFields = ()       # 位置字段，含义随 check 变化
    resource_id: Optional[str] = None
    region: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'FlaggedResource':
        metadata = data.get('metadata') or []
        return cls(
            metadata=tuple(None if m is None else str(m) for m in metadata),
            resource_id=data.get('resourceId'),
            region=data.get('region'),
            status=data.get('status'),
        )


@dataclass(frozen=True)
class CheckResult:
    """单个 check 的计算结果，每次拉取都是全新对象"""
    check_id: str
    status: str = ''
    summary: ResourcesSummary = field(default_factory=ResourcesSummary)
    flagged_resources: Tuple[FlaggedResource, ...] = ()

    @classmethod
    def from_api(cls, check_id: str, data: Dict[str, Any]) -> 'CheckResult':
        """
        从 DescribeTrustedAdvisorCheckResult 的 result 字段构造

        Args:
            check_id: check ID（result 中缺失时使用）
            data: API 返回的 result 字典
        """
        summary = data.get('resourcesSummary') or {}
        return cls(
            check_id=data.get('checkId') or check_id,
            status=data.get('status') or '',
            summary=ResourcesSummary(
                resources_flagged=summary.get('resourcesFlagged') or 0,
                resources_processed=summary.get('resourcesProcessed') or 0,
            ),
            flagged_resources=tuple(
                FlaggedResource.from_api(r) for r in (data.get('flaggedResources') or [])
            ),
        )


class MetricIdentity(NamedTuple):
    """指标身份：同一 (region, service, resource) 始终对应同一组描述符"""
    region: str
    service: str
    resource: str


@dataclass(frozen=True)
class Observation:
    """解析后的一条 used / limit 观测值，仅在一个采集周期内有效"""
    region: str
    service: str
    resource: str
    used: float
    limit: float
    check_id: str = ''
    resource_id: Optional[str] = None

    @property
    def identity(self) -> MetricIdentity:
        return MetricIdentity(self.region, self.service, self.resource)


@dataclass(frozen=True)
class SkippedResource:
    """解析时被跳过的资源（上报，不抛异常）"""
    check_id: str
    index: int
    reason: str
    metadata: RawResourceFields = ()


@dataclass
class ParseReport:
    """单个 check 的解析结果"""
    check_id: str
    observations: List[Observation] = field(default_factory=list)
    skipped: List[SkippedResource] = field(default_factory=list)

    def is_empty(self) -> bool:
        """没有任何可用观测值"""
        return not self.observations
