# -*- coding: utf-8 -*-
"""
Trusted Advisor 结果解析模块

功能：
- 把 flagged resource 的位置字段（metadata）解析为 used / limit 数值对
- 数值字段位置随 check 变化，从右往左扫描定位，而不是固定下标
- 字段缺失或格式错误时跳过该资源并上报，不影响其他资源

metadata 常见形态：
    [Region, Service, Limit Name, Limit Amount, Current Usage, Status]
    [Region, Service, Limit Name, Used, Limit]
"""

import logging
import re
from typing import Optional, Sequence, Tuple

from collector.check_result import (
    CheckResult,
    FlaggedResource,
    Observation,
    ParseReport,
    SkippedResource,
)
from errors import MalformedResourceError

logger = logging.getLogger(__name__)

# region / service / resource 三个标签字段
MIN_METADATA_FIELDS = 3

MISSING_LABEL = '-'
GLOBAL_REGION = 'global'

_NUMBER_PATTERN = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$')


def parse_number(value: Optional[str]) -> float:
    """
    解析数值字段，容忍千分位逗号

    "12,345" -> 12345.0；"inf"、"nan"、"1_000" 等不视为数值

    Raises:
        MalformedResourceError: 不是数值
    """
    if value is None:
        raise MalformedResourceError("数值字段为空", MalformedResourceError.NOT_NUMERIC)
    text = value.replace(',', '').strip()
    if not _NUMBER_PATTERN.match(text):
        raise MalformedResourceError(f"不是数值: {value!r}", MalformedResourceError.NOT_NUMERIC)
    return float(text)


def is_number(value: Optional[str]) -> bool:
    """判断字段能否解析为数值"""
    try:
        parse_number(value)
    except MalformedResourceError:
        return False
    return True


def locate_used_limit(fields: Sequence[Optional[str]]) -> Tuple[int, int]:
    """
    定位 used / limit 数值对所在的位置

    从右往左找最右侧的两个数值字段（跳过 None）。只找到一个数值字段时，
    若它紧邻的字段为 None，则由该 None 补位（按 0 处理）。

    Args:
        fields: metadata 位置字段

    Returns:
        (left_index, right_index)，left_index < right_index

    Raises:
        MalformedResourceError: 找不到数值对，或数值对左侧不足 3 个标签字段
    """
    found = []
    for idx in range(len(fields) - 1, -1, -1):
        if fields[idx] is None:
            continue
        if is_number(fields[idx]):
            found.append(idx)
            if len(found) == 2:
                break

    if len(found) == 2:
        right, left = found
    elif len(found) == 1:
        idx = found[0]
        if idx + 1 < len(fields) and fields[idx + 1] is None:
            left, right = idx, idx + 1
        elif idx > 0 and fields[idx - 1] is None:
            left, right = idx - 1, idx
        else:
            raise MalformedResourceError("只有一个数值字段", MalformedResourceError.NO_NUMERIC_PAIR)
    else:
        raise MalformedResourceError("没有可解析的 used/limit 字段", MalformedResourceError.NO_NUMERIC_PAIR)

    if left < MIN_METADATA_FIELDS:
        raise MalformedResourceError(
            f"数值字段之前只有 {left} 个标签字段",
            MalformedResourceError.INSUFFICIENT_LABELS,
        )
    return left, right


def _label(value: Optional[str]) -> str:
    if value is None or not value.strip():
        return MISSING_LABEL
    return value


def _slot_value(value: Optional[str]) -> float:
    # None 表示没有使用量，按 0 处理
    if value is None:
        return 0.0
    return parse_number(value)


def has_trailing_column(fields: Sequence[Optional[str]], right: int) -> bool:
    """数值对之后是否还有非空字段（如 Status 列）"""
    return any(value is not None for value in fields[right + 1:])


def parse_resource_fields(fields: Sequence[Optional[str]]) -> Tuple[str, str, str, float, float]:
    """
    解析单个资源的位置字段

    Args:
        fields: metadata 位置字段

    Returns:
        (region, service, resource, used, limit)

    Raises:
        MalformedResourceError: 字段不足或数值无法解析
    """
    if len(fields) < MIN_METADATA_FIELDS:
        raise MalformedResourceError(
            f"metadata 字段不足: {len(fields)} < {MIN_METADATA_FIELDS}",
            MalformedResourceError.TOO_SHORT,
        )

    left, right = locate_used_limit(fields)
    first = _slot_value(fields[left])
    second = _slot_value(fields[right])
    if has_trailing_column(fields, right):
        # [..., Limit Amount, Current Usage, Status]：按位置取值，超限时 used > limit
        limit, used = first, second
    else:
        # 末尾裸数值对的列顺序不固定，取较大者为 limit
        used, limit = min(first, second), max(first, second)

    region = _label(fields[0])
    if region == MISSING_LABEL:
        region = GLOBAL_REGION
    return region, _label(fields[1]), _label(fields[2]), used, limit


def format_metadata(fields: Sequence[Optional[str]]) -> str:
    """把 metadata 渲染为日志可读格式：[0]="us-east-1", [1]=<nil>"""
    if not fields:
        return '<empty>'
    parts = []
    for idx, value in enumerate(fields):
        if value is None:
            parts.append(f"[{idx}]=<nil>")
        else:
            parts.append(f'[{idx}]="{value}"')
    return ', '.join(parts)


def parse_flagged_resource(check_id: str, resource: FlaggedResource) -> Observation:
    """解析单个 flagged resource 为 Observation"""
    region, service, name, used, limit = parse_resource_fields(resource.metadata)
    return Observation(
        region=region,
        service=service,
        resource=name,
        used=used,
        limit=limit,
        check_id=check_id,
        resource_id=resource.resource_id,
    )


def parse_check_result(result: CheckResult) -> ParseReport:
    """
    解析单个 check 结果

    每个资源独立解析，失败的资源记录到 skipped，本周期内不重试

    Args:
        result: check 结果

    Returns:
        ParseReport
    """
    report = ParseReport(check_id=result.check_id)
    for idx, resource in enumerate(result.flagged_resources):
        try:
            observation = parse_flagged_resource(result.check_id, resource)
        except MalformedResourceError as e:
            logger.warning(
                f"跳过资源: check={result.check_id}, index={idx}, reason={e.reason}, "
                f"metadata={format_metadata(resource.metadata)}"
            )
            report.skipped.append(SkippedResource(
                check_id=result.check_id,
                index=idx,
                reason=e.reason,
                metadata=resource.metadata,
            ))
            continue
        report.observations.append(observation)

    logger.debug(
        f"解析完成: check={result.check_id}, observations={len(report.observations)}, skipped={len(report.skipped)}"
    )
    return report
