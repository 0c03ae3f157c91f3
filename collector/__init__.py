# -*- coding: utf-8 -*-
"""
Prometheus Collector 模块

功能：
- 解析 Trusted Advisor check 结果
- 实现 Prometheus 动态指标收集逻辑（collector.collector）
- 暴露 aws_service_used / aws_service_limit 指标
"""

from .check_result import CheckResult, FlaggedResource, MetricIdentity, Observation, ParseReport
from .parser import parse_check_result
