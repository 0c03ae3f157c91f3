# -*- coding: utf-8 -*-
"""
异常定义模块

功能：
- 定义 exporter 统一的异常层级
- 区分可恢复（上游 API）、可跳过（资源数据）和致命（启动配置）三类错误
"""

from errors.exceptions import (
    ExporterError,
    UpstreamError,
    MalformedResourceError,
    ConfigurationError,
)

__all__ = ['ExporterError', 'UpstreamError', 'MalformedResourceError', 'ConfigurationError']
