# -*- coding: utf-8 -*-
"""
异常类型实现模块
"""

from typing import Optional


class ExporterError(Exception):
    """exporter 异常基类"""
    pass


class UpstreamError(ExporterError):
    """
    Trusted Advisor API 调用失败（网络、鉴权、结果不存在等）

    始终可恢复：只影响当前 check，不会导致进程退出
    """

    def __init__(self, message: str, operation: str = '', check_id: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.check_id = check_id
        self.code = code or 'Unknown'


class MalformedResourceError(ExporterError):
    """
    Flagged resource 的 metadata 无法解析

    只跳过该资源，不影响同一 check 的其他资源
    """

    TOO_SHORT = 'too_short'
    NO_NUMERIC_PAIR = 'no_numeric_pair'
    INSUFFICIENT_LABELS = 'insufficient_labels'
    NOT_NUMERIC = 'not_numeric'

    def __init__(self, message: str, reason: str = NOT_NUMERIC):
        super().__init__(message)
        self.reason = reason


class ConfigurationError(ExporterError):
    """启动配置无效（region / partition / 监听地址等），仅在启动时致命"""
    pass
