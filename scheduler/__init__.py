# -*- coding: utf-8 -*-
"""
定时刷新模块

功能：
- 按固定间隔请求 Trusted Advisor 重新计算 service_limits check
- 在后台线程中运行，不阻塞 /metrics 采集
"""

from scheduler.scheduler import RefreshScheduler, RefreshState

__all__ = ['RefreshScheduler', 'RefreshState']
