# -*- coding: utf-8 -*-
"""
缓存模块

功能：
- 指标描述符缓存（按指标身份懒创建，进程内常驻）
"""

from cache.metric_cache import MetricCache, MetricDescriptor

__all__ = ['MetricCache', 'MetricDescriptor']
