# -*- coding: utf-8 -*-
"""
AWS Provider 模块

功能：
- 封装 AWS Support / Trusted Advisor API
"""
