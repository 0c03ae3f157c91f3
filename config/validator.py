# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证配置的完整性和正确性
- 验证字段格式和取值范围
- 配置无效时抛出 ConfigurationError（启动时致命）
"""

import re

from config.loader import ExporterConfig, SUPPORT_REGIONS
from errors import ConfigurationError

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

_REGION_PATTERN = re.compile(r'^[a-z]{2}(-gov|-iso[a-z]?)?-[a-z]+-\d+$')


def _region_in_partition(region: str, partition: str) -> bool:
    if partition == 'aws-cn':
        return region.startswith('cn-')
    if partition == 'aws-us-gov':
        return region.startswith('us-gov-')
    return not region.startswith(('cn-', 'us-gov-'))


def validate_config(config: ExporterConfig) -> ExporterConfig:
    """
    验证配置对象

    Args:
        config: 配置对象

    Returns:
        验证通过的配置对象

    Raises:
        ConfigurationError: 配置无效
    """
    if config.partition not in SUPPORT_REGIONS:
        raise ConfigurationError(
            f"partition 必须是以下值之一: {', '.join(SUPPORT_REGIONS)}，当前值: {config.partition!r}"
        )

    if config.region:
        if not _REGION_PATTERN.match(config.region):
            raise ConfigurationError(f"region 格式无效: {config.region!r}")
        if not _region_in_partition(config.region, config.partition):
            raise ConfigurationError(f"region {config.region} 不属于分区 {config.partition}")

    if ':' not in config.listen_address:
        raise ConfigurationError(f"listen_address 格式无效（应为 host:port）: {config.listen_address!r}")
    try:
        port = config.listen_port
    except ValueError:
        raise ConfigurationError(f"listen_address 端口无效: {config.listen_address!r}")
    if not 1 <= port <= 65535:
        raise ConfigurationError(f"端口必须在 1-65535 范围内: {port}")

    if config.refresh_interval <= 0:
        raise ConfigurationError(f"refresh_interval 必须是正整数: {config.refresh_interval}")

    if config.log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(f"log_level 必须是以下值之一: {', '.join(VALID_LOG_LEVELS)}")

    if bool(config.access_key) != bool(config.secret_key):
        raise ConfigurationError("access_key 和 secret_key 必须同时提供")

    return config
