# -*- coding: utf-8 -*-
"""
Exporter 配置加载模块

功能：
- 从 YAML 文件加载配置（可选）
- 环境变量覆盖文件中的配置
- 定义清晰的数据结构（ExporterConfig）
- 读取失败时给出明确错误
"""

import yaml
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from errors import ConfigurationError

# 分区 -> Support API 所在区域
SUPPORT_REGIONS = {
    'aws': 'us-east-1',
    'aws-cn': 'cn-north-1',
    'aws-us-gov': 'us-gov-west-1',
}

DEFAULT_LISTEN_ADDRESS = ':8080'

# 环境变量 -> 配置字段
ENV_OVERRIDES = {
    'LISTEN_ADDRESS': 'listen_address',
    'AWS_LIMITS_REGION': 'region',
    'AWS_PARTITION': 'partition',
    'REFRESH_INTERVAL': 'refresh_interval',
    'CHECK_IDS': 'check_ids',
    'LOG_LEVEL': 'log_level',
}


@dataclass
class ExporterConfig:
    """exporter 配置的根数据结构"""
    listen_address: str = DEFAULT_LISTEN_ADDRESS  # 监听地址，如 ":8080"、"127.0.0.1:9100"
    region: str = ''                     # 只输出该区域的指标，为空表示全部区域
    partition: str = 'aws'               # AWS 分区：aws / aws-cn / aws-us-gov
    refresh_interval: int = 3600         # 刷新间隔（秒），默认 1 小时
    check_ids: List[str] = field(default_factory=list)  # 静态 check 列表，为空则动态发现
    language: str = 'en'
    log_level: str = 'INFO'
    access_key: Optional[str] = None
    secret_key: Optional[str] = None

    @property
    def support_region(self) -> str:
        """Support API 所在区域"""
        return SUPPORT_REGIONS.get(self.partition, 'us-east-1')

    @property
    def listen_host(self) -> str:
        host, _, _ = self.listen_address.rpartition(':')
        return host.strip('[]') or '0.0.0.0'

    @property
    def listen_port(self) -> int:
        _, _, port = self.listen_address.rpartition(':')
        return int(port)


def _split_check_ids(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, list):
        raise ConfigurationError("配置格式错误: 'check_ids' 必须是列表或逗号分隔的字符串")
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _coerce(values: Dict[str, object]) -> Dict[str, object]:
    """字段类型转换"""
    result = dict(values)
    if 'check_ids' in result:
        result['check_ids'] = _split_check_ids(result['check_ids'])
    if 'refresh_interval' in result:
        try:
            result['refresh_interval'] = int(result['refresh_interval'])
        except (TypeError, ValueError):
            raise ConfigurationError(f"refresh_interval 必须是整数: {result['refresh_interval']!r}")
    for key in ('listen_address', 'region', 'partition', 'language', 'log_level'):
        if key in result and result[key] is not None:
            result[key] = str(result[key]).strip()
    if 'log_level' in result and result['log_level']:
        result['log_level'] = result['log_level'].upper()
    return result


def _load_file(config_path: str) -> Dict[str, object]:
    if not os.path.exists(config_path):
        raise ConfigurationError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except IOError as e:
        raise ConfigurationError(f"无法读取配置文件 {config_path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"YAML 解析失败: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("配置格式错误: 根节点必须是字典类型")

    known = set(ExporterConfig.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"未知配置项: {', '.join(sorted(unknown))}")
    return data


def load_exporter_config(config_path: Optional[str] = None, environ=None) -> ExporterConfig:
    """
    加载 exporter 配置

    优先级：环境变量 > 配置文件 > 默认值（命令行参数在 main 中再覆盖）

    Args:
        config_path: YAML 配置文件路径（可选）
        environ: 环境变量字典（默认 os.environ）

    Returns:
        ExporterConfig 对象

    Raises:
        ConfigurationError: 文件不存在、解析失败或字段类型错误
    """
    environ = os.environ if environ is None else environ

    values: Dict[str, object] = {}
    if config_path:
        values.update(_load_file(config_path))

    for env_name, field_name in ENV_OVERRIDES.items():
        env_value = environ.get(env_name)
        if env_value:
            values[field_name] = env_value

    return ExporterConfig(**_coerce(values))
