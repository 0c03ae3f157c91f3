#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AWS Limits Exporter 主程序入口

功能：
- 启动 Flask HTTP 服务器
- 暴露 /metrics 端点供 Prometheus 抓取
- 暴露 /-/healthy 健康检查端点
- 启动 Trusted Advisor 后台刷新线程
"""

from flask import Flask
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, REGISTRY
import argparse
import logging
import sys
from typing import List, Optional

# 导入配置加载模块
from config.loader import load_exporter_config, ExporterConfig
from config.validator import validate_config

# 导入 Trusted Advisor 客户端
from provider.aws.trusted_advisor import TrustedAdvisorClient

# 导入描述符缓存和收集器
from cache.metric_cache import MetricCache
from collector.collector import TrustedAdvisorCollector

# 导入 Scheduler
from scheduler.scheduler import RefreshScheduler

from errors import ConfigurationError

VERSION = '0.3.0'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)

# 创建 Flask 应用
app = Flask(__name__)

# 指标注册表（main 中注册 collector）
registry = REGISTRY


@app.route('/metrics')
def metrics():
    """
    Prometheus metrics 端点

    每次抓取都会调用 TrustedAdvisorCollector.collect()
    格式：Prometheus text format
    """
    return generate_latest(registry), 200, {'Content-Type': CONTENT_TYPE_LATEST}


@app.route('/-/healthy')
def healthy():
    """健康检查端点，固定返回 OK"""
    return 'OK', 200


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """解析命令行参数（覆盖配置文件和环境变量）"""
    parser = argparse.ArgumentParser(description="AWS Trusted Advisor service limits exporter")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="YAML configuration file.",
    )
    parser.add_argument(
        "--listen-address",
        type=str,
        help="The address to listen on for HTTP requests (default :8080).",
    )
    parser.add_argument(
        "--region",
        type=str,
        help="The AWS region to show metrics for (default all regions).",
    )
    parser.add_argument(
        "--partition",
        type=str,
        choices=["aws", "aws-cn", "aws-us-gov"],
        help="The AWS partition whose Support API is queried (default aws).",
    )
    parser.add_argument(
        "--refresh-interval",
        type=int,
        help="Seconds between Trusted Advisor refresh requests (default 3600).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Log level: DEBUG, INFO, WARNING, ERROR.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ExporterConfig:
    """
    合并配置：命令行 > 环境变量 > 配置文件 > 默认值

    Raises:
        ConfigurationError: 配置无效
    """
    config = load_exporter_config(args.config)
    if args.listen_address:
        config.listen_address = args.listen_address
    if args.region is not None:
        config.region = args.region.strip()
    if args.partition:
        config.partition = args.partition
    if args.refresh_interval is not None:
        config.refresh_interval = args.refresh_interval
    if args.log_level:
        config.log_level = args.log_level.upper()
    return validate_config(config)


def main(argv: Optional[List[str]] = None):
    """
    主函数：启动 Flask 服务器

    功能：
    1. 加载并验证配置（无效配置直接退出）
    2. 初始化 Trusted Advisor 客户端、描述符缓存、收集器
    3. 启动后台刷新线程
    4. 启动 HTTP 服务器
    """
    args = parse_arguments(argv)

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    # 减少 Flask 日志
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        logger.error(f"配置无效: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    logger.info(f"AWS Limits Exporter v{VERSION} 启动")
    logger.info(
        f"分区: {config.partition}, Support API 区域: {config.support_region}, "
        f"指标区域: {config.region or '全部'}, 刷新间隔: {config.refresh_interval} 秒"
    )
    if config.check_ids:
        logger.info(f"使用静态 check 列表: {config.check_ids}")
    else:
        logger.info("未配置 check 列表，将动态发现 service_limits check")

    client = TrustedAdvisorClient(
        region=config.support_region,
        access_key=config.access_key,
        secret_key=config.secret_key,
        language=config.language
    )

    # 描述符缓存在进程内只创建一次
    metric_cache = MetricCache()
    collector = TrustedAdvisorCollector(
        client=client,
        metric_cache=metric_cache,
        check_ids=config.check_ids,
        metrics_region=config.region,
        registry=registry
    )
    registry.register(collector)

    scheduler = RefreshScheduler(
        client=client,
        check_ids=config.check_ids,
        interval=config.refresh_interval
    )
    scheduler.start()

    logger.info(f"HTTP 服务监听地址: {config.listen_address}")
    app.run(host=config.listen_host, port=config.listen_port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
