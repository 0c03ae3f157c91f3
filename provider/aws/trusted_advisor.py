# -*- coding: utf-8 -*-
"""
AWS Trusted Advisor API 客户端模块

功能：
- 封装 AWS Support API 中的 Trusted Advisor 调用
- 列出 service_limits 类别的 check
- 请求刷新 check（不等待完成）
- 获取 check 当前结果
"""

import boto3
import logging
from botocore.exceptions import ClientError, BotoCoreError
from typing import Iterable, Optional, Set

from collector.check_result import CheckResult
from errors import UpstreamError

logger = logging.getLogger(__name__)

SERVICE_LIMITS_CATEGORY = 'service_limits'


class TrustedAdvisorClient:
    """
    AWS Trusted Advisor API 客户端

    功能：
    - 调用 DescribeTrustedAdvisorChecks 获取 check 列表
    - 调用 RefreshTrustedAdvisorCheck 请求刷新
    - 调用 DescribeTrustedAdvisorCheckResult 获取结果
    - 所有 AWS 错误统一转换为 UpstreamError
    """

    def __init__(self, region: str = 'us-east-1', access_key: str = None, secret_key: str = None,
                 language: str = 'en', client=None):
        """
        初始化 Trusted Advisor 客户端

        Args:
            region: Support API 所在区域（aws 分区为 us-east-1）
            access_key: AWS Access Key（可选，如果提供则使用指定凭证）
            secret_key: AWS Secret Key（可选，如果提供则使用指定凭证）
            language: Trusted Advisor 返回语言
            client: 预先构造的 boto3 support 客户端（可选）
        """
        self.region = region
        self.language = language
        if client is not None:
            self.client = client
            return
        try:
            if access_key and secret_key:
                session = boto3.Session(
                    aws_access_key_id=access_key,
                    aws_secret_access_key=secret_key
                )
                self.client = session.client('support', region_name=region)
                logger.debug(f"Support 客户端初始化成功（使用指定凭证），区域: {region}")
            else:
                # 使用默认凭证链（环境变量、配置文件、IAM 角色等）
                self.client = boto3.client('support', region_name=region)
                logger.debug(f"Support 客户端初始化成功（使用默认凭证链），区域: {region}")
        except Exception as e:
            logger.error(f"初始化 Support 客户端失败: {e}")
            raise

    def _upstream_error(self, operation: str, check_id: Optional[str], error: Exception) -> UpstreamError:
        if isinstance(error, ClientError):
            code = error.response.get('Error', {}).get('Code', 'Unknown')
            message = error.response.get('Error', {}).get('Message', str(error))
        else:
            code = type(error).__name__
            message = str(error)
        return UpstreamError(
            f"{operation} 失败: check_id={check_id}, error={code}: {message}",
            operation=operation,
            check_id=check_id,
            code=code,
        )

    def list_check_ids(self) -> Set[str]:
        """
        列出所有 service_limits 类别的 check ID

        Returns:
            check ID 集合

        Raises:
            UpstreamError: API 调用失败
        """
        try:
            response = self.client.describe_trusted_advisor_checks(language=self.language)
        except (ClientError, BotoCoreError) as e:
            raise self._upstream_error('DescribeTrustedAdvisorChecks', None, e) from e

        check_ids = set()
        for check in response.get('checks', []):
            check_id = check.get('id')
            if check_id and check.get('category') == SERVICE_LIMITS_CATEGORY:
                check_ids.add(check_id)

        logger.debug(f"发现 {len(check_ids)} 个 service_limits check")
        return check_ids

    def request_refresh(self, check_id: str) -> Optional[str]:
        """
        请求刷新 check，不等待刷新完成

        Args:
            check_id: check ID

        Returns:
            刷新状态（如 enqueued / processing），API 未返回时为 None

        Raises:
            UpstreamError: API 调用失败
        """
        try:
            response = self.client.refresh_trusted_advisor_check(checkId=check_id)
        except (ClientError, BotoCoreError) as e:
            raise self._upstream_error('RefreshTrustedAdvisorCheck', check_id, e) from e

        status = response.get('status') or {}
        logger.debug(
            f"刷新请求已提交: check_id={check_id}, status={status.get('status')}, "
            f"millisUntilNextRefreshIsAllowed={status.get('millisUntilNextRefreshIsAllowed')}"
        )
        return status.get('status')

    def fetch_result(self, check_id: str) -> CheckResult:
        """
        获取 check 当前结果（可能是旧数据）

        Args:
            check_id: check ID

        Returns:
            CheckResult

        Raises:
            UpstreamError: API 调用失败，或 check 暂无结果（刷新后属正常情况）
        """
        try:
            response = self.client.describe_trusted_advisor_check_result(
                checkId=check_id,
                language=self.language
            )
        except (ClientError, BotoCoreError) as e:
            raise self._upstream_error('DescribeTrustedAdvisorCheckResult', check_id, e) from e

        result = response.get('result') if response else None
        if not result:
            raise UpstreamError(
                f"check 暂无结果: check_id={check_id}",
                operation='DescribeTrustedAdvisorCheckResult',
                check_id=check_id,
                code='NoResult',
            )
        return CheckResult.from_api(check_id, result)


def resolve_check_ids(client: TrustedAdvisorClient, configured: Optional[Iterable[str]] = None) -> Set[str]:
    """
    确定需要处理的 check 集合

    配置了静态 check 列表时直接使用，否则动态发现

    Raises:
        UpstreamError: 动态发现失败
    """
    static_ids = {c for c in (configured or []) if c}
    if static_ids:
        return static_ids
    return client.list_check_ids()
