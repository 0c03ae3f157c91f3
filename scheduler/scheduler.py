# -*- coding: utf-8 -*-
"""
定时刷新实现模块

功能：
- 后台线程定时请求 Trusted Advisor 重新计算 check
- 不直接操作 Prometheus metrics
- 单个 check 刷新失败不影响其他 check
- 状态流转：IDLE -> LISTING -> REFRESHING -> WAITING -> LISTING ...
"""

import threading
import logging
from enum import Enum
from typing import Iterable, List, Optional

from collector.parser import format_metadata
from errors import UpstreamError
from provider.aws.trusted_advisor import TrustedAdvisorClient, resolve_check_ids

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 3600  # 1 小时

# 刷新后打印的 flagged resource 数量上限
SUMMARY_RESOURCE_LIMIT = 5


class RefreshState(Enum):
    """刷新循环状态"""
    IDLE = "idle"
    LISTING = "listing"
    REFRESHING = "refreshing"
    WAITING = "waiting"


class RefreshScheduler:
    """
    Trusted Advisor 刷新调度器

    职责：
    1. 定时列出 check 并逐个请求刷新
    2. 列表失败时直接等待下一个周期，不立即重试
    3. 只负责"什么时候刷新"，不关心结果如何输出
    """

    def __init__(
        self,
        client: TrustedAdvisorClient,
        check_ids: Optional[Iterable[str]] = None,
        interval: int = DEFAULT_REFRESH_INTERVAL
    ):
        """
        初始化刷新调度器

        Args:
            client: Trusted Advisor 客户端
            check_ids: 静态 check 列表（为空则每个周期动态发现）
            interval: 刷新间隔（秒），默认 3600（1 小时）
        """
        self.client = client
        self.check_ids = list(check_ids or [])
        self.interval = interval

        self.state = RefreshState.IDLE
        self.current_check: Optional[str] = None
        self.cycles = 0
        self.last_refreshed = 0
        self.last_failed = 0

        # 控制标志
        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        logger.info(f"RefreshScheduler 初始化完成: interval={interval}s")

    def start(self):
        """启动后台刷新线程"""
        if self._running:
            logger.warning("刷新任务已在运行")
            return

        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            name="TrustedAdvisorRefreshThread",
            daemon=True
        )
        self._thread.start()
        logger.info("Trusted Advisor 刷新线程已启动")

    def stop(self):
        """停止后台刷新线程"""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()
        logger.info("停止刷新调度器...")

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)

        self.state = RefreshState.IDLE
        logger.info("刷新调度器已停止")

    def run_once(self) -> List[str]:
        """
        执行一个刷新周期（LISTING + REFRESHING）

        Returns:
            成功提交刷新的 check ID 列表
        """
        self.state = RefreshState.LISTING
        try:
            check_ids = resolve_check_ids(self.client, self.check_ids)
        except UpstreamError as e:
            logger.error(f"获取 Trusted Advisor check 列表失败: {e}")
            return []

        refreshed = []
        failed = 0
        for check_id in sorted(check_ids):
            self.state = RefreshState.REFRESHING
            self.current_check = check_id
            logger.info(f"请求刷新 check '{check_id}'，区域: {self.client.region}")
            try:
                self.client.request_refresh(check_id)
            except UpstreamError as e:
                logger.error(f"请求刷新 check '{check_id}' 失败: {e}")
                failed += 1
                continue
            except Exception as e:
                logger.error(f"刷新 check '{check_id}' 时发生未知错误: {e}", exc_info=True)
                failed += 1
                continue
            refreshed.append(check_id)

            try:
                self._log_check_summary(check_id)
            except Exception as e:
                logger.error(f"打印 check '{check_id}' 结果摘要时发生未知错误: {e}", exc_info=True)

        self.current_check = None
        self.cycles += 1
        self.last_refreshed = len(refreshed)
        self.last_failed = failed
        return refreshed

    def _log_check_summary(self, check_id: str):
        """刷新后打印 check 当前结果摘要（结果可能尚未就绪）"""
        try:
            result = self.client.fetch_result(check_id)
        except UpstreamError as e:
            logger.warning(f"获取 check '{check_id}' 结果失败（刷新后结果可能尚未就绪）: {e}")
            return

        logger.info(
            f"check '{check_id}' 摘要: 状态={result.status}, "
            f"flagged={result.summary.resources_flagged}, "
            f"processed={result.summary.resources_processed}"
        )
        if not result.flagged_resources:
            logger.debug(f"check '{check_id}' 没有 flagged resource")
            return

        for idx, resource in enumerate(result.flagged_resources[:SUMMARY_RESOURCE_LIMIT]):
            logger.info(
                f"  资源[{idx}]: 区域={resource.region or '<nil>'} | "
                f"状态={resource.status or '<nil>'} | metadata={format_metadata(resource.metadata)}"
            )
        if len(result.flagged_resources) > SUMMARY_RESOURCE_LIMIT:
            logger.info(f"...仅显示前 {SUMMARY_RESOURCE_LIMIT} 个 flagged resource")

    def _refresh_loop(self):
        """
        刷新循环

        每 interval 秒执行一次 run_once，没有终止状态
        """
        logger.info(f"[Scheduler] Trusted Advisor 刷新循环启动，区域: {self.client.region}，间隔: {self.interval} 秒")

        while self._running:
            try:
                self.run_once()
            except Exception as e:
                # 捕获异常，打印日志，不退出线程
                logger.error(f"[Scheduler] 刷新异常: {e}", exc_info=True)

            self.state = RefreshState.WAITING
            logger.info(f"等待 {self.interval // 60} 分钟后进行下一次刷新...")
            if self._stop_event.wait(self.interval):
                break

        logger.info("[Scheduler] 刷新循环已退出")

    def get_status(self) -> dict:
        """
        获取刷新任务状态

        Returns:
            状态信息字典
        """
        return {
            'running': self._running,
            'state': self.state.value,
            'current_check': self.current_check,
            'interval': self.interval,
            'cycles': self.cycles,
            'last_refreshed': self.last_refreshed,
            'last_failed': self.last_failed,
            'thread_alive': self._thread.is_alive() if self._thread else False
        }
