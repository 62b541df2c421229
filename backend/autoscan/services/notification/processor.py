"""通知处理器模块

负责把一次 Sonarr 通知转换为对 Plex 的刷新请求。
处理流程：测试事件过滤 -> 路径重映射 -> 获取媒体库 -> 前缀匹配 -> 逐个刷新
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from loguru import logger

from ...config import RemapRule
from ...core.plex import PlexClient, PlexError
from ...core.schemas import LibrarySection, WebhookNotification
from .errors import LibraryDiscoveryFailed, NoLibraryForPath
from .path_resolver import remap_path
from .types import NotificationResult, RescanResult


def find_library_ids(libraries: Sequence[LibrarySection], plex_path: str) -> List[str]:
    """找出包含该路径的媒体库

    对每个媒体库，只要有一个文件夹位置是 `plex_path` 的字符串前缀即命中，
    不再检查该库的其余位置。前缀比较区分大小写且不检查路径分隔符边界，
    因此 `/data/show` 也会匹配 `/data/showalt`。

    Returns:
        List[str]: 命中的媒体库 ID，顺序与 Plex 返回顺序一致
    """
    library_ids: List[str] = []
    for library in libraries:
        for location in library.locations:
            if plex_path.startswith(location.path):
                library_ids.append(library.id)
                break
    return library_ids


class NotificationProcessor:
    """Sonarr 通知处理器

    Plex 客户端、重映射表和日志记录器都在启动时创建并注入，处理过程中只读。
    """

    def __init__(
        self,
        plex_client: PlexClient,
        remappings: Mapping[str, Sequence[RemapRule]],
        log=None,
    ):
        self.plex_client = plex_client
        self.remappings = remappings
        self.log = log or logger.bind(component="notification")

    async def process(self, notification: WebhookNotification, service_name: str) -> NotificationResult:
        """处理一次通知

        Args:
            notification: 解析后的 Webhook 请求体
            service_name: 来源服务名，用于查找重映射规则

        Returns:
            NotificationResult: 包含每个媒体库刷新结果的处理结果。
                单个媒体库刷新失败不会中断流程，由调用方决定如何处理。

        Raises:
            LibraryDiscoveryFailed: 无法获取 Plex 媒体库列表
            NoLibraryForPath: 没有媒体库包含重映射后的路径
        """
        ctx_logger = self.log.bind(service=service_name)
        ctx_logger.debug(f"收到通知: {notification.model_dump()}")

        if notification.is_test:
            ctx_logger.info(f"收到来自 {service_name} 的测试请求")
            return NotificationResult(
                service_name=service_name,
                event_type=notification.eventType,
                skipped=True,
            )

        sonarr_path = notification.series.path
        plex_path = remap_path(sonarr_path, self.remappings.get(service_name, []))
        ctx_logger.info(f"路径重映射: sonarr_path={sonarr_path}, plex_path={plex_path}")

        try:
            libraries = await self.plex_client.list_libraries()
        except PlexError as e:
            ctx_logger.error(f"获取媒体库失败: {e}")
            raise LibraryDiscoveryFailed() from e

        library_ids = find_library_ids(libraries, plex_path)
        if not library_ids:
            ctx_logger.error(f"没有媒体库包含该路径: {plex_path}")
            raise NoLibraryForPath()
        ctx_logger.info(f"命中媒体库: {library_ids}")

        season = notification.season_hint
        if season is not None:
            ctx_logger.info(f"通知包含季号: {season}")

        rescans = tuple(await self._rescan_all(library_ids, plex_path, season, ctx_logger))
        return NotificationResult(
            service_name=service_name,
            event_type=notification.eventType,
            plex_path=plex_path,
            season=season,
            rescans=rescans,
        )

    async def _rescan_all(
        self,
        library_ids: Sequence[str],
        plex_path: str,
        season: Optional[int],
        ctx_logger,
    ) -> List[RescanResult]:
        # 逐个刷新，避免同时向 Plex 发起多个扫描
        results: List[RescanResult] = []
        for library_id in library_ids:
            try:
                await self.plex_client.rescan(library_id, plex_path, season)
            except Exception as e:
                # 任何错误都只记录该媒体库失败，继续刷新其余媒体库
                ctx_logger.bind(library_id=library_id).error(f"刷新媒体库失败: {type(e).__name__}: {e}")
                results.append(RescanResult(library_id=library_id, success=False, message=str(e)))
                continue
            results.append(RescanResult(library_id=library_id, success=True, message="刷新请求已发送"))
        return results
