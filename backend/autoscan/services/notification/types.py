"""通知处理相关的数据结构和类型定义"""

from typing import List, NamedTuple, Optional, Tuple


class RescanResult(NamedTuple):
    """单个媒体库的刷新结果"""
    library_id: str
    success: bool
    message: str


class NotificationResult(NamedTuple):
    """一次通知的处理结果"""
    service_name: str
    event_type: str
    plex_path: Optional[str] = None
    season: Optional[int] = None
    rescans: Tuple[RescanResult, ...] = ()
    skipped: bool = False

    @property
    def failed(self) -> List[RescanResult]:
        return [r for r in self.rescans if not r.success]

    @property
    def success(self) -> bool:
        return not self.failed
