"""服务层包

按领域组织的服务层模块：
- notification: Sonarr 通知到 Plex 刷新的处理流程
"""

from .notification import NotificationProcessor, NotificationResult, remap_path

__all__ = [
    "NotificationProcessor",
    "NotificationResult",
    "remap_path",
]
