"""通知处理服务模块

拆分为多个专职子模块：
- errors: 处理流程中的错误类型
- types: 数据结构和类型定义
- path_resolver: 路径重映射逻辑
- processor: 主处理协调器
"""

from .errors import (
    NotificationError,
    BadRequestBody,
    LibraryDiscoveryFailed,
    NoLibraryForPath,
    ServiceNotReady,
)
from .types import NotificationResult, RescanResult
from .path_resolver import remap_path
from .processor import NotificationProcessor, find_library_ids

__all__ = [
    "NotificationError",
    "BadRequestBody",
    "LibraryDiscoveryFailed",
    "NoLibraryForPath",
    "ServiceNotReady",
    "NotificationResult",
    "RescanResult",
    "remap_path",
    "NotificationProcessor",
    "find_library_ids",
]
