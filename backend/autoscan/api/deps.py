"""
FastAPI 依赖模块

从 `app.state` 中取出启动时创建的组件，供路由注入使用。
"""

from fastapi import Request

from ..config import Settings
from ..services.notification import NotificationProcessor, ServiceNotReady


def get_notification_processor(request: Request) -> NotificationProcessor:
    """
    获取启动时创建的通知处理器

    Raises:
        ServiceNotReady: 应用尚未完成初始化，由应用的异常处理器转换为503纯文本响应
    """
    processor = getattr(request.app.state, "notification_processor", None)
    if processor is None:
        raise ServiceNotReady("Notification processor is not initialized")
    return processor


def get_app_settings(request: Request) -> Settings:
    """获取启动时加载的配置"""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise ServiceNotReady("Settings are not loaded")
    return settings
