"""
通知API路由模块

提供接收 Sonarr Webhook 的端点，所有响应均为纯文本。
"""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import ValidationError

from ...config import Settings
from ...core.schemas import WebhookNotification
from ...services.notification import BadRequestBody, NotificationError, NotificationProcessor
from ..deps import get_app_settings, get_notification_processor


notify_router = APIRouter(tags=["notify"])


def parse_notification(raw_body: bytes) -> WebhookNotification:
    """
    解析 Webhook 请求体

    Args:
        raw_body: 原始请求体

    Returns:
        WebhookNotification: 解析后的通知

    Raises:
        BadRequestBody: 请求体不是合法 JSON 或结构不符合预期
    """
    try:
        return WebhookNotification.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError) as e:
        raise BadRequestBody() from e


@notify_router.post("/notify/{service}", response_class=PlainTextResponse)
async def notify(
    service: str,
    request: Request,
    processor: NotificationProcessor = Depends(get_notification_processor),
    settings: Settings = Depends(get_app_settings),
) -> PlainTextResponse:
    """
    接收来源服务的通知并刷新相关的 Plex 媒体库

    Args:
        service: 来源服务名，用于选择重映射规则
        request: 原始请求，用于读取请求体
        processor: 通知处理器依赖
        settings: 应用配置依赖

    Returns:
        PlainTextResponse: 200 表示已处理；400 请求体非法或没有匹配的媒体库；
            500 无法获取媒体库；502 刷新失败且启用了 FAIL_ON_RESCAN_ERROR
    """
    ctx_logger = logger.bind(service=service)
    ctx_logger.info(f"收到来自 {service} 的请求")

    raw_body = await request.body()
    try:
        notification = parse_notification(raw_body)
        ctx_logger.info(f"事件类型: {notification.eventType}")
        result = await processor.process(notification, service)
    except BadRequestBody as e:
        ctx_logger.error(f"无法解析请求体: {e.__cause__}, body={raw_body[:1024]!r}")
        return PlainTextResponse(e.message, status_code=e.status_code)
    except NotificationError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)

    if result.skipped:
        return PlainTextResponse(f"Test request received from {service}")

    if result.failed:
        failed_ids = [r.library_id for r in result.failed]
        ctx_logger.warning(f"部分媒体库刷新失败: {failed_ids}")
        if settings.FAIL_ON_RESCAN_ERROR:
            return PlainTextResponse(
                f"Failed to rescan libraries: {', '.join(failed_ids)}",
                status_code=502,
            )

    return PlainTextResponse(f"Request received from {service}")
