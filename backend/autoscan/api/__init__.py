"""Plex Autoscan API 聚合器包

此包负责聚合各 endpoints 子模块的路由，并向外暴露统一的 `router` 变量，
供 `main.py` 及测试用例 `from autoscan.api import router` 使用。
"""

from fastapi import APIRouter

from .endpoints.notify import notify_router

# 创建聚合路由器
router = APIRouter()
router.include_router(notify_router)

# OpenAPI 标签元数据，供 FastAPI 应用在生成文档时使用
tags_metadata = [
    {
        "name": "notify",
        "description": "接收 Sonarr Webhook 并触发 Plex 媒体库刷新",
    },
]

__all__ = ["router", "tags_metadata"]
