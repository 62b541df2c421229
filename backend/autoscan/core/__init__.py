"""Core module exports

Plex Autoscan 项目的核心功能模块，提供外部系统的数据模型与客户端。

主要模块：
- plex: Plex Media Server REST 客户端
- schemas: Sonarr Webhook 与 Plex 响应的 Pydantic 模型
"""
