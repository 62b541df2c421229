"""测试配置和共享fixture"""

import json
from typing import Callable, List
from unittest.mock import AsyncMock

import httpx
import pytest

from autoscan.core.plex import PlexClient
from autoscan.core.schemas import LibrarySection, Location

# 可能影响 Settings 的环境变量
SETTINGS_ENV_VARS = [
    "PLEX_HOST", "PLEX_PORT", "PLEX_TOKEN", "PLEX_TIMEOUT_SECONDS", "PLEX_VERIFY_TOKEN",
    "REMAPPINGS", "FAIL_ON_RESCAN_ERROR", "LOG_LEVEL", "LOG_FILE", "HOST", "PORT",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """隔离环境变量和工作目录，避免读取真实的 .env 与 data/config.json"""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "config.json"
    monkeypatch.setenv("CONFIG_FILE", str(config_file))
    yield {"temp_dir": tmp_path, "config_file": config_file}


@pytest.fixture
def write_config(isolated_env) -> Callable[[dict], None]:
    """把字典写入临时 config.json 的工厂函数"""
    def _write(content: dict) -> None:
        isolated_env["config_file"].write_text(json.dumps(content), encoding="utf-8")
    return _write


@pytest.fixture
def test_settings():
    """测试用配置"""
    from autoscan.config import Settings

    return Settings(
        PLEX_HOST="http://plex.local",
        PLEX_PORT=32400,
        PLEX_TOKEN="test-token",
        REMAPPINGS={"sonarr": [{"from": "/tv", "to": "/data"}]},
        LOG_FILE=None,
    )


def make_library(library_id: str, *paths: str) -> LibrarySection:
    """构造一个测试用媒体库"""
    return LibrarySection(
        id=library_id,
        title=f"Library {library_id}",
        type="show",
        locations=[Location(id=i, path=p) for i, p in enumerate(paths)],
    )


@pytest.fixture
def library_factory() -> Callable[..., LibrarySection]:
    """媒体库工厂：library_factory("1", "/data/tv", ...)"""
    return make_library


@pytest.fixture
def mock_plex_client():
    """提供模拟的 Plex 客户端"""
    client = AsyncMock(spec=PlexClient)
    client.list_libraries.return_value = [make_library("1", "/data")]
    client.rescan.return_value = None
    return client


@pytest.fixture
def plex_transport():
    """提供基于 httpx.MockTransport 的模拟 Plex 服务器

    返回值包含已记录的请求列表和可修改的响应表，键为请求路径，
    值为 (状态码, JSON) 元组。未登记的路径返回 404。
    """
    requests: List[httpx.Request] = []
    responses = {
        "/library/sections": (
            200,
            {
                "MediaContainer": {
                    "size": 1,
                    "title1": "Plex Library",
                    "Directory": [
                        {
                            "key": "2",
                            "title": "TV Shows",
                            "type": "show",
                            "Location": [{"id": 1, "path": "/data"}],
                        }
                    ],
                }
            },
        ),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path
        if path in responses:
            status_code, body = responses[path]
            return httpx.Response(status_code, json=body)
        if path.startswith("/library/sections/") and path.endswith("/refresh"):
            return httpx.Response(200)
        return httpx.Response(404)

    return {
        "transport": httpx.MockTransport(handler),
        "requests": requests,
        "responses": responses,
    }


@pytest.fixture
def plex_client(plex_transport):
    """使用模拟传输层的真实 PlexClient"""
    http_client = httpx.AsyncClient(transport=plex_transport["transport"])
    return PlexClient(
        host="http://plex.local",
        port=32400,
        token="test-token",
        http_client=http_client,
    )
