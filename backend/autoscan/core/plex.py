"""Plex 交互模块 (plex.py)
使用 httpx 异步客户端访问 Plex Media Server 的 REST API
"""
from typing import List, Optional, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from .schemas import LibrarySection, PlexUser, PlexLibrariesResponse

PLEX_TV_USER_URL = "https://plex.tv/api/v2/user"
TOKEN_PARAM = "X-Plex-Token"

ModelT = TypeVar("ModelT", bound=BaseModel)


class PlexError(Exception):
    """请求 Plex 失败（网络错误、非 2xx 响应或响应体无法解析）"""


def build_base_url(host: str, port: int) -> str:
    """
    用配置的端口替换 host 中的端口，生成 Plex 基础地址

    Args:
        host: Plex 地址，如 http://localhost 或 http://plex.local:80
        port: Plex 端口

    Returns:
        str: 形如 http://localhost:32400 的基础地址
    """
    url = httpx.URL(host).copy_with(port=port)
    return str(url).rstrip("/")


def build_rescan_path(path: str, season: Optional[int] = None) -> str:
    """
    生成刷新请求中的 path 参数

    指定季号时追加 "/Season {n}"，与 Plex 的季文件夹命名保持一致。
    """
    if season is not None:
        return f"{path}/Season {season}"
    return path


class PlexClient:
    """Plex Media Server 客户端

    所有请求都会携带 X-Plex-Token 查询参数和 `Accept: application/json` 头。
    单个实例可被多个并发请求共享。
    """

    def __init__(
        self,
        host: str,
        port: int,
        token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = build_base_url(host, port)
        self._token = token
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"初始化 Plex 客户端: {self.base_url}")

    async def aclose(self) -> None:
        """关闭自行创建的 HTTP 客户端"""
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(self, url: str, params: Optional[dict] = None) -> httpx.Response:
        query = {TOKEN_PARAM: self._token}
        if params:
            query.update(params)

        logger.debug(f"请求 Plex: GET {url} params={params or {}}")
        try:
            response = await self._client.get(
                url,
                params=query,
                headers={"Accept": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"请求 Plex 失败: {url}, 错误: {e}")
            raise PlexError(f"请求 Plex 失败: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Plex 返回错误状态: {url} -> {response.status_code}")
            raise PlexError(f"Request failed with status: {response.status_code}")

        return response

    @staticmethod
    def _parse(response: httpx.Response, model: Type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            # json 解析失败抛出 JSONDecodeError（ValueError 子类）
            logger.error(f"无法解析 Plex 响应: {response.url}, 错误: {e}")
            raise PlexError(f"无法解析 Plex 响应: {e}") from e

    async def list_libraries(self) -> List[LibrarySection]:
        """
        获取所有媒体库及其文件夹位置

        Returns:
            List[LibrarySection]: 按 Plex 返回顺序排列的媒体库列表

        Raises:
            PlexError: 请求或解析失败
        """
        response = await self._request(self._url("library/sections"))
        libraries = self._parse(response, PlexLibrariesResponse).MediaContainer.Directory
        logger.info(f"获取到 {len(libraries)} 个 Plex 媒体库")
        return libraries

    async def rescan(self, library_id: str, path: str, season: Optional[int] = None) -> None:
        """
        请求 Plex 刷新媒体库中的指定路径

        Args:
            library_id: 媒体库 ID（Plex 中的 key）
            path: Plex 视角下的剧集路径
            season: 可选季号，指定时只刷新该季文件夹

        Raises:
            PlexError: 请求失败
        """
        scan_path = build_rescan_path(path, season)
        logger.bind(library_id=library_id).info(f"刷新媒体库路径: {scan_path}")
        await self._request(
            self._url(f"library/sections/{library_id}/refresh"),
            params={"path": scan_path},
        )

    async def get_current_user(self) -> PlexUser:
        """
        通过 plex.tv 获取令牌对应的账号信息

        Raises:
            PlexError: 请求或解析失败
        """
        response = await self._request(PLEX_TV_USER_URL)
        return self._parse(response, PlexUser)
