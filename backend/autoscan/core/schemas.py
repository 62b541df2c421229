"""
Pydantic模型（Schemas）模块

定义 Sonarr Webhook 请求体和 Plex API 响应的数据模型。
字段名与外部 JSON 保持一致，缺省字段使用空值，以兼容不同版本的 Sonarr 推送。
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


# —— Sonarr Webhook ——

class SonarrModel(BaseModel):
    """Sonarr 模型基类：JSON 中的 null 按字段默认值处理"""

    @field_validator("*", mode="before")
    @classmethod
    def null_as_default(cls, v, info: ValidationInfo):
        if v is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return v


class SonarrEpisode(SonarrModel):
    id: int = 0
    title: str = ""
    episodeNumber: int = 0
    seasonNumber: int = 0
    seriesId: int = 0
    tvdbId: int = 0


class SonarrSeries(SonarrModel):
    id: int = 0
    title: str = ""
    path: str = ""
    type: str = ""
    tvdbId: int = 0
    tvMazeId: int = 0
    year: int = 0


class WebhookNotification(SonarrModel):
    """Sonarr 推送的 Webhook 请求体（仅建模处理流程需要的字段）"""

    eventType: str = ""
    instanceName: str = ""
    applicationUrl: str = ""
    series: SonarrSeries = Field(default_factory=SonarrSeries)
    episodes: List[SonarrEpisode] = Field(default_factory=list)

    @property
    def is_test(self) -> bool:
        """Sonarr 的连通性测试事件"""
        return self.eventType == "Test"

    @property
    def season_hint(self) -> Optional[int]:
        """取第一集的季号；没有剧集信息时返回 None"""
        if self.episodes:
            return self.episodes[0].seasonNumber
        return None


# —— Plex ——

class Location(BaseModel):
    id: int = 0
    path: str


class LibrarySection(BaseModel):
    """Plex 媒体库，`id` 对应 Plex 返回的 `key`"""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(..., alias="key")
    title: str = ""
    type: str = ""
    locations: List[Location] = Field(default_factory=list, alias="Location")


class PlexMediaContainer(BaseModel):
    size: int = 0
    title1: str = ""
    Directory: List[LibrarySection] = Field(default_factory=list)


class PlexLibrariesResponse(BaseModel):
    MediaContainer: PlexMediaContainer


class PlexUser(BaseModel):
    id: int = 0
    uuid: str = ""
    username: str = ""
    title: str = ""
    email: str = ""
    friendlyName: str = ""
