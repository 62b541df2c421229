from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource
from loguru import logger


# 配置文件路径可通过环境变量覆盖
CONFIG_FILE_ENV = "CONFIG_FILE"
DEFAULT_CONFIG_FILE = Path("data/config.json")

# 兼容旧版 config.json 中的驼峰键名
_FILE_KEY_ALIASES = {
    "plexHost": "PLEX_HOST",
    "plexPort": "PLEX_PORT",
    "plexToken": "PLEX_TOKEN",
    "plexTimeoutSeconds": "PLEX_TIMEOUT_SECONDS",
    "plexVerifyToken": "PLEX_VERIFY_TOKEN",
    "remappings": "REMAPPINGS",
    "failOnRescanError": "FAIL_ON_RESCAN_ERROR",
    "logLevel": "LOG_LEVEL",
    "logFile": "LOG_FILE",
    "host": "HOST",
    "port": "PORT",
}


class LogLevel(str, Enum):
    """日志级别枚举"""
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConfigFileError(ValueError):
    """配置文件无法读取或格式错误"""


class RemapRule(BaseModel):
    """路径重映射规则：将路径中第一次出现的 `from` 替换为 `to`"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_: str = Field(..., alias="from", description="待替换的路径片段")
    to: str = Field(..., description="替换后的路径片段")


def get_config_file_path() -> Path:
    """返回当前生效的配置文件路径"""
    return Path(os.environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE)


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    读取 JSON 配置文件并将键名规范化为 Settings 字段名

    Args:
        path: 配置文件路径

    Returns:
        Dict[str, Any]: 以 Settings 字段名为键的配置字典；文件不存在时返回空字典

    Raises:
        ConfigFileError: 文件无法读取、不是合法 JSON 或顶层不是对象
    """
    if not path.exists():
        logger.debug(f"配置文件不存在，仅使用环境变量: {path}")
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigFileError(f"无法读取配置文件 {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigFileError(f"配置文件 {path} 不是有效的 JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigFileError(f"配置文件 {path} 顶层必须是 JSON 对象")

    return {_FILE_KEY_ALIASES.get(key, key): value for key, value in raw.items()}


class JsonFileSource(PydanticBaseSettingsSource):
    """从 JSON 配置文件读取配置的自定义源"""

    def __init__(self, settings_cls: type[BaseSettings], path: Path):
        super().__init__(settings_cls)
        self.path = path
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is None:
            self._data = read_config_file(self.path)
        return self._data

    def get_field_value(self, field_info, field_name: str):
        return self._load().get(field_name), field_name, False

    def prepare_field_value(self, field_name: str, field_info, value, value_from):
        return value

    def __call__(self) -> Dict[str, Any]:
        data = self._load()
        return {
            field_name: data[field_name]
            for field_name in self.settings_cls.model_fields
            if field_name in data
        }


class Settings(BaseSettings):
    """项目全局配置。

    字段可来自环境变量、`.env` 文件或 JSON 配置文件（默认 `data/config.json`）。
    进程启动时加载一次，之后只读，并显式传入各组件。
    """

    # —— Plex ——
    PLEX_HOST: str = Field(..., description="Plex 服务器地址，如 http://localhost")
    PLEX_PORT: int = Field(32400, description="Plex 服务器端口", ge=1, le=65535)
    PLEX_TOKEN: str = Field(..., description="Plex 访问令牌（X-Plex-Token）")
    PLEX_TIMEOUT_SECONDS: float = Field(
        10.0,
        description="请求 Plex 的超时时间（秒）",
        gt=0,
    )
    PLEX_VERIFY_TOKEN: bool = Field(
        default=False,
        description="启动时是否通过 plex.tv 校验令牌并记录账号信息"
    )

    # —— 路径重映射 ——
    REMAPPINGS: Dict[str, List[RemapRule]] = Field(
        default_factory=dict,
        description="按来源服务名（区分大小写）配置的有序路径重映射规则"
    )

    # —— 通知处理策略 ——
    FAIL_ON_RESCAN_ERROR: bool = Field(
        default=False,
        description="任一媒体库刷新失败时是否向调用方返回错误"
    )

    # —— 日志 ——
    LOG_LEVEL: LogLevel = Field(
        LogLevel.INFO,
        description="日志级别"
    )
    LOG_FILE: Optional[Path] = Field(
        Path("data/log.txt"),
        description="JSON 日志文件路径，留空则只输出到控制台"
    )

    # —— 监听地址 ——
    HOST: str = Field("0.0.0.0", description="HTTP 服务监听地址")
    PORT: int = Field(3030, description="HTTP 服务监听端口", ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=True,
        validate_default=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        自定义配置源优先级：初始化参数 > 环境变量 > .env文件 > JSON配置文件

        Returns:
            配置源的优先级元组，优先级从高到低
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonFileSource(settings_cls, get_config_file_path()),
            file_secret_settings,
        )

    # —— 验证器 ——
    @field_validator("PLEX_HOST")
    @classmethod
    def validate_plex_host(cls, v: str) -> str:
        """验证 Plex 地址必须带协议头"""
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError(f"PLEX_HOST 必须以 http:// 或 https:// 开头: {v}")
        return v

    @field_validator("LOG_FILE", mode="before")
    @classmethod
    def validate_log_file(cls, v: Any) -> Any:
        """空字符串表示禁用文件日志"""
        if isinstance(v, str) and not v.strip():
            return None
        return v


# 全局缓存，仅供进程入口使用；组件通过参数接收 Settings
_settings: Settings | None = None


def get_settings(force_reload: bool = False) -> Settings:
    """返回缓存的配置实例，如果不存在则创建。

    Args:
        force_reload: 是否强制重新加载配置

    Returns:
        Settings实例

    Raises:
        ConfigFileError: 配置文件无法读取或格式错误
        pydantic.ValidationError: 配置项缺失或非法
    """
    global _settings
    if _settings is None or force_reload:
        _settings = Settings()
        logger.info(f"配置加载完成: PLEX_HOST={_settings.PLEX_HOST}, PLEX_PORT={_settings.PLEX_PORT}, "
                    f"已配置重映射的服务: {sorted(_settings.REMAPPINGS)}")
    return _settings


__all__ = [
    "Settings",
    "LogLevel",
    "RemapRule",
    "ConfigFileError",
    "JsonFileSource",
    "read_config_file",
    "get_config_file_path",
    "get_settings",
]
