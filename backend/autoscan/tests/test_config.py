"""配置模块测试用例"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from autoscan.config import (
    ConfigFileError,
    LogLevel,
    RemapRule,
    Settings,
    get_settings,
    read_config_file,
)


def test_settings_from_config_file(write_config):
    """测试用例 1.1: 从驼峰键名的 config.json 加载配置

    Given: 旧版格式的 config.json
    When: Settings 类被实例化
    Then: 配置字段与文件内容一致
    """
    write_config({
        "plexHost": "http://192.168.1.10",
        "plexPort": 32401,
        "plexToken": "file-token",
        "remappings": {
            "sonarr": [{"from": "/tv", "to": "/data/tv"}],
            "sonarr-anime": [{"from": "/anime", "to": "/data/anime"}],
        },
    })

    settings = Settings()

    assert settings.PLEX_HOST == "http://192.168.1.10"
    assert settings.PLEX_PORT == 32401
    assert settings.PLEX_TOKEN == "file-token"
    assert settings.REMAPPINGS["sonarr"] == [RemapRule(from_="/tv", to="/data/tv")]
    assert settings.REMAPPINGS["sonarr-anime"][0].to == "/data/anime"
    assert "radarr" not in settings.REMAPPINGS


def test_settings_defaults(write_config):
    """测试用例 1.2: 未配置的字段使用默认值"""
    write_config({"PLEX_HOST": "http://localhost", "PLEX_TOKEN": "t"})

    settings = Settings()

    assert settings.PLEX_PORT == 32400
    assert settings.REMAPPINGS == {}
    assert settings.FAIL_ON_RESCAN_ERROR is False
    assert settings.LOG_LEVEL == LogLevel.INFO
    assert settings.LOG_FILE == Path("data/log.txt")
    assert settings.PORT == 3030


def test_env_overrides_config_file(write_config, monkeypatch):
    """测试用例 1.3: 环境变量优先于配置文件"""
    write_config({"plexHost": "http://file-host", "plexToken": "file-token"})
    monkeypatch.setenv("PLEX_TOKEN", "env-token")
    monkeypatch.setenv("REMAPPINGS", json.dumps({"sonarr": [{"from": "/tv", "to": "/media"}]}))

    settings = Settings()

    assert settings.PLEX_HOST == "http://file-host"
    assert settings.PLEX_TOKEN == "env-token"
    assert settings.REMAPPINGS["sonarr"][0].to == "/media"


def test_missing_config_file_uses_env(monkeypatch):
    """测试用例 1.4: 配置文件不存在时仅使用环境变量"""
    monkeypatch.setenv("PLEX_HOST", "http://localhost")
    monkeypatch.setenv("PLEX_TOKEN", "env-token")

    settings = Settings()

    assert settings.PLEX_TOKEN == "env-token"


def test_missing_required_values():
    """测试用例 1.5: 缺少必需配置时抛出验证错误"""
    with pytest.raises(ValidationError):
        Settings()


def test_malformed_config_file(isolated_env):
    """测试用例 1.6: 配置文件不是合法 JSON"""
    isolated_env["config_file"].write_text("{plexHost: ", encoding="utf-8")

    with pytest.raises(ConfigFileError):
        Settings()


def test_config_file_must_be_object(isolated_env):
    isolated_env["config_file"].write_text("[]", encoding="utf-8")

    with pytest.raises(ConfigFileError):
        read_config_file(isolated_env["config_file"])


@pytest.mark.parametrize("host", ["localhost", "ftp://plex.local", ""])
def test_invalid_plex_host(host):
    with pytest.raises(ValidationError):
        Settings(PLEX_HOST=host, PLEX_TOKEN="t")


def test_invalid_port():
    with pytest.raises(ValidationError):
        Settings(PLEX_HOST="http://localhost", PLEX_TOKEN="t", PLEX_PORT=70000)


def test_empty_log_file_disables_file_logging():
    settings = Settings(PLEX_HOST="http://localhost", PLEX_TOKEN="t", LOG_FILE="")
    assert settings.LOG_FILE is None


def test_invalid_remap_rule(write_config):
    """重映射规则缺少 to 字段时验证失败"""
    write_config({
        "plexHost": "http://localhost",
        "plexToken": "t",
        "remappings": {"sonarr": [{"from": "/tv"}]},
    })

    with pytest.raises(ValidationError):
        Settings()


def test_get_settings_caches_instance(write_config):
    write_config({"plexHost": "http://localhost", "plexToken": "first"})
    first = get_settings(force_reload=True)

    write_config({"plexHost": "http://localhost", "plexToken": "second"})

    assert get_settings() is first
    assert get_settings(force_reload=True).PLEX_TOKEN == "second"
