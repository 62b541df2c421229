"""路径重映射模块

负责把 Sonarr 上报的路径转换为 Plex 视角下的路径
"""

from typing import Sequence

from ...config import RemapRule


def remap_path(path: str, rules: Sequence[RemapRule]) -> str:
    """按规则重映射路径

    每条规则都作用于原始路径（只替换第一次出现的 `from`），
    返回最后一条规则的结果；前面规则的结果会被覆盖，规则之间不叠加。

    Args:
        path: Sonarr 上报的原始路径
        rules: 该来源服务的有序重映射规则

    Returns:
        str: 重映射后的路径；没有规则或 `from` 不存在时与原路径相同
    """
    remapped = path
    for rule in rules:
        remapped = path.replace(rule.from_, rule.to, 1)
    return remapped
