"""
工具函数集合 - aui 项目全局通用的辅助函数。

本模块提供路径管理、任务名生成、时间戳、平台探测等基础工具函数，
被调度器各模块和 CLI 引用。

函数分类：
- 路径管理：ensure_dir, get_data_path, get_aui_dir, get_schedules_dir, get_manifest_path
- 字符串工具：slugify, to_base36, generate_task_name
- 时间工具：now_ms, today_start_date
- 平台工具：detect_platform
"""

import platform
import re
import time
from datetime import date
from pathlib import Path
from typing import Literal

# 项目内的 aui 元数据目录名（<project>/.aui）
AUI_DIR_NAME = ".aui"

# 调度清单文件名和生成产物目录名
MANIFEST_FILE_NAME = "schedules.json"
SCHEDULES_DIR_NAME = "schedules"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def ensure_dir(path: Path) -> Path:
    """
    确保目录存在，不存在则递归创建。

    参数:
        path: 目标目录路径

    返回:
        创建后的目录路径（原样返回）
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """获取 aui 用户级数据目录（~/.aui）。自动创建不存在的目录。"""
    return ensure_dir(Path.home() / ".aui")


def get_aui_dir(project_path: Path | str) -> Path:
    """获取项目内的 .aui 目录路径（不创建）。"""
    return Path(project_path) / AUI_DIR_NAME


def get_schedules_dir(project_path: Path | str) -> Path:
    """获取生成脚本和 primer 文件的目录（<project>/.aui/schedules，不创建）。"""
    return get_aui_dir(project_path) / SCHEDULES_DIR_NAME


def get_manifest_path(project_path: Path | str) -> Path:
    """获取调度清单文件路径（<project>/.aui/schedules.json）。"""
    return get_aui_dir(project_path) / MANIFEST_FILE_NAME


def slugify(name: str) -> str:
    """
    将团队名转换为 OS 安全的 slug。

    规则：转小写，连续的非 [a-z0-9] 字符折叠为单个连字符，去掉首尾连字符。
    例: "Social Media!" → "social-media"

    参数:
        name: 原始名称

    返回:
        slug 字符串（可能为空）
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def to_base36(value: int) -> str:
    """将非负整数编码为小写 base36 字符串。"""
    if value < 0:
        raise ValueError(f"base36 requires a non-negative integer, got {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def generate_task_name(team_name: str, timestamp_ms: int) -> str:
    """
    生成 OS 定时任务名：slug(团队名) + "-" + base36(毫秒时间戳)。

    团队名全部由特殊字符组成时 slug 为空，此时用 "schedule" 作为前缀，
    保证任务名没有首尾连字符。
    """
    stem = slugify(team_name) or "schedule"
    return f"{stem}-{to_base36(timestamp_ms)}"


def now_ms() -> int:
    """获取当前时间的毫秒级 Unix 时间戳。"""
    return int(time.time() * 1000)


def today_start_date(today: date | None = None) -> str:
    """获取 schtasks 所需的开始日期字符串（MM/DD/YYYY）。"""
    d = today or date.today()
    return f"{d.month:02d}/{d.day:02d}/{d.year:04d}"


def detect_platform() -> Literal["windows", "posix"]:
    """探测当前宿主平台：Windows 返回 "windows"，其余（macOS/Linux）返回 "posix"。"""
    return "windows" if platform.system() == "Windows" else "posix"
