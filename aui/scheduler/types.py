"""
调度类型定义 - 定义调度子系统的所有数据模型。

本模块定义了调度子系统的核心数据结构：
- TargetPlatform：目标平台（windows / posix）
- RepeatClass：重复类型（hourly / daily / weekly / monthly，以及兜底的 once）
- CronTiming：cron 翻译结果（开始时间 + 重复类型）
- ScriptArtifact：生成的启动脚本（文本 + 后缀 + 编码）
- DeleteOutcome：删除 OS 任务的三态结果
- ScheduleRecord：调度清单中的一条记录

ScheduleRecord 在磁盘上使用 camelCase 键名（teamId、scriptPath 等），
与原前端写出的 .aui/schedules.json 保持兼容。
"""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Literal

from aui.config.loader import camel_to_snake, snake_to_camel

TargetPlatform = Literal["windows", "posix"]

RepeatClass = Literal["hourly", "daily", "weekly", "monthly", "once"]


@dataclass(frozen=True)
class CronTiming:
    """cron 表达式翻译结果。"""
    start_time: str       # "HH:MM"
    repeat: RepeatClass   # OS 调度器的重复类型


@dataclass(frozen=True)
class ScriptArtifact:
    """
    生成的启动脚本。

    Windows 脚本使用 utf-8-sig 编码写出（带 BOM），PowerShell 才能正确识别非 ASCII 字符。
    """
    text: str
    suffix: Literal[".ps1", ".sh"]
    encoding: str = "utf-8"


class DeleteOutcome(str, Enum):
    """删除 OS 定时任务的结果。NOT_FOUND 和 ERROR 都不会中断调用方的流程。"""
    DELETED = "deleted"
    NOT_FOUND = "not-found"
    ERROR = "error"


@dataclass
class ScheduleRecord:
    """
    调度清单中的一条记录，对应一个用户可见的定时任务。

    id 与 task_name 取值相同，task_name 是与 OS 调度器交互的唯一键。
    enabled 表示本系统"认为" OS 上当前存在对应任务，OS 侧可能已被用户手动删除。
    """
    id: str
    team_id: str
    team_name: str
    task_name: str
    cron: str
    repeat: str
    prompt: str
    script_path: str
    primer_path: str
    enabled: bool
    created_at: int  # 毫秒时间戳

    def to_dict(self) -> dict[str, Any]:
        """序列化为清单文件使用的 camelCase 字典。"""
        return {snake_to_camel(k): v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Any) -> "ScheduleRecord":
        """
        从清单文件的 camelCase 字典解析记录，逐字段校验类型。

        异常:
            ValueError: 缺少字段或字段类型不符
        """
        if not isinstance(data, dict):
            raise ValueError(f"schedule entry must be an object, got {type(data).__name__}")
        values = {camel_to_snake(k): v for k, v in data.items()}
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in values:
                raise ValueError(f"schedule entry is missing '{snake_to_camel(f.name)}'")
            value = values[f.name]
            if f.name == "enabled":
                ok = isinstance(value, bool)
            elif f.name == "created_at":
                # bool 是 int 的子类，需要单独排除；浮点时间戳按整数截断
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
                value = int(value) if ok else value
            else:
                ok = isinstance(value, str)
            if not ok:
                raise ValueError(
                    f"schedule entry field '{snake_to_camel(f.name)}' has invalid value {value!r}"
                )
            kwargs[f.name] = value
        return cls(**kwargs)
