"""
调度模块 - 把定时部署落地为 OS 原生定时任务。

本模块包含：
- ScheduleManager：调度生命周期编排（创建、启停、删除、漂移查询）
- ScheduleStore：.aui/schedules.json 清单持久化
- OsTaskGateway：OS 定时任务网关（schtasks / crontab 命令桥之上的门面）
- ScheduleRecord：调度记录数据模型
- translate_cron / generate_script：cron 翻译和启动脚本生成（纯函数）

二开提示：
- 目标平台可注入（ScheduleManager(platform=...)），在 Linux 上也能生成并测试 PowerShell 脚本
"""

from aui.scheduler.bridge import TaskBridgeError, TaskNotFoundError, create_bridge
from aui.scheduler.cron import describe_cron, translate_cron
from aui.scheduler.gateway import OsTaskGateway
from aui.scheduler.manager import ScheduleManager
from aui.scheduler.scripts import generate_script
from aui.scheduler.store import ScheduleStore
from aui.scheduler.types import CronTiming, DeleteOutcome, ScheduleRecord

__all__ = [
    "ScheduleManager",
    "ScheduleStore",
    "OsTaskGateway",
    "ScheduleRecord",
    "CronTiming",
    "DeleteOutcome",
    "TaskBridgeError",
    "TaskNotFoundError",
    "create_bridge",
    "translate_cron",
    "describe_cron",
    "generate_script",
]
