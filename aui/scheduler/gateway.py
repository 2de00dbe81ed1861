"""
OS 定时任务网关 - 命令桥之上的类型化门面。

三个操作与失败语义：
- create_task：失败（TaskBridgeError）原样抛给调用方
- delete_task：从不抛出，返回 DeleteOutcome 三态结果；任务可能早已不存在
- list_tasks：只读，返回原始文本，仅供外部做漂移展示，从不用于改写清单
"""

from loguru import logger

from aui.scheduler.bridge import TaskBridge, TaskNotFoundError
from aui.scheduler.scripts import to_windows_path
from aui.scheduler.types import DeleteOutcome, TargetPlatform


class OsTaskGateway:
    """OS 定时任务网关。task_name 是与 OS 交互的唯一键。"""

    def __init__(self, bridge: TaskBridge):
        self.bridge = bridge

    @property
    def platform(self) -> TargetPlatform:
        return self.bridge.platform

    async def create_task(
        self,
        name: str,
        script_path: str,
        start_time: str,
        start_date: str,
        repeat: str,
    ) -> str:
        """
        注册 OS 定时任务。

        参数:
            name: 任务名
            script_path: 启动脚本路径（Windows 下自动转换为反斜杠路径）
            start_time: 开始时间 "HH:MM"
            start_date: 开始日期 "MM/DD/YYYY"
            repeat: 重复类型

        异常:
            TaskBridgeError: 注册失败，不做任何重试
        """
        if self.bridge.platform == "windows":
            script_path = to_windows_path(script_path)
        message = await self.bridge.create(name, script_path, start_time, start_date, repeat)
        logger.debug(message)
        return message

    async def delete_task(self, name: str) -> DeleteOutcome:
        """删除 OS 定时任务，失败只记录日志。"""
        try:
            message = await self.bridge.delete(name)
        except TaskNotFoundError as e:
            logger.info(f"OS task '{name}' already absent: {e}")
            return DeleteOutcome.NOT_FOUND
        except Exception as e:
            logger.warning(f"Failed to delete OS task '{name}': {e}")
            return DeleteOutcome.ERROR
        logger.debug(message)
        return DeleteOutcome.DELETED

    async def list_tasks(self) -> str:
        """列出本系统注册的 OS 定时任务（原始文本）。"""
        return await self.bridge.query()
