"""
OS 调度器命令桥 (scheduler/bridge.py)

模块职责：
    真正执行 OS 调度命令的特权执行器。网关（gateway.py）只是它的类型化门面。
      - Windows：schtasks.exe，任务放在 <task_folder>\\ 目录下
      - macOS/Linux：crontab，每个条目末尾带 "# <task_folder>:<task_name>" 标记

    命令通过 asyncio 子进程异步执行，不阻塞事件循环。
    默认不设超时：外部命令挂起时，调用方也会一直等待。

在架构中的位置：
    ScheduleManager → OsTaskGateway → TaskBridge → CommandRunner → 子进程

二开提示：
    如需支持 launchd 或 systemd timer，继承 TaskBridge 实现 create/delete/query 即可。
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

from loguru import logger

from aui.config.schema import SchedulerConfig
from aui.scheduler.scripts import escape_posix
from aui.scheduler.types import TargetPlatform


class TaskBridgeError(RuntimeError):
    """OS 调度命令执行失败。"""


class TaskNotFoundError(TaskBridgeError):
    """要删除的 OS 任务不存在。"""


@dataclass
class CommandResult:
    """子进程执行结果。"""
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    异步子进程执行器。

    以参数列表（而非 shell 字符串）启动进程，避免路径中的空格和引号被 shell 二次解释。
    """

    def __init__(self, timeout: int | None = None):
        """
        参数:
            timeout: 最大执行时间（秒），None 表示不限时
        """
        self.timeout = timeout

    async def run(self, *args: str, stdin: str | None = None) -> CommandResult:
        """
        执行命令并收集输出。

        参数:
            *args: 可执行文件和参数
            stdin: 可选的标准输入内容

        返回:
            CommandResult

        异常:
            TaskBridgeError: 可执行文件不存在、无法启动或执行超时
        """
        logger.debug(f"Running command: {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE if stdin is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TaskBridgeError(f"Failed to run {args[0]}: {e}") from e

        payload = stdin.encode("utf-8") if stdin is not None else None
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(payload), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            raise TaskBridgeError(f"{args[0]} timed out after {self.timeout} seconds")

        return CommandResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


class TaskBridge(ABC):
    """
    OS 调度器命令桥的抽象基类。

    所有实现必须提供：
      - platform: 目标平台
      - create(): 注册定时任务，失败抛出 TaskBridgeError
      - delete(): 删除定时任务，不存在时抛出 TaskNotFoundError
      - query(): 返回本系统注册的任务的原始文本
    """

    def __init__(self, runner: CommandRunner | None = None, task_folder: str = "AUI"):
        self.runner = runner or CommandRunner()
        self.task_folder = task_folder

    @property
    @abstractmethod
    def platform(self) -> TargetPlatform:
        """桥接的目标平台。"""
        pass

    @abstractmethod
    async def create(
        self, name: str, script_path: str, start_time: str, start_date: str, repeat: str
    ) -> str:
        pass

    @abstractmethod
    async def delete(self, name: str) -> str:
        pass

    @abstractmethod
    async def query(self) -> str:
        pass


class SchtasksBridge(TaskBridge):
    """Windows 任务计划程序（schtasks.exe）桥接。"""

    # 重复类型 → schtasks /SC 取值，未知类型按一次性任务处理
    SCHEDULE_TYPES = {
        "hourly": "HOURLY",
        "daily": "DAILY",
        "weekly": "WEEKLY",
        "monthly": "MONTHLY",
    }

    @property
    def platform(self) -> TargetPlatform:
        return "windows"

    def _task_path(self, name: str) -> str:
        return f"{self.task_folder}\\{name}"

    def build_create_args(
        self, name: str, script_path: str, start_time: str, start_date: str, repeat: str
    ) -> list[str]:
        """构建 schtasks /Create 参数。/F 覆盖同名任务；非 HOURLY 任务附带开始日期。"""
        sc = self.SCHEDULE_TYPES.get(repeat, "ONCE")
        args = [
            "schtasks.exe", "/Create",
            "/TN", self._task_path(name),
            "/TR", f'powershell.exe -ExecutionPolicy Bypass -File "{script_path}"',
            "/SC", sc,
            "/ST", start_time,
            "/F",
        ]
        if sc != "HOURLY" and start_date:
            args += ["/SD", start_date]
        return args

    async def create(
        self, name: str, script_path: str, start_time: str, start_date: str, repeat: str
    ) -> str:
        result = await self.runner.run(
            *self.build_create_args(name, script_path, start_time, start_date, repeat)
        )
        if not result.ok:
            raise TaskBridgeError(f"schtasks failed: {result.stderr.strip()}")
        return f"Created scheduled task: {self._task_path(name)}"

    async def delete(self, name: str) -> str:
        task_path = self._task_path(name)
        result = await self.runner.run("schtasks.exe", "/Delete", "/TN", task_path, "/F")
        if not result.ok:
            stderr = result.stderr.strip()
            if "cannot find" in stderr.lower() or "does not exist" in stderr.lower():
                raise TaskNotFoundError(f"Scheduled task not found: {task_path}")
            raise TaskBridgeError(f"schtasks delete failed: {stderr}")
        return f"Deleted scheduled task: {task_path}"

    async def query(self) -> str:
        # 目录下没有任务时 schtasks 返回非零退出码，这里不视为错误
        result = await self.runner.run(
            "schtasks.exe", "/Query", "/FO", "CSV", "/NH", "/TN", f"{self.task_folder}\\*"
        )
        return result.stdout


class CrontabBridge(TaskBridge):
    """macOS/Linux crontab 桥接。每个任务对应一行带标记注释的 crontab 条目。"""

    @property
    def platform(self) -> TargetPlatform:
        return "posix"

    def marker(self, name: str) -> str:
        return f"# {self.task_folder}:{name}"

    @staticmethod
    def cron_line(start_time: str, repeat: str) -> str:
        """
        由开始时间和重复类型还原 crontab 时间字段。

        crontab 没有一次性任务的概念，"once" 按每日执行处理。
        """
        hour, _, minute = start_time.partition(":")
        hour = str(int(hour)) if hour.isdigit() else "9"
        minute = str(int(minute)) if minute.isdigit() else "0"
        if repeat == "hourly":
            return "0 * * * *"
        if repeat == "weekly":
            return f"{minute} {hour} * * 1"
        if repeat == "monthly":
            return f"{minute} {hour} 1 * *"
        return f"{minute} {hour} * * *"

    async def _read_crontab(self) -> str:
        # 用户没有 crontab 时 `crontab -l` 返回非零退出码，按空表处理
        result = await self.runner.run("crontab", "-l")
        return result.stdout if result.ok else ""

    async def _write_crontab(self, content: str) -> None:
        result = await self.runner.run("crontab", "-", stdin=content)
        if not result.ok:
            raise TaskBridgeError(f"Failed to write crontab: {result.stderr.strip()}")

    @staticmethod
    def command(script_path: str) -> str:
        """crontab 命令字段：单引号包裹脚本路径，% 在 crontab 中表示换行，需转义为 \\%。"""
        return f"/bin/bash '{escape_posix(script_path)}'".replace("%", "\\%")

    async def create(
        self, name: str, script_path: str, start_time: str, start_date: str, repeat: str
    ) -> str:
        """注册任务。同名标记的旧条目先被移除，重复注册不会产生重复执行。"""
        marker = self.marker(name)
        existing = await self._read_crontab()
        kept = [line for line in existing.splitlines() if not line.endswith(marker)]
        entry = f"{self.cron_line(start_time, repeat)} {self.command(script_path)} {marker}"
        await self._write_crontab("\n".join([*kept, entry]) + "\n")
        return f"Created cron job: {self.task_folder}:{name}"

    async def delete(self, name: str) -> str:
        marker = self.marker(name)
        existing = await self._read_crontab()
        lines = existing.splitlines()
        kept = [line for line in lines if not line.endswith(marker)]
        if len(kept) == len(lines):
            raise TaskNotFoundError(f"Cron job not found: {self.task_folder}:{name}")
        await self._write_crontab("\n".join(kept) + "\n" if kept else "")
        return f"Deleted cron job: {self.task_folder}:{name}"

    async def query(self) -> str:
        prefix = f"# {self.task_folder}:"
        existing = await self._read_crontab()
        return "\n".join(line for line in existing.splitlines() if prefix in line)


def create_bridge(platform: TargetPlatform, config: SchedulerConfig | None = None) -> TaskBridge:
    """
    按目标平台创建命令桥。

    参数:
        platform: "windows" 或 "posix"
        config: 调度器配置（任务目录、命令超时）
    """
    cfg = config or SchedulerConfig()
    runner = CommandRunner(timeout=cfg.command_timeout)
    if platform == "windows":
        return SchtasksBridge(runner, task_folder=cfg.task_folder)
    return CrontabBridge(runner, task_folder=cfg.task_folder)
