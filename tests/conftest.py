"""
aui · 共享测试夹具。

所有测试都使用临时项目目录和内存中的假命令桥，不会触碰真实的 schtasks / crontab。
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from aui.scheduler.bridge import TaskBridge, TaskBridgeError, TaskNotFoundError
from aui.scheduler.gateway import OsTaskGateway
from aui.scheduler.manager import ScheduleManager
from aui.scheduler.types import TargetPlatform


class FakeBridge(TaskBridge):
    """记录调用的内存命令桥。tasks 模拟 OS 上当前存在的任务。"""

    def __init__(self, platform: TargetPlatform = "posix") -> None:
        super().__init__()
        self._platform = platform
        self.tasks: dict[str, dict[str, str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_create = False
        self.fail_delete = False

    @property
    def platform(self) -> TargetPlatform:
        return self._platform

    async def create(
        self, name: str, script_path: str, start_time: str, start_date: str, repeat: str
    ) -> str:
        self.calls.append(("create", name))
        if self.fail_create:
            raise TaskBridgeError("schtasks failed: access denied")
        self.tasks[name] = {
            "script_path": script_path,
            "start_time": start_time,
            "start_date": start_date,
            "repeat": repeat,
        }
        return f"Created {name}"

    async def delete(self, name: str) -> str:
        self.calls.append(("delete", name))
        if self.fail_delete:
            raise TaskBridgeError("crontab process error")
        if name not in self.tasks:
            raise TaskNotFoundError(f"not found: {name}")
        del self.tasks[name]
        return f"Deleted {name}"

    async def query(self) -> str:
        self.calls.append(("query", ""))
        return "\n".join(sorted(self.tasks))


class StepClock:
    """每次调用前进 1 毫秒的假时钟。"""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.value = start

    def __call__(self) -> int:
        current = self.value
        self.value += 1
        return current


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """临时项目根目录。"""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def bridge() -> FakeBridge:
    return FakeBridge("posix")


@pytest.fixture
def manager(project: Path, bridge: FakeBridge) -> ScheduleManager:
    """POSIX 目标平台的管理器，时钟和日期固定。"""
    return ScheduleManager(
        project,
        OsTaskGateway(bridge),
        clock=StepClock(),
        today=lambda: date(2026, 3, 7),
    )
