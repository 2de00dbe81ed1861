"""调度管理器 - 编排 cron 翻译、脚本生成、OS 任务注册和清单持久化。

本模块实现调度记录的完整生命周期：
- create：分配任务名 → 写 primer → 生成并写启动脚本 → 注册 OS 任务 → 追加记录
- toggle：enabled ↔ disabled，同步删除/重建 OS 任务
- delete：尽力删除 OS 任务，然后无条件删除记录
- list_os_tasks：只读透传，供外部对比清单与 OS 实际状态

状态机：
    create ──► enabled ──toggle──► disabled ──toggle──► enabled
                  │                    │
                  └──────delete────────┴──► (记录移除)

失败语义：
- OS 任务删除失败（禁用或删除时）：记录日志，流程继续
- OS 任务创建失败（创建或重新启用时）：异常原样抛出；
  toggle 不修改清单，create 已写出的脚本/primer 文件保留为孤儿文件，不做回滚
- 没有任何自动重试，重试策略由调用方决定

并发：
    清单的"读-改-写"没有加锁，调用方必须按项目串行调用 create/toggle/delete。

二开提示：
- 目标平台、时钟、日期都可注入，便于在任意宿主上确定性地测试两个平台分支
"""

from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Callable

from loguru import logger

from aui.config.schema import SchedulerConfig
from aui.scheduler.cron import translate_cron
from aui.scheduler.gateway import OsTaskGateway
from aui.scheduler.scripts import generate_script, write_script
from aui.scheduler.store import ScheduleStore
from aui.scheduler.types import DeleteOutcome, ScheduleRecord, TargetPlatform
from aui.utils.helpers import (
    ensure_dir,
    generate_task_name,
    get_schedules_dir,
    now_ms,
    today_start_date,
)


class ScheduleManager:
    """
    单个项目的调度管理器。

    .aui/ 目录（清单 + 生成的脚本和 primer）只由本类写入。
    """

    def __init__(
        self,
        project_path: Path | str,
        gateway: OsTaskGateway,
        config: SchedulerConfig | None = None,
        platform: TargetPlatform | None = None,
        clock: Callable[[], int] = now_ms,
        today: Callable[[], date] = date.today,
    ):
        """
        初始化调度管理器。

        参数:
            project_path: 项目根目录
            gateway: OS 定时任务网关
            config: 调度器配置（Agent 命令、会话标记变量等）
            platform: 目标平台，None 时跟随网关的命令桥
            clock: 毫秒时间戳来源（用于任务名和 createdAt）
            today: 当天日期来源（用于 OS 任务的开始日期）
        """
        self.project_path = Path(project_path)
        self.gateway = gateway
        self.config = config or SchedulerConfig()
        self.store = ScheduleStore(self.project_path)
        self._platform = platform
        self._clock = clock
        self._today = today

    def _resolve_platform(self) -> TargetPlatform:
        """每次操作开始时解析一次目标平台。"""
        return self._platform or self.gateway.platform

    def _allocate_task_name(self, team_name: str, timestamp_ms: int) -> str:
        """
        生成任务名，与清单中已有的任务名冲突时追加递增序号。

        同一毫秒内为同名团队创建两次会得到相同的 base36 后缀。
        """
        base = generate_task_name(team_name, timestamp_ms)
        taken = {r.task_name for r in self.store.load()}
        name, counter = base, 2
        while name in taken:
            name = f"{base}-{counter}"
            counter += 1
        return name

    def list_schedules(self) -> list[ScheduleRecord]:
        """读取清单中的全部记录。"""
        return self.store.load()

    async def create(
        self,
        team_id: str,
        team_name: str,
        cron: str,
        repeat: str | None,
        primer_content: str,
        prompt: str,
        deploy_script_path: str | None = None,
    ) -> ScheduleRecord:
        """
        创建定时部署。

        参数:
            team_id: 被调度团队的 ID
            team_name: 团队名（用于生成任务名和脚本提示）
            cron: 5 字段 cron 表达式
            repeat: 重复类型；为空时使用 cron 翻译得到的分类
            primer_content: primer 文档内容（pipeline 模式下也会写出）
            prompt: primer 模式下的自由文本
            deploy_script_path: 部署脚本路径，提供时进入 pipeline 模式

        返回:
            新创建的 ScheduleRecord（enabled=True）

        异常:
            TaskBridgeError: OS 任务注册失败，此时清单不变
        """
        platform = self._resolve_platform()
        schedules_dir = ensure_dir(get_schedules_dir(self.project_path))

        created_at = self._clock()
        task_name = self._allocate_task_name(team_name, created_at)
        timing = translate_cron(cron)
        repeat = repeat or timing.repeat
        start_date = today_start_date(self._today())

        primer_path = schedules_dir / f"{task_name}-primer.md"
        primer_path.write_text(primer_content, encoding="utf-8")

        artifact = generate_script(
            platform,
            team_name,
            str(primer_path),
            deploy_script_path,
            agent_command=self.config.agent_command,
            agent_flags=self.config.agent_flags,
            session_env_var=self.config.session_env_var,
        )
        script_path = write_script(schedules_dir / f"{task_name}{artifact.suffix}", artifact)

        await self.gateway.create_task(
            task_name, str(script_path), timing.start_time, start_date, repeat
        )

        record = ScheduleRecord(
            id=task_name,
            team_id=team_id,
            team_name=team_name,
            task_name=task_name,
            cron=cron,
            repeat=repeat,
            prompt=prompt,
            script_path=str(script_path),
            primer_path=str(primer_path),
            enabled=True,
            created_at=created_at,
        )

        records = self.store.load()
        records.append(record)
        self.store.save(records)

        mode = "pipeline" if deploy_script_path else "primer"
        logger.info(f"Schedule: created '{task_name}' for team '{team_name}' ({mode}, {repeat} at {timing.start_time})")
        return record

    async def toggle(self, schedule_id: str) -> list[ScheduleRecord]:
        """
        切换启用状态。

        - enabled → disabled：删除 OS 任务（失败忽略），保存
        - disabled → enabled：按存储的 cron 重新推导开始时间并注册 OS 任务，
          注册失败时异常抛出且记录保持 disabled

        ID 不存在时不做任何修改，原样返回清单。

        返回:
            更新后的完整记录列表
        """
        records = self.store.load()
        index = next((i for i, r in enumerate(records) if r.id == schedule_id), None)
        if index is None:
            logger.debug(f"Schedule: toggle ignored, '{schedule_id}' not found")
            return records

        record = records[index]
        if record.enabled:
            await self.gateway.delete_task(record.task_name)
        else:
            timing = translate_cron(record.cron)
            await self.gateway.create_task(
                record.task_name,
                record.script_path,
                timing.start_time,
                today_start_date(self._today()),
                record.repeat,
            )

        records[index] = replace(record, enabled=not record.enabled)
        self.store.save(records)

        status = "enabled" if records[index].enabled else "disabled"
        logger.info(f"Schedule: '{record.task_name}' {status}")
        return records

    async def delete(self, schedule_id: str) -> DeleteOutcome | None:
        """
        删除定时部署：尽力删除 OS 任务，再无条件移除记录。

        OS 任务已被用户手动删除的记录也能被清理。

        返回:
            OS 删除结果；ID 不存在时返回 None 且清单不变
        """
        records = self.store.load()
        record = next((r for r in records if r.id == schedule_id), None)
        if record is None:
            logger.debug(f"Schedule: delete ignored, '{schedule_id}' not found")
            return None

        outcome = await self.gateway.delete_task(record.task_name)
        self.store.save([r for r in records if r.id != schedule_id])

        logger.info(f"Schedule: deleted '{record.task_name}' (os task: {outcome.value})")
        return outcome

    async def list_os_tasks(self) -> str:
        """查询 OS 上实际存在的任务（只读，不修改清单）。"""
        return await self.gateway.list_tasks()
