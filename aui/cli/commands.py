"""
CLI 命令模块 - aui 的所有命令行命令定义。

本模块使用 Typer 框架定义 aui 的 CLI 命令体系：
- schedule list：列出项目中的定时部署
- schedule add：创建定时部署（primer 模式或 pipeline 模式）
- schedule toggle：启用/禁用定时部署
- schedule remove：删除定时部署
- schedule os-tasks：查看 OS 上实际注册的任务（用于对比漂移）
- status：查看配置、目标平台和清单状态

技术栈：
- Typer：CLI 框架（基于 Click，支持类型注解自动生成帮助文档）
- Rich：终端美化输出（表格、颜色）
"""

import asyncio
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from aui import __logo__, __version__

app = typer.Typer(
    name="aui",
    help=f"{__logo__} aui - Scheduled team deployments",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    """版本号回调：当用户传入 --version/-v 参数时，打印版本号并退出。"""
    if value:
        console.print(f"{__logo__} aui v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """aui CLI 根命令回调。处理全局选项（如 --version）。"""
    pass


def _set_logging(enabled: bool) -> None:
    """运行日志默认关闭，--logs 时打开。"""
    if enabled:
        logger.enable("aui")
    else:
        logger.disable("aui")


def _make_manager(project: Path):
    """按配置组装 命令桥 → 网关 → 管理器。"""
    from aui.config.loader import load_config
    from aui.scheduler.bridge import create_bridge
    from aui.scheduler.gateway import OsTaskGateway
    from aui.scheduler.manager import ScheduleManager

    config = load_config()
    platform = config.resolve_platform()
    gateway = OsTaskGateway(create_bridge(platform, config.scheduler))
    return ScheduleManager(project, gateway, config=config.scheduler, platform=platform)


# ============================================================================
# Schedule Commands
# ============================================================================

schedule_app = typer.Typer(help="Manage scheduled deployments")
app.add_typer(schedule_app, name="schedule")

PROJECT_OPTION = typer.Option(Path("."), "--project", "-p", help="Project directory")
LOGS_OPTION = typer.Option(False, "--logs/--no-logs", help="Show runtime logs")


@schedule_app.command("list")
def schedule_list(
    project: Path = PROJECT_OPTION,
    logs: bool = LOGS_OPTION,
):
    """
    列出项目中的定时部署。

    以表格形式展示 ID、团队、调度规则、重复类型和状态。
    """
    from aui.scheduler.cron import describe_cron, next_run

    _set_logging(logs)
    records = _make_manager(project).list_schedules()

    if not records:
        console.print("No scheduled deployments.")
        return

    table = Table(title="Scheduled Deployments")
    table.add_column("ID", style="cyan")
    table.add_column("Team")
    table.add_column("Schedule")
    table.add_column("Repeat")
    table.add_column("Status")
    table.add_column("Next Run")

    for record in records:
        description = describe_cron(record.cron)
        sched = record.cron if description == record.cron else f"{description} ({record.cron})"
        status = "[green]enabled[/green]" if record.enabled else "[dim]disabled[/dim]"
        upcoming = next_run(record.cron) if record.enabled else None
        next_time = upcoming.strftime("%Y-%m-%d %H:%M") if upcoming else ""
        table.add_row(record.id, record.team_name, sched, record.repeat, status, next_time)

    console.print(table)


@schedule_app.command("add")
def schedule_add(
    team_id: str = typer.Option(..., "--team-id", help="Team node ID"),
    team_name: str = typer.Option(..., "--team-name", "-n", help="Team name"),
    cron_expr: str = typer.Option(..., "--cron", "-c", help="Cron expression (e.g. '0 9 * * *')"),
    repeat: str = typer.Option(None, "--repeat", "-r", help="Override repeat type (hourly/daily/weekly/monthly)"),
    prompt: str = typer.Option("", "--prompt", "-m", help="Prompt stored with the schedule"),
    primer: Path = typer.Option(None, "--primer", help="Primer markdown file"),
    deploy_script: str = typer.Option(None, "--deploy-script", "-d", help="Run this deploy script instead of the agent"),
    project: Path = PROJECT_OPTION,
    logs: bool = LOGS_OPTION,
):
    """
    创建定时部署并注册到 OS 调度器。

    未提供 --deploy-script 时为 primer 模式：脚本启动 Agent 读取 primer；
    提供时为 pipeline 模式：脚本直接执行部署脚本。
    """
    from aui.scheduler.bridge import TaskBridgeError
    from aui.scheduler.cron import is_valid_cron

    _set_logging(logs)
    if not is_valid_cron(cron_expr):
        console.print(f"[red]Error: invalid cron expression '{cron_expr}'[/red]")
        raise typer.Exit(1)

    primer_content = primer.read_text(encoding="utf-8") if primer else prompt
    manager = _make_manager(project)

    try:
        record = asyncio.run(
            manager.create(
                team_id=team_id,
                team_name=team_name,
                cron=cron_expr,
                repeat=repeat,
                primer_content=primer_content,
                prompt=prompt,
                deploy_script_path=deploy_script,
            )
        )
    except TaskBridgeError as e:
        console.print(f"[red]Failed to register OS task: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Added schedule '{record.team_name}' ({record.id})")


@schedule_app.command("toggle")
def schedule_toggle(
    schedule_id: str = typer.Argument(..., help="Schedule ID"),
    project: Path = PROJECT_OPTION,
    logs: bool = LOGS_OPTION,
):
    """启用或禁用指定的定时部署。"""
    from aui.scheduler.bridge import TaskBridgeError

    _set_logging(logs)
    manager = _make_manager(project)

    try:
        records = asyncio.run(manager.toggle(schedule_id))
    except TaskBridgeError as e:
        console.print(f"[red]Failed to re-enable schedule {schedule_id}: {e}[/red]")
        raise typer.Exit(1)

    record = next((r for r in records if r.id == schedule_id), None)
    if record is None:
        console.print(f"[red]Schedule {schedule_id} not found[/red]")
        raise typer.Exit(1)

    status = "enabled" if record.enabled else "disabled"
    console.print(f"[green]✓[/green] Schedule '{record.team_name}' {status}")


@schedule_app.command("remove")
def schedule_remove(
    schedule_id: str = typer.Argument(..., help="Schedule ID to remove"),
    project: Path = PROJECT_OPTION,
    logs: bool = LOGS_OPTION,
):
    """删除指定的定时部署（OS 任务删除失败不影响记录删除）。"""
    from aui.scheduler.types import DeleteOutcome

    _set_logging(logs)
    outcome = asyncio.run(_make_manager(project).delete(schedule_id))

    if outcome is None:
        console.print(f"[red]Schedule {schedule_id} not found[/red]")
        return

    console.print(f"[green]✓[/green] Removed schedule {schedule_id}")
    if outcome is DeleteOutcome.ERROR:
        console.print("[yellow]Warning: OS task could not be deleted, remove it manually[/yellow]")


@schedule_app.command("os-tasks")
def schedule_os_tasks(
    project: Path = PROJECT_OPTION,
    logs: bool = LOGS_OPTION,
):
    """显示 OS 调度器中实际注册的 aui 任务。"""
    _set_logging(logs)
    output = asyncio.run(_make_manager(project).list_os_tasks())
    console.print(output.strip() or "No OS tasks registered.")


# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status(
    project: Path = PROJECT_OPTION,
):
    """
    显示 aui 状态。

    展示内容：
    - 配置文件路径和状态
    - 目标平台和对应的 OS 调度器
    - 项目清单路径和记录数
    """
    from aui.config.loader import get_config_path, load_config
    from aui.scheduler.store import ScheduleStore

    config_path = get_config_path()
    config = load_config()
    platform = config.resolve_platform()
    store = ScheduleStore(project)

    console.print(f"{__logo__} aui Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Platform: {platform} ({'schtasks' if platform == 'windows' else 'crontab'})")
    console.print(f"Agent: {config.scheduler.agent_command}")

    if store.path.exists():
        records = store.load()
        enabled = sum(1 for r in records if r.enabled)
        console.print(f"Manifest: {store.path} [green]✓[/green] ({len(records)} schedules, {enabled} enabled)")
    else:
        console.print(f"Manifest: {store.path} [dim]not created[/dim]")


if __name__ == "__main__":
    app()
