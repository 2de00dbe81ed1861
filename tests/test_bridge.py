"""OS 调度器命令桥测试：用记录参数的假执行器替代真实子进程。"""

import pytest

from aui.config.schema import SchedulerConfig
from aui.scheduler.bridge import (
    CommandResult,
    CommandRunner,
    CrontabBridge,
    SchtasksBridge,
    TaskBridgeError,
    TaskNotFoundError,
    create_bridge,
)


class FakeRunner(CommandRunner):
    """按顺序返回预设结果，并记录每次调用的参数和标准输入。"""

    def __init__(self, *results: CommandResult) -> None:
        super().__init__()
        self.results = list(results)
        self.calls: list[tuple[tuple[str, ...], str | None]] = []

    async def run(self, *args: str, stdin: str | None = None) -> CommandResult:
        self.calls.append((args, stdin))
        if self.results:
            return self.results.pop(0)
        return CommandResult(0, "", "")


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(0, stdout, "")


def fail(stderr: str) -> CommandResult:
    return CommandResult(1, "", stderr)


class TestSchtasksBridge:

    def test_create_args_daily(self) -> None:
        args = SchtasksBridge(FakeRunner()).build_create_args(
            "team-x", "C:\\p\\team-x.ps1", "09:30", "03/07/2026", "daily"
        )
        assert args == [
            "schtasks.exe", "/Create",
            "/TN", "AUI\\team-x",
            "/TR", 'powershell.exe -ExecutionPolicy Bypass -File "C:\\p\\team-x.ps1"',
            "/SC", "DAILY",
            "/ST", "09:30",
            "/F",
            "/SD", "03/07/2026",
        ]

    def test_create_args_hourly_has_no_start_date(self) -> None:
        args = SchtasksBridge(FakeRunner()).build_create_args(
            "t", "C:\\t.ps1", "00:00", "03/07/2026", "hourly"
        )
        assert "/SD" not in args
        assert args[args.index("/SC") + 1] == "HOURLY"

    def test_unknown_repeat_runs_once(self) -> None:
        args = SchtasksBridge(FakeRunner()).build_create_args(
            "t", "C:\\t.ps1", "09:00", "03/07/2026", "once"
        )
        assert args[args.index("/SC") + 1] == "ONCE"

    @pytest.mark.asyncio
    async def test_create_failure(self) -> None:
        bridge = SchtasksBridge(FakeRunner(fail("ERROR: Access is denied.")))
        with pytest.raises(TaskBridgeError, match="Access is denied"):
            await bridge.create("t", "C:\\t.ps1", "09:00", "03/07/2026", "daily")

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        runner = FakeRunner(ok("SUCCESS"))
        await SchtasksBridge(runner).delete("t")
        assert runner.calls[0][0] == ("schtasks.exe", "/Delete", "/TN", "AUI\\t", "/F")

    @pytest.mark.asyncio
    async def test_delete_missing(self) -> None:
        runner = FakeRunner(fail("ERROR: The system cannot find the file specified."))
        with pytest.raises(TaskNotFoundError):
            await SchtasksBridge(runner).delete("t")

    @pytest.mark.asyncio
    async def test_delete_other_failure(self) -> None:
        runner = FakeRunner(fail("ERROR: Access is denied."))
        with pytest.raises(TaskBridgeError) as info:
            await SchtasksBridge(runner).delete("t")
        assert not isinstance(info.value, TaskNotFoundError)

    @pytest.mark.asyncio
    async def test_query(self) -> None:
        runner = FakeRunner(ok('"\\AUI\\t","N/A","Ready"\r\n'))
        output = await SchtasksBridge(runner, task_folder="Team").query()
        assert output.startswith('"\\AUI\\t"')
        assert runner.calls[0][0][-1] == "Team\\*"


class TestCrontabBridge:

    @pytest.mark.parametrize(
        "start_time, repeat, expected",
        [
            ("09:30", "daily", "30 9 * * *"),
            ("00:00", "hourly", "0 * * * *"),
            ("14:05", "weekly", "5 14 * * 1"),
            ("08:00", "monthly", "0 8 1 * *"),
            ("07:15", "once", "15 7 * * *"),
        ],
    )
    def test_cron_line(self, start_time: str, repeat: str, expected: str) -> None:
        assert CrontabBridge.cron_line(start_time, repeat) == expected

    @pytest.mark.asyncio
    async def test_create_appends_marked_entry(self) -> None:
        runner = FakeRunner(ok("MAILTO=me\n"), ok())
        await CrontabBridge(runner).create("team-x", "/p/it's/team-x.sh", "09:00", "03/07/2026", "daily")

        args, stdin = runner.calls[1]
        assert args == ("crontab", "-")
        assert stdin == "MAILTO=me\n0 9 * * * /bin/bash '/p/it'\\''s/team-x.sh' # AUI:team-x\n"

    @pytest.mark.asyncio
    async def test_create_without_existing_crontab(self) -> None:
        runner = FakeRunner(fail("no crontab for user"), ok())
        await CrontabBridge(runner).create("t", "/t.sh", "00:00", "", "hourly")
        assert runner.calls[1][1] == "0 * * * * /bin/bash '/t.sh' # AUI:t\n"

    @pytest.mark.asyncio
    async def test_create_replaces_existing_entry(self) -> None:
        table = (
            "MAILTO=me\n"
            "0 9 * * * /bin/bash '/p/s.sh' # AUI:team-abc\n"
            "0 8 * * * /bin/bash '/p/o.sh' # AUI:other\n"
        )
        runner = FakeRunner(ok(table), ok())
        await CrontabBridge(runner).create("team-abc", "/p/s.sh", "10:15", "", "daily")

        written = runner.calls[1][1]
        assert written == (
            "MAILTO=me\n"
            "0 8 * * * /bin/bash '/p/o.sh' # AUI:other\n"
            "15 10 * * * /bin/bash '/p/s.sh' # AUI:team-abc\n"
        )
        assert written.count("# AUI:team-abc") == 1

    def test_percent_escaped_in_command(self) -> None:
        assert CrontabBridge.command("/p/100%/s.sh") == "/bin/bash '/p/100\\%/s.sh'"

    @pytest.mark.asyncio
    async def test_create_write_failure(self) -> None:
        runner = FakeRunner(ok(), fail("crontab: permission denied"))
        with pytest.raises(TaskBridgeError):
            await CrontabBridge(runner).create("t", "/t.sh", "09:00", "", "daily")

    @pytest.mark.asyncio
    async def test_delete_removes_only_marked_line(self) -> None:
        table = "MAILTO=me\n0 9 * * * /bin/bash '/a.sh' # AUI:a\n0 9 * * * /bin/bash '/b.sh' # AUI:b\n"
        runner = FakeRunner(ok(table), ok())
        await CrontabBridge(runner).delete("a")
        assert runner.calls[1][1] == "MAILTO=me\n0 9 * * * /bin/bash '/b.sh' # AUI:b\n"

    @pytest.mark.asyncio
    async def test_delete_last_entry_writes_empty_table(self) -> None:
        runner = FakeRunner(ok("0 9 * * * /bin/bash '/a.sh' # AUI:a\n"), ok())
        await CrontabBridge(runner).delete("a")
        assert runner.calls[1][1] == ""

    @pytest.mark.asyncio
    async def test_delete_missing(self) -> None:
        runner = FakeRunner(ok("0 9 * * * /bin/bash '/a.sh' # AUI:a\n"))
        with pytest.raises(TaskNotFoundError):
            await CrontabBridge(runner).delete("ghost")
        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_query_filters_marked_lines(self) -> None:
        table = "MAILTO=me\n0 9 * * * /bin/bash '/a.sh' # AUI:a\n@reboot /other\n"
        output = await CrontabBridge(FakeRunner(ok(table))).query()
        assert output == "0 9 * * * /bin/bash '/a.sh' # AUI:a"


class TestCreateBridge:

    def test_windows(self) -> None:
        bridge = create_bridge("windows", SchedulerConfig(task_folder="Ops", command_timeout=30))
        assert isinstance(bridge, SchtasksBridge)
        assert bridge.task_folder == "Ops"
        assert bridge.runner.timeout == 30

    def test_posix_defaults(self) -> None:
        bridge = create_bridge("posix")
        assert isinstance(bridge, CrontabBridge)
        assert bridge.platform == "posix"
        assert bridge.runner.timeout is None


@pytest.mark.asyncio
async def test_runner_missing_executable() -> None:
    with pytest.raises(TaskBridgeError):
        await CommandRunner().run("aui-definitely-missing-executable")
