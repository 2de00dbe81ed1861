"""
启动脚本生成器 - 为定时任务生成平台相关的可执行脚本。

两种模式：
- pipeline 模式（提供了部署脚本路径）：清除会话标记后直接执行部署脚本
- primer 模式（没有部署脚本）：清除会话标记后以非交互方式启动 Agent，
  让它读取固定路径下的 primer 文档并严格按照其中的指令执行

平台差异：
- Windows：PowerShell 脚本，CRLF 换行，反斜杠路径，单引号内 ' 写成 ''，文件带 UTF-8 BOM
- POSIX：#!/bin/bash 脚本，LF 换行，正斜杠路径，单引号内 ' 写成 '\\''

所有插入脚本的字符串（团队名、路径）都经过目标 shell 的单引号转义，
团队名里的撇号或特殊字符不会破坏脚本结构。

本模块是纯函数，不做任何 I/O（write_script 除外）。
"""

import os
from pathlib import Path
from typing import Callable

from aui.scheduler.types import ScriptArtifact, TargetPlatform

PRIMER_INSTRUCTION = (
    "Read the deployment primer at '{path}' using the Read tool and follow "
    "ALL instructions in it exactly. Start immediately."
)


def escape_powershell(value: str) -> str:
    """PowerShell 单引号字符串转义：' → ''"""
    return value.replace("'", "''")


def escape_posix(value: str) -> str:
    """POSIX shell 单引号字符串转义：' → '\\''（闭合、转义、重新打开）"""
    return value.replace("'", "'\\''")


def to_windows_path(path: str) -> str:
    """正斜杠路径转换为 Windows 反斜杠路径。"""
    return path.replace("/", "\\")


def to_posix_path(path: str) -> str:
    """反斜杠路径转换为 POSIX 正斜杠路径。"""
    return path.replace("\\", "/")


def _agent_invocation(
    agent_command: str, agent_flags: list[str], instruction: str, escape: Callable[[str], str]
) -> str:
    """拼接 Agent 调用命令行。instruction 整体作为一个单引号参数，按目标 shell 的规则转义。"""
    parts = [agent_command, *agent_flags]
    return " ".join(parts) + f" '{escape(instruction)}'"


def _powershell_script(
    team_name: str,
    primer_path: str,
    deploy_script_path: str | None,
    agent_command: str,
    agent_flags: list[str],
    session_env_var: str,
) -> str:
    name = escape_powershell(team_name)
    lines = [f"Remove-Item Env:{session_env_var} -ErrorAction SilentlyContinue"]

    if deploy_script_path:
        deploy = escape_powershell(to_windows_path(deploy_script_path))
        lines += [
            f"Write-Host 'Scheduled pipeline deployment: {name}' -ForegroundColor Cyan",
            "Write-Host 'Running deploy script...' -ForegroundColor Green",
            f"& '{deploy}'",
        ]
    else:
        windows_primer = to_windows_path(primer_path)
        primer = escape_powershell(windows_primer)
        instruction = PRIMER_INSTRUCTION.format(path=windows_primer)
        lines += [
            f"Write-Host 'Scheduled deployment: {name}' -ForegroundColor Cyan",
            f"Write-Host 'Primer: {primer}' -ForegroundColor Yellow",
            "Write-Host 'Starting agent...' -ForegroundColor Green",
            "try {",
            f"  {_agent_invocation(agent_command, agent_flags, instruction, escape_powershell)}",
            "} catch {",
            '  Write-Host "Error: $_" -ForegroundColor Red',
            "}",
        ]
    return "\r\n".join(lines)


def _posix_script(
    team_name: str,
    primer_path: str,
    deploy_script_path: str | None,
    agent_command: str,
    agent_flags: list[str],
    session_env_var: str,
) -> str:
    name = escape_posix(team_name)
    lines = ["#!/bin/bash", f"unset {session_env_var}"]

    if deploy_script_path:
        deploy = escape_posix(to_posix_path(deploy_script_path))
        lines += [
            f"echo 'Scheduled pipeline deployment: {name}'",
            f"bash '{deploy}'",
        ]
    else:
        instruction = PRIMER_INSTRUCTION.format(path=to_posix_path(primer_path))
        lines += [
            f"echo 'Scheduled deployment: {name}'",
            _agent_invocation(agent_command, agent_flags, instruction, escape_posix),
        ]
    return "\n".join(lines) + "\n"


def generate_script(
    platform: TargetPlatform,
    team_name: str,
    primer_path: str,
    deploy_script_path: str | None = None,
    *,
    agent_command: str = "claude",
    agent_flags: list[str] | None = None,
    session_env_var: str = "CLAUDECODE",
) -> ScriptArtifact:
    """
    生成启动脚本。

    参数:
        platform: 目标平台（"windows" / "posix"）
        team_name: 团队名（仅用于脚本中的提示输出）
        primer_path: primer 文档路径（primer 模式下交给 Agent 读取）
        deploy_script_path: 部署脚本路径，提供时进入 pipeline 模式
        agent_command: Agent 可执行文件
        agent_flags: Agent 启动参数，默认跳过权限确认
        session_env_var: 需要清除的会话标记环境变量

    返回:
        ScriptArtifact（脚本文本、文件后缀、写出编码）
    """
    flags = ["--dangerously-skip-permissions"] if agent_flags is None else agent_flags
    if platform == "windows":
        text = _powershell_script(
            team_name, primer_path, deploy_script_path, agent_command, flags, session_env_var
        )
        return ScriptArtifact(text=text, suffix=".ps1", encoding="utf-8-sig")
    if platform == "posix":
        text = _posix_script(
            team_name, primer_path, deploy_script_path, agent_command, flags, session_env_var
        )
        return ScriptArtifact(text=text, suffix=".sh", encoding="utf-8")
    raise ValueError(f"Unsupported target platform: {platform!r}")


def write_script(path: Path, artifact: ScriptArtifact) -> Path:
    """
    写出脚本文件。换行符按原样写出（newline=""），POSIX 脚本额外加上可执行权限。

    返回:
        写出的文件路径
    """
    with open(path, "w", encoding=artifact.encoding, newline="") as f:
        f.write(artifact.text)
    if artifact.suffix == ".sh" and os.name == "posix":
        path.chmod(path.stat().st_mode | 0o111)
    return path
