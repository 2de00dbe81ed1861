"""
配置数据模型定义 (config/schema.py)
=================================
本模块使用 Pydantic 定义 aui 的完整配置结构。
所有配置项都有默认值，用户只需在 config.json 中覆盖需要修改的部分。

整体配置结构（树形）：
Config (根配置)
└── scheduler     - 调度器配置（Agent 可执行文件、会话标记变量、任务目录、目标平台等）

对于 Java 开发者：
- Pydantic 的 BaseModel 类似于 Java 的 POJO/Record，但自带字段验证和默认值
- BaseSettings 类似于 Spring 的 @ConfigurationProperties，额外支持从环境变量读取配置
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class SchedulerConfig(BaseModel):
    """
    调度器配置。

    控制生成脚本的内容（调用哪个 Agent、清除哪个环境变量）
    以及注册到 OS 调度器时使用的任务目录/标记前缀。
    """
    agent_command: str = "claude"  # primer 模式下调用的 Agent 可执行文件
    agent_flags: list[str] = Field(
        default_factory=lambda: ["--dangerously-skip-permissions"]
    )  # 非交互、跳过权限确认的启动参数
    session_env_var: str = "CLAUDECODE"  # 标记"正处于 Agent 会话中"的环境变量，脚本启动时清除
    task_folder: str = "AUI"  # schtasks 任务目录 / crontab 条目标记前缀
    platform: Literal["auto", "windows", "posix"] = "auto"  # 目标平台，auto 表示探测宿主
    command_timeout: int | None = None  # 调用 schtasks/crontab 的超时秒数，None 表示不限时


class Config(BaseSettings):
    """
    aui 根配置类。

    继承自 Pydantic 的 BaseSettings，除了支持从 JSON 文件加载外，
    还支持从环境变量读取配置：
    - 环境变量前缀: AUI_
    - 嵌套分隔符: __ (双下划线)
    - 示例: AUI_SCHEDULER__AGENT_COMMAND=/usr/local/bin/claude 可覆盖 scheduler.agent_command
    """
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)  # 调度器配置

    def resolve_platform(self) -> Literal["windows", "posix"]:
        """解析目标平台：显式配置优先，auto 时探测宿主平台。"""
        if self.scheduler.platform != "auto":
            return self.scheduler.platform
        from aui.utils.helpers import detect_platform
        return detect_platform()

    # Pydantic Settings 配置：支持 AUI_ 前缀的环境变量，嵌套用 __ 分隔
    model_config = ConfigDict(
        env_prefix="AUI_",
        env_nested_delimiter="__"
    )
