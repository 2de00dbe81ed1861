"""
aui - Agent 团队定时部署调度器

模块概述：
    本文件是 aui 包的入口文件（__init__.py），定义了包的元信息。
    aui 负责把"定时运行某个团队"的需求落地为操作系统原生的定时任务：
    - Windows 上通过 schtasks.exe 注册计划任务
    - macOS/Linux 上通过 crontab 追加带标记的条目

    核心功能包括：
    - cron 表达式翻译（转换为 OS 调度器能理解的开始时间和重复类型）
    - 平台相关的启动脚本生成（PowerShell / Bash）
    - OS 定时任务的创建、删除与查询
    - 项目内 .aui/schedules.json 清单的持久化
"""

# 版本号，遵循语义化版本规范（主版本.次版本.修订号）
__version__ = "0.1.0"

# 项目 logo 表情符号，用于 CLI 输出等场景的品牌标识
__logo__ = "⏰"
