"""
工具函数模块 - 提供 aui 项目全局通用的辅助函数。

本模块包含：
- ensure_dir：确保目录存在
- get_data_path：获取用户级数据路径
- generate_task_name：生成 OS 定时任务名
- detect_platform：探测宿主平台
"""

from aui.utils.helpers import detect_platform, ensure_dir, generate_task_name, get_data_path

__all__ = ["ensure_dir", "get_data_path", "generate_task_name", "detect_platform"]
