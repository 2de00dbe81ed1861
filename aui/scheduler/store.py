"""
调度清单存储 - <project>/.aui/schedules.json 的整文档读写。

清单是一个 JSON 数组，每个元素是一条 camelCase 的 ScheduleRecord。
读写都是整文档：没有局部合并，没有加锁，单进程内后写者胜出。

读取是宽容的：
- 文件不存在 → 空列表
- JSON 损坏或顶层不是数组 → 空列表（记录警告日志）
- 单条记录字段缺失/类型不符 → 丢弃该条（记录警告日志）
调用方无法区分"确实为空"和"文件已损坏"，只能通过日志得知。
"""

import json
from pathlib import Path

from loguru import logger

from aui.scheduler.types import ScheduleRecord
from aui.utils.helpers import ensure_dir, get_manifest_path


class ScheduleStore:
    """单个项目的调度清单存储。"""

    def __init__(self, project_path: Path | str):
        """
        参数:
            project_path: 项目根目录，清单位于其下的 .aui/schedules.json
        """
        self.project_path = Path(project_path)
        self.path = get_manifest_path(self.project_path)

    def load(self) -> list[ScheduleRecord]:
        """读取全部记录。"""
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Failed to load schedule manifest {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Schedule manifest {self.path} is not a JSON array, ignoring it")
            return []

        records = []
        for index, entry in enumerate(data):
            try:
                records.append(ScheduleRecord.from_dict(entry))
            except ValueError as e:
                logger.warning(f"Dropping invalid schedule entry #{index} in {self.path}: {e}")
        return records

    def save(self, records: list[ScheduleRecord]) -> None:
        """覆盖写入全部记录（2 空格缩进）。自动创建 .aui 目录。"""
        ensure_dir(self.path.parent)
        data = [r.to_dict() for r in records]
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
