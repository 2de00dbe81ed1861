"""
cron 翻译器 - 把 5 字段 cron 表达式转换为 OS 调度器的开始时间和重复类型。

OS 原生调度器（尤其是 schtasks）不理解 cron 语法，只接受
"开始时间 + 重复类型（HOURLY/DAILY/WEEKLY/MONTHLY）"。
这里只区分"通配符 vs 字面值"，步长语法（*/N）会被折叠掉。
"""

from datetime import datetime

from croniter import croniter

from aui.scheduler.types import CronTiming

# 字段数不足时的兜底结果
FALLBACK_TIMING = CronTiming(start_time="09:00", repeat="once")

# 常用调度预设（label, cron），用于 CLI 展示可读描述
CRON_PRESETS: list[tuple[str, str]] = [
    ("Every hour", "0 * * * *"),
    ("Every 6 hours", "0 */6 * * *"),
    ("Daily at 9am", "0 9 * * *"),
    ("Weekdays at 9am", "0 9 * * 1-5"),
    ("Weekly (Monday 9am)", "0 9 * * 1"),
    ("Monthly (1st at 9am)", "0 9 1 * *"),
]

_WILDCARDS = ("*", "?")


def _time_part(field: str) -> str:
    """单个时间字段：* 视为 0，否则去掉开头的 */ 步长前缀，补齐两位。"""
    value = "0" if field == "*" else field.removeprefix("*/")
    return value.zfill(2)


def translate_cron(expr: str) -> CronTiming:
    """
    翻译 cron 表达式（minute hour day-of-month month day-of-week）。

    分类规则（按顺序，首个命中生效）：
    1. hour 为 "*" → hourly
    2. day-of-week 不是 "*" 或 "?" → weekly
    3. day-of-month 不是 "*" 或 "?" → monthly
    4. 其他 → daily

    字段不足 5 个时不报错，返回 FALLBACK_TIMING。

    参数:
        expr: cron 表达式字符串

    返回:
        CronTiming(start_time="HH:MM", repeat=...)
    """
    parts = expr.split() if isinstance(expr, str) else []
    if len(parts) < 5:
        return FALLBACK_TIMING

    minute, hour, day_of_month, _month, day_of_week = parts[:5]

    if hour == "*":
        repeat = "hourly"
    elif day_of_week not in _WILDCARDS:
        repeat = "weekly"
    elif day_of_month not in _WILDCARDS:
        repeat = "monthly"
    else:
        repeat = "daily"

    return CronTiming(start_time=f"{_time_part(hour)}:{_time_part(minute)}", repeat=repeat)


def describe_cron(expr: str) -> str:
    """返回 cron 表达式的可读描述：命中预设时返回预设名称，否则原样返回。"""
    normalized = " ".join(expr.split())
    for label, value in CRON_PRESETS:
        if value == normalized:
            return label
    return expr


def is_valid_cron(expr: str) -> bool:
    """严格校验 5 字段 cron 表达式（translate_cron 本身从不拒绝输入）。"""
    return len(expr.split()) == 5 and croniter.is_valid(expr)


def next_run(expr: str, now: datetime | None = None) -> datetime | None:
    """计算下次触发时间，仅用于展示。表达式无效时返回 None。"""
    if not is_valid_cron(expr):
        return None
    return croniter(expr, now or datetime.now()).get_next(datetime)
