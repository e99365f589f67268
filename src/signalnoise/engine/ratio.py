"""Signal 比率计算

ratio = Signal 任务实际执行分钟数 / 已流逝的专注分钟数，限制在 [0, 1]。
专注窗口由当日 DaySchedule 决定；提前开始时窗口起点前移到实际开始时间。
"""

from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from ..models.enums import ExtensionOutcome
from ..models.schedule import DaySchedule
from ..models.stats import SignalRatio
from ..models.task import SignalTask


def focus_window(
    schedule: DaySchedule,
    day: date,
    tz: tzinfo | None,
    effective_start: datetime | None = None,
) -> tuple[datetime, datetime]:
    """当日专注窗口 (start, end)

    effective_start 早于计划开始时替代窗口起点；跨午夜时 end 落在次日。
    """
    start = schedule.start_for_date(day, tz)
    end = schedule.end_for_date(day, tz)
    if effective_start is not None and effective_start < start:
        start = effective_start
    return start, end


def elapsed_focus_minutes(
    schedule: DaySchedule,
    day: date,
    now: datetime,
    effective_start: datetime | None = None,
) -> int:
    """截至 now 已流逝的专注分钟数

    窗口开始前为 0，窗口结束后为整个窗口长度。
    跨午夜窗口的凌晨部分需以前一天作为 day 传入。
    """
    if not schedule.is_active_day:
        return 0
    start, end = focus_window(schedule, day, now.tzinfo, effective_start)
    if now <= start:
        return 0
    return int((min(now, end) - start).total_seconds()) // 60


def compute_ratio(signal_minutes: int, elapsed_minutes: int) -> float:
    """signal / elapsed，限制在 [0, 1]；elapsed 为 0 时返回 0"""
    if elapsed_minutes <= 0:
        return 0.0
    return min(max(signal_minutes / elapsed_minutes, 0.0), 1.0)


def signal_minutes(tasks: Iterable[SignalTask], now: datetime) -> int:
    return sum(task.actual_seconds(now) for task in tasks) // 60


def daily_signal_ratio(
    tasks: Iterable[SignalTask],
    schedule: DaySchedule,
    day: date,
    now: datetime,
    effective_start: datetime | None = None,
) -> SignalRatio:
    """当日实时 Signal 比率"""
    signal = signal_minutes(tasks, now)
    elapsed = elapsed_focus_minutes(schedule, day, now, effective_start)
    return SignalRatio(
        signal_minutes=signal,
        elapsed_minutes=elapsed,
        ratio=compute_ratio(signal, elapsed),
    )


def projected_ratio(tasks: Iterable[SignalTask], schedule: DaySchedule) -> float:
    """计划比率：预估总分钟数 / 当日专注总分钟数"""
    estimated = sum(task.estimated_minutes for task in tasks)
    return compute_ratio(estimated, schedule.active_minutes)


def extend_focus_window(
    schedule: DaySchedule,
    day: date,
    start_time: datetime,
    existing_start: datetime | None,
) -> tuple[datetime | None, ExtensionOutcome]:
    """在计划开始前开始计时时，将当日窗口起点前移到 start_time

    每天只生效一次：已有覆盖时保持原值并返回 ALREADY_EXTENDED。

    Returns:
        (当日生效的起点覆盖, 结果)
    """
    if existing_start is not None:
        return existing_start, ExtensionOutcome.ALREADY_EXTENDED
    scheduled_start = schedule.start_for_date(day, start_time.tzinfo)
    if not schedule.is_active_day or start_time >= scheduled_start:
        return None, ExtensionOutcome.NOT_EARLY
    return start_time, ExtensionOutcome.EXTENDED
