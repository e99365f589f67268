"""日 / 周统计

周从周一开始，共 7 天。每天的专注分钟数按 elapsed_focus_minutes 计算：
过去的日期为整个窗口，当天为已流逝部分，未来日期为 0。
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..models.schedule import DaySchedule, UserSettings
from ..models.stats import DailyStats, WeeklyStats
from ..models.task import SignalTask
from .ratio import compute_ratio, elapsed_focus_minutes, signal_minutes


def week_start(day: date) -> date:
    """所在周的周一"""
    return day - timedelta(days=day.isoweekday() - 1)


def is_golden(ratio: float, signal: int, config: EngineConfig) -> bool:
    return ratio >= config.golden_ratio and signal >= config.golden_min_signal_minutes


def daily_stats(
    day: date,
    tasks: Iterable[SignalTask],
    schedule: DaySchedule,
    now: datetime,
    effective_start: datetime | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> DailyStats:
    tasks = list(tasks)
    signal = signal_minutes(tasks, now)
    focus = elapsed_focus_minutes(schedule, day, now, effective_start)
    ratio = compute_ratio(signal, focus)
    return DailyStats(
        day=day,
        signal_minutes=signal,
        focus_minutes=focus,
        completed_tasks=sum(1 for task in tasks if task.is_complete),
        ratio=ratio,
        golden=is_golden(ratio, signal, config),
    )


def weekly_stats(
    any_day: date,
    tasks: Iterable[SignalTask],
    settings: UserSettings,
    now: datetime,
    effective_starts: dict[date, datetime] | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> WeeklyStats:
    """汇总 any_day 所在周的统计

    tasks 中不属于该周的任务会被忽略。
    """
    monday = week_start(any_day)
    week_days = [monday + timedelta(days=offset) for offset in range(7)]
    effective_starts = effective_starts or {}

    by_day: dict[date, list[SignalTask]] = defaultdict(list)
    for task in tasks:
        if monday <= task.scheduled_date <= week_days[-1]:
            by_day[task.scheduled_date].append(task)

    days = [
        daily_stats(
            day,
            by_day[day],
            settings.schedule_for(day),
            now,
            effective_starts.get(day),
            config,
        )
        for day in week_days
    ]

    tag_breakdown: dict[str, int] = defaultdict(int)
    for day_tasks in by_day.values():
        for task in day_tasks:
            minutes = task.actual_minutes(now)
            if minutes <= 0:
                continue
            for tag_id in task.tag_ids:
                tag_breakdown[tag_id] += minutes

    total_signal = sum(day.signal_minutes for day in days)
    total_focus = sum(day.focus_minutes for day in days)
    ratio = compute_ratio(total_signal, total_focus)
    return WeeklyStats(
        week_start=monday,
        days=days,
        total_signal_minutes=total_signal,
        total_focus_minutes=total_focus,
        completed_tasks_count=sum(day.completed_tasks for day in days),
        tag_breakdown=dict(tag_breakdown),
        ratio=ratio,
        golden=is_golden(ratio, total_signal, config),
    )
