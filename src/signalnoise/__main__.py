"""CLI 入口模块 -- python -m signalnoise <command>

支持的命令：
  today     今日 Signal 任务与实时比率
  week      本周统计
  rollover  生成今日的顺延建议
"""

import asyncio
import sys

from .clock import SystemClock
from .config import get_db_path, load_engine_config
from .logging_config import bind_day_context, setup_logging

_COMMANDS = {
    "today": "今日 Signal 任务与实时比率",
    "week": "本周统计",
    "rollover": "生成今日的顺延建议",
}


def _print_usage() -> None:
    print("用法: python -m signalnoise <command>")
    print("命令:")
    for name, description in _COMMANDS.items():
        print(f"  {name:<9} {description}")


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        _print_usage()
        sys.exit(1)

    command = sys.argv[1]
    if command not in _COMMANDS:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(_COMMANDS)}")
        sys.exit(1)

    setup_logging()
    asyncio.run(run_command(command))


async def run_command(command: str) -> None:
    from .services import RolloverService, SettingsService, SignalTaskService, StatsService
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path)

    try:
        bootstrap = SettingsService(store_group.settings_store, SystemClock())
        settings = await bootstrap.load()
        clock = SystemClock(settings.timezone)
        settings_service = SettingsService(store_group.settings_store, clock)
        await settings_service.load()
        config = load_engine_config()
        day = settings_service.current_focus_day()
        bind_day_context(day)

        if command == "today":
            task_service = SignalTaskService(
                store_group, clock, config=config, settings_service=settings_service
            )
            tasks = await task_service.load_tasks(day)
            await _print_today(settings_service, tasks, clock)
        elif command == "week":
            stats_service = StatsService(store_group, settings_service, clock, config)
            stats = await stats_service.weekly_stats(day)
            _print_week(stats)
        else:
            rollover_service = RolloverService(store_group, clock, config)
            await rollover_service.generate_suggestions(day)
            pending = await rollover_service.pending_suggestions(day)
            if not pending:
                print("没有待处理的顺延建议")
            for suggestion in pending:
                print(
                    f"[{suggestion.id}] {suggestion.original_task_title} "
                    f"-> {suggestion.suggested_for_date} ({suggestion.final_minutes} 分钟)"
                )
    finally:
        await store_group.close()


async def _print_today(settings_service, tasks, clock) -> None:
    now = clock.now()
    day = settings_service.current_focus_day(now)
    schedule = settings_service.schedule_for(day)
    print(f"{day} {schedule.day_name} 专注时间: {schedule.format_active_hours()}")
    if not tasks:
        print("今日没有 Signal 任务")
    for task in tasks:
        marker = "*" if task.has_active_slot else " "
        print(
            f"{marker} {task.title}: {task.actual_minutes(now)}/{task.estimated_minutes} 分钟 "
            f"[{task.status}]"
        )
        for slot in task.time_slots:
            print(
                f"    {slot.planned_start_time:%H:%M}-{slot.planned_end_time:%H:%M} "
                f"{slot.status(now)} {slot.actual_seconds(now) // 60} 分钟"
            )
    ratio = await settings_service.daily_ratio(tasks, day)
    print(
        f"Signal 比率: {ratio.ratio:.0%} "
        f"({ratio.signal_minutes}/{ratio.elapsed_minutes} 分钟)"
    )
    print(f"计划比率: {settings_service.projected_ratio(tasks, day):.0%}")


def _print_week(stats) -> None:
    print(f"周起始: {stats.week_start}")
    for day in stats.days:
        golden = " golden" if day.golden else ""
        print(
            f"  {day.day} signal={day.signal_minutes} focus={day.focus_minutes} "
            f"ratio={day.ratio:.0%}{golden}"
        )
    print(
        f"合计: signal={stats.total_signal_minutes} focus={stats.total_focus_minutes} "
        f"ratio={stats.ratio:.0%} golden_days={stats.golden_days}"
    )
    for tag_id, minutes in sorted(stats.tag_breakdown.items()):
        print(f"  #{tag_id}: {minutes} 分钟")


if __name__ == "__main__":
    main()
