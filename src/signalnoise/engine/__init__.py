"""signalnoise 引擎 -- 无 I/O 的纯函数"""

from .calendar import build_calendar_items
from .ratio import (
    compute_ratio,
    daily_signal_ratio,
    elapsed_focus_minutes,
    extend_focus_window,
    focus_window,
    projected_ratio,
)
from .rollover import (
    accept_suggestion,
    dismiss_suggestion,
    generate_suggestions,
    is_day_over,
    should_roll_over,
)
from .session import (
    add_time_slot,
    check_auto_end,
    complete_task,
    compute_live_elapsed,
    continue_time_slot,
    delete_task,
    discard_slot,
    group_slots_by_status,
    mark_rolled,
    missed_slots,
    new_task,
    remove_time_slot,
    reschedule_missed_slot,
    smart_start_task,
    stop_time_slot,
    uncomplete_task,
    update_time_slot,
)
from .stats import daily_stats, week_start, weekly_stats

__all__ = [
    "new_task",
    "complete_task",
    "uncomplete_task",
    "delete_task",
    "mark_rolled",
    "smart_start_task",
    "stop_time_slot",
    "compute_live_elapsed",
    "add_time_slot",
    "update_time_slot",
    "remove_time_slot",
    "discard_slot",
    "reschedule_missed_slot",
    "continue_time_slot",
    "check_auto_end",
    "missed_slots",
    "group_slots_by_status",
    "focus_window",
    "elapsed_focus_minutes",
    "compute_ratio",
    "daily_signal_ratio",
    "projected_ratio",
    "extend_focus_window",
    "week_start",
    "daily_stats",
    "weekly_stats",
    "is_day_over",
    "should_roll_over",
    "generate_suggestions",
    "accept_suggestion",
    "dismiss_suggestion",
    "build_calendar_items",
]
