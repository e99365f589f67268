"""signalnoise 数据模型"""

from .calendar_item import CalendarItem, ExternalEventItem, SignalSlotItem
from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    AutoEndAction,
    EventType,
    ExtensionOutcome,
    StartMode,
    StartOutcome,
    StopOutcome,
    SuggestionStatus,
    TaskStatus,
    TimeSlotStatus,
    validate_transition,
)
from .event import Event
from .payloads import (
    SlotRemovedPayload,
    SlotWindowPayload,
    TaskCreatedPayload,
    TaskStatusChangedPayload,
    TimerStartedPayload,
    TimerStoppedPayload,
)
from .results import AutoEndDecision, StartResult, StopResult, Transition
from .rollover import RolloverSuggestion
from .schedule import DaySchedule, UserSettings, default_weekly_schedule
from .stats import DailyStats, SignalRatio, WeeklyStats
from .task import SignalTask, SubTask
from .time_slot import TimeSlot

__all__ = [
    # 枚举
    "TaskStatus",
    "TimeSlotStatus",
    "EventType",
    "StartMode",
    "StartOutcome",
    "StopOutcome",
    "AutoEndAction",
    "ExtensionOutcome",
    "SuggestionStatus",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # 领域模型
    "SignalTask",
    "SubTask",
    "TimeSlot",
    "DaySchedule",
    "UserSettings",
    "default_weekly_schedule",
    "Event",
    "RolloverSuggestion",
    "SignalRatio",
    "DailyStats",
    "WeeklyStats",
    "CalendarItem",
    "SignalSlotItem",
    "ExternalEventItem",
    # 结果
    "Transition",
    "StartResult",
    "StopResult",
    "AutoEndDecision",
    # Payload
    "TaskCreatedPayload",
    "TaskStatusChangedPayload",
    "SlotWindowPayload",
    "SlotRemovedPayload",
    "TimerStartedPayload",
    "TimerStoppedPayload",
]
