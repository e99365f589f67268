"""signalnoise 服务层 -- 时钟注入、持久化与协作方分发"""

from .collaborators import CalendarSync, EventDispatcher, NotificationScheduler
from .rollover_service import RolloverService
from .settings_service import SettingsService
from .stats_service import StatsService
from .task_service import SignalTaskService

__all__ = [
    "CalendarSync",
    "NotificationScheduler",
    "EventDispatcher",
    "SignalTaskService",
    "SettingsService",
    "StatsService",
    "RolloverService",
]
