"""Store Protocol 接口定义

使用 Python Protocol 实现结构化子类型（duck typing），
宿主应用可替换为其他存储实现。
"""

from datetime import date, datetime
from typing import Protocol

from ..models.event import Event
from ..models.schedule import UserSettings
from ..models.task import SignalTask


class TaskStore(Protocol):
    """Signal 任务存储接口"""

    async def save_task(self, task: SignalTask, updated_at: datetime) -> None:
        """插入或覆盖任务"""
        ...

    async def get_task(self, task_id: str) -> SignalTask | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks_for_date(self, day: date) -> list[SignalTask]:
        """查询指定日期的任务"""
        ...

    async def list_tasks_in_range(self, start: date, end: date) -> list[SignalTask]:
        """查询日期范围内的任务（含两端）"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """删除任务"""
        ...


class EventStore(Protocol):
    """事件存储接口，append-only"""

    async def append_event(self, event: Event) -> None:
        """追加事件"""
        ...

    async def get_events_for_task(self, task_id: str) -> list[Event]:
        """查询指定任务的所有事件"""
        ...

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq"""
        ...


class SettingsStore(Protocol):
    """设置与专注窗口覆盖存储接口"""

    async def get_settings(self) -> UserSettings | None:
        ...

    async def save_settings(self, settings: UserSettings) -> None:
        ...

    async def get_focus_override(self, day: date) -> datetime | None:
        ...

    async def list_focus_overrides(self, start: date, end: date) -> dict[date, datetime]:
        ...

    async def set_focus_override(self, day: date, effective_start: datetime) -> None:
        ...

    async def clear_focus_override(self, day: date) -> None:
        ...
