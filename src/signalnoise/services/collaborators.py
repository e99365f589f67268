"""外部协作方接口与事件分发

日历同步与提醒调度由宿主应用实现；EventDispatcher 将引擎事件翻译为协作方调用。
协作方失败只记录日志，不阻塞用户操作。
"""

from collections.abc import Sequence
from typing import Protocol

import structlog

from ..models.enums import EventType
from ..models.event import Event
from ..models.task import SignalTask
from ..models.time_slot import TimeSlot

log = structlog.get_logger()


class CalendarSync(Protocol):
    """日历同步接口"""

    async def slot_added(self, task: SignalTask, slot: TimeSlot) -> None:
        """新增计划时间块"""
        ...

    async def slot_updated(self, task: SignalTask, slot: TimeSlot) -> None:
        """时间块变更；slot 尚无 google_calendar_event_id 时由实现方创建日历事件"""
        ...

    async def slot_removed(
        self,
        task: SignalTask,
        slot_id: str,
        google_calendar_event_id: str | None,
    ) -> None:
        """时间块被删除或丢弃"""
        ...


class NotificationScheduler(Protocol):
    """提醒调度接口"""

    async def cancel_slot_reminders(self, slot_id: str) -> None:
        ...

    async def schedule_slot_reminders(self, task: SignalTask, slot: TimeSlot) -> None:
        ...


class EventDispatcher:
    """将引擎事件分发给日历同步与提醒调度

    提醒总是先取消再重新调度，避免重复提醒。
    """

    def __init__(
        self,
        calendar_sync: CalendarSync | None = None,
        notifications: NotificationScheduler | None = None,
    ) -> None:
        self._calendar = calendar_sync
        self._notifications = notifications

    async def dispatch(self, task: SignalTask, events: Sequence[Event]) -> None:
        for event in events:
            try:
                await self._dispatch_one(task, event)
            except Exception as exc:
                log.warning(
                    "collaborator_dispatch_failed",
                    event_type=event.type,
                    task_id=event.task_id,
                    slot_id=event.slot_id,
                    error=str(exc),
                )

    async def _reschedule(self, task: SignalTask, slot: TimeSlot) -> None:
        if self._notifications is None:
            return
        await self._notifications.cancel_slot_reminders(slot.id)
        if not slot.is_completed and not slot.is_discarded:
            await self._notifications.schedule_slot_reminders(task, slot)

    async def _dispatch_one(self, task: SignalTask, event: Event) -> None:
        if event.slot_id is None:
            return

        if event.type in (EventType.SLOT_REMOVED, EventType.SLOT_DISCARDED):
            if self._notifications is not None:
                await self._notifications.cancel_slot_reminders(event.slot_id)
            if self._calendar is not None:
                await self._calendar.slot_removed(
                    task,
                    event.slot_id,
                    event.payload.get("google_calendar_event_id"),
                )
            return

        slot = task.get_slot(event.slot_id)

        if event.type == EventType.SLOT_ADDED:
            await self._reschedule(task, slot)
            # 临时时间块在会话达到承诺阈值后才同步
            if self._calendar is not None and not event.payload.get("ad_hoc"):
                await self._calendar.slot_added(task, slot)
        elif event.type == EventType.SLOT_UPDATED:
            await self._reschedule(task, slot)
            if self._calendar is not None:
                await self._calendar.slot_updated(task, slot)
        elif event.type == EventType.TIMER_STARTED:
            await self._reschedule(task, slot)
        elif event.type == EventType.TIMER_STOPPED:
            if self._notifications is not None:
                await self._notifications.cancel_slot_reminders(slot.id)
            if event.payload.get("committed") and self._calendar is not None:
                await self._calendar.slot_updated(task, slot)
