"""日历项构建

将 Signal 时间块与外部日历事件合并为按开始时间排序的日历项列表。
已丢弃的时间块不展示；已被导入为时间块的外部事件不重复展示。
"""

from collections.abc import Iterable
from datetime import datetime

from ..models.calendar_item import CalendarItem, ExternalEventItem, SignalSlotItem
from ..models.task import SignalTask


def build_calendar_items(
    tasks: Iterable[SignalTask],
    external_events: Iterable[ExternalEventItem],
    now: datetime,
) -> list[CalendarItem]:
    items: list[CalendarItem] = []
    linked_event_ids: set[str] = set()

    for task in tasks:
        for slot in task.time_slots:
            if slot.external_calendar_event_id:
                linked_event_ids.add(slot.external_calendar_event_id)
            if slot.is_discarded:
                continue
            items.append(
                SignalSlotItem(
                    task_id=task.id,
                    slot_id=slot.id,
                    title=task.title,
                    start=slot.calendar_start_time(),
                    end=slot.calendar_end_time(now),
                    status=slot.status(now),
                    tag_ids=list(task.tag_ids),
                )
            )

    items.extend(
        event for event in external_events if event.event_id not in linked_event_ids
    )
    items.sort(key=lambda item: item.start)
    return items
