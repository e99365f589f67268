"""日历项

日历视图中的条目是 Signal 时间块与外部日历事件的标签联合，
按 kind 字段区分。
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .enums import TimeSlotStatus


class SignalSlotItem(BaseModel):
    """Signal 任务的时间块"""

    kind: Literal["signal_slot"] = "signal_slot"
    task_id: str
    slot_id: str
    title: str
    start: datetime
    end: datetime
    status: TimeSlotStatus
    tag_ids: list[str] = Field(default_factory=list)


class ExternalEventItem(BaseModel):
    """外部日历事件（只读展示）"""

    kind: Literal["external_event"] = "external_event"
    event_id: str
    title: str
    start: datetime
    end: datetime
    is_all_day: bool = False


CalendarItem = Annotated[
    SignalSlotItem | ExternalEventItem,
    Field(discriminator="kind"),
]
