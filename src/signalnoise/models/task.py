"""SignalTask 数据模型

Signal 任务是当日少量（3-5 个）高价值任务之一，
由预估时长与若干时间块组成。实际时长只来自时间块的会话记录。
"""

from datetime import date, datetime, timedelta

from pydantic import BaseModel, Field

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..exceptions import SlotNotFoundError
from .enums import TaskStatus
from .time_slot import TimeSlot


class SubTask(BaseModel):
    """子任务"""

    id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="子任务标题")
    is_checked: bool = Field(default=False, description="是否已勾选完成")
    linked_time_slot_ids: list[str] = Field(
        default_factory=list,
        description="关联的时间块 ID",
    )


class SignalTask(BaseModel):
    """Signal 任务"""

    id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    estimated_minutes: int = Field(ge=0, description="预估时长（分钟）")
    scheduled_date: date = Field(description="计划执行日期")
    created_at: datetime = Field(description="创建时间")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="任务状态")
    is_complete: bool = Field(default=False, description="是否已完成")
    time_slots: list[TimeSlot] = Field(
        default_factory=list,
        description="时间块列表，按插入顺序",
    )
    sub_tasks: list[SubTask] = Field(default_factory=list, description="子任务")
    tag_ids: list[str] = Field(default_factory=list, description="标签 ID")
    google_calendar_event_id: str | None = Field(
        default=None,
        description="任务级日历事件 ID",
    )
    rolled_from_task_id: str | None = Field(
        default=None,
        description="由哪个任务顺延而来",
    )
    remaining_minutes_from_rollover: int | None = Field(
        default=None,
        description="顺延时剩余的分钟数",
    )

    @property
    def scheduled_minutes(self) -> int:
        """已排期分钟数（不含丢弃的时间块）"""
        total = sum(
            (slot.planned_duration for slot in self.time_slots if not slot.is_discarded),
            timedelta(),
        )
        return int(total.total_seconds()) // 60

    @property
    def unscheduled_minutes(self) -> int:
        return max(self.estimated_minutes - self.scheduled_minutes, 0)

    @property
    def needs_scheduling(self) -> bool:
        return self.unscheduled_minutes > 0

    @property
    def has_calendar_presence(self) -> bool:
        return any(not slot.is_discarded for slot in self.time_slots)

    def actual_seconds(self, now: datetime) -> int:
        """实际执行总秒数

        包含已丢弃时间块的记录时长：丢弃只影响展示，不抹去已执行的时间。
        """
        return sum(slot.actual_seconds(now) for slot in self.time_slots)

    def actual_minutes(self, now: datetime) -> int:
        return self.actual_seconds(now) // 60

    def remaining_minutes(self, now: datetime) -> int:
        return max(self.estimated_minutes - self.actual_minutes(now), 0)

    def progress(self, now: datetime) -> float:
        """实际 / 预估，范围 [0, 1]"""
        if self.estimated_minutes <= 0:
            return 0.0
        return min(self.actual_minutes(now) / self.estimated_minutes, 1.0)

    @property
    def active_slot(self) -> TimeSlot | None:
        for slot in self.time_slots:
            if slot.is_active:
                return slot
        return None

    @property
    def has_active_slot(self) -> bool:
        return self.active_slot is not None

    @property
    def last_stopped_slot(self) -> TimeSlot | None:
        """最近一次停止的时间块（不含丢弃的）"""
        stopped = [
            slot
            for slot in self.time_slots
            if not slot.is_active and not slot.is_discarded and slot.last_stop_time
        ]
        if not stopped:
            return None
        return max(stopped, key=lambda slot: slot.last_stop_time)

    def commitment_threshold(
        self, config: EngineConfig = DEFAULT_ENGINE_CONFIG
    ) -> timedelta:
        """会话达到此时长才视为有效投入（决定是否同步日历）

        默认预估 2 小时及以上的长任务阈值为 10 分钟，其余为 5 分钟。
        """
        if self.estimated_minutes >= config.long_task_minutes:
            return timedelta(minutes=config.long_commitment_minutes)
        return timedelta(minutes=config.short_commitment_minutes)

    def get_slot(self, slot_id: str) -> TimeSlot:
        for slot in self.time_slots:
            if slot.id == slot_id:
                return slot
        raise SlotNotFoundError(self.id, slot_id)

    def with_slot(self, updated: TimeSlot) -> "SignalTask":
        """返回替换了同 ID 时间块的新任务"""
        self.get_slot(updated.id)
        slots = [updated if slot.id == updated.id else slot for slot in self.time_slots]
        return self.model_copy(update={"time_slots": slots})
