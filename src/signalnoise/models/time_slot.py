"""TimeSlot 数据模型

一个时间块对应一段计划时间窗口，以及在其内执行的一个或多个会话。
已结算的会话时长累加在 accumulated_seconds 中；
正在进行的会话时长由 now - actual_start_time 实时计算，停止时才结算。
记录过时长的时间块只会被标记丢弃，不会被物理删除。
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field, model_validator

from .enums import TimeSlotStatus


class TimeSlot(BaseModel):
    """时间块"""

    id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="所属 Signal 任务 ID")
    planned_start_time: datetime = Field(description="计划开始时间")
    planned_end_time: datetime = Field(description="计划结束时间")
    actual_start_time: datetime | None = Field(
        default=None,
        description="当前（或最近一次）会话的开始时间",
    )
    actual_end_time: datetime | None = Field(
        default=None,
        description="最近一次会话的结束时间，为空表示会话进行中",
    )
    accumulated_seconds: int = Field(
        default=0,
        ge=0,
        description="已结算的会话总时长（秒）",
    )
    auto_end: bool = Field(default=True, description="计划结束时是否自动停止")
    is_discarded: bool = Field(default=False, description="是否已丢弃")
    linked_sub_task_ids: list[str] = Field(
        default_factory=list,
        description="关联的子任务 ID",
    )
    external_calendar_event_id: str | None = Field(
        default=None,
        description="从外部日历导入时的源事件 ID",
    )
    google_calendar_event_id: str | None = Field(
        default=None,
        description="同步到日历后的事件 ID",
    )
    has_synced_to_calendar: bool = Field(default=False, description="是否已同步到日历")
    session_start_time: datetime | None = Field(
        default=None,
        description="连续会话的首次开始时间（合并会话时保持不变）",
    )
    last_stop_time: datetime | None = Field(
        default=None,
        description="最近一次停止时间，用于判断会话合并",
    )
    was_manual_continue: bool = Field(
        default=False,
        description="用户是否在计划结束后手动继续",
    )

    @model_validator(mode="after")
    def _check_windows(self) -> "TimeSlot":
        if self.planned_end_time <= self.planned_start_time:
            raise ValueError("planned_end_time 必须晚于 planned_start_time")
        if (
            self.actual_start_time is not None
            and self.actual_end_time is not None
            and self.actual_end_time < self.actual_start_time
        ):
            raise ValueError("actual_end_time 不能早于 actual_start_time")
        return self

    @property
    def is_active(self) -> bool:
        """是否正在计时"""
        return (
            self.actual_start_time is not None
            and self.actual_end_time is None
            and not self.is_discarded
        )

    @property
    def has_started(self) -> bool:
        """是否曾经开始过（记录过时长）"""
        return self.actual_start_time is not None or self.accumulated_seconds > 0

    @property
    def is_completed(self) -> bool:
        return not self.is_active and self.actual_end_time is not None

    @property
    def planned_duration(self) -> timedelta:
        return self.planned_end_time - self.planned_start_time

    def running_seconds(self, now: datetime) -> int:
        """当前未结算会话的秒数，非计时状态为 0"""
        if not self.is_active or self.actual_start_time is None:
            return 0
        return max(int((now - self.actual_start_time).total_seconds()), 0)

    def actual_seconds(self, now: datetime) -> int:
        """实际执行总时长（秒）= 已结算 + 进行中"""
        return self.accumulated_seconds + self.running_seconds(now)

    def actual_duration(self, now: datetime) -> timedelta:
        return timedelta(seconds=self.actual_seconds(now))

    def is_missed(self, now: datetime) -> bool:
        """计划已结束且从未开始

        auto_end 为 False 的时间块由用户手动管理，不判定为错过。
        """
        return (
            not self.is_discarded
            and not self.has_started
            and self.auto_end
            and now > self.planned_end_time
        )

    def status(self, now: datetime) -> TimeSlotStatus:
        if self.is_discarded:
            return TimeSlotStatus.DISCARDED
        if self.is_active:
            return TimeSlotStatus.ACTIVE
        if self.is_completed:
            return TimeSlotStatus.COMPLETED
        if self.is_missed(now):
            return TimeSlotStatus.MISSED
        return TimeSlotStatus.SCHEDULED

    def can_merge_session(self, now: datetime, threshold: timedelta) -> bool:
        """距上次停止是否仍在合并窗口内（含边界）"""
        if self.last_stop_time is None or self.is_active or self.is_discarded:
            return False
        return now - self.last_stop_time <= threshold

    @property
    def start_variance(self) -> timedelta | None:
        """实际开始相对计划开始的偏差，正数表示晚于计划"""
        first_start = self.session_start_time or self.actual_start_time
        if first_start is None:
            return None
        return first_start - self.planned_start_time

    def calendar_start_time(self) -> datetime:
        """日历展示的开始时间：已开始用实际首次开始，否则用计划开始"""
        return self.session_start_time or self.actual_start_time or self.planned_start_time

    def calendar_end_time(self, now: datetime) -> datetime:
        """日历展示的结束时间

        计时中显示为 now 与计划结束的较晚者；已结束显示实际结束。
        """
        if self.is_active:
            return max(now, self.planned_end_time)
        if self.actual_end_time is not None:
            return self.actual_end_time
        return self.planned_end_time
