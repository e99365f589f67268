"""事件 Payload 子类型

各 EventType 对应的 payload 结构，写入 Event.payload 前 model_dump()。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import StartMode, TaskStatus


class TaskCreatedPayload(BaseModel):
    """TASK_CREATED 事件 payload"""

    title: str = Field(description="任务标题")
    estimated_minutes: int = Field(description="预估分钟数")
    rolled_from_task_id: str | None = Field(default=None, description="顺延来源任务")


class TaskStatusChangedPayload(BaseModel):
    """TASK_STATUS_CHANGED 事件 payload"""

    from_status: TaskStatus
    to_status: TaskStatus


class SlotWindowPayload(BaseModel):
    """SLOT_ADDED / SLOT_UPDATED 事件 payload"""

    planned_start_time: datetime
    planned_end_time: datetime
    auto_end: bool = True
    ad_hoc: bool = Field(default=False, description="是否为启动时临时创建的时间块")
    previous_start_time: datetime | None = Field(default=None, description="修改前的开始时间")
    previous_end_time: datetime | None = Field(default=None, description="修改前的结束时间")


class SlotRemovedPayload(BaseModel):
    """SLOT_REMOVED / SLOT_DISCARDED 事件 payload"""

    accumulated_seconds: int = Field(default=0, description="移除时已记录的秒数")
    google_calendar_event_id: str | None = None


class TimerStartedPayload(BaseModel):
    """TIMER_STARTED 事件 payload"""

    mode: StartMode
    start_time: datetime
    accumulated_seconds: int = Field(default=0, description="恢复会话时已累计的秒数")


class TimerStoppedPayload(BaseModel):
    """TIMER_STOPPED 事件 payload"""

    session_seconds: int = Field(description="本次会话结算的秒数")
    accumulated_seconds: int = Field(description="结算后的累计秒数")
    committed: bool = Field(description="是否达到承诺阈值（可同步日历）")
    auto_ended: bool = Field(default=False, description="是否由计划结束自动停止")
