"""Event 数据模型

引擎状态变更的事实记录。事件表 append-only，不允许更新或删除。
task_seq 同一 task 内严格单调递增，由存储层在写入时分配。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import EventType


class Event(BaseModel):
    """引擎事件"""

    event_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    task_id: str = Field(description="关联的 Signal 任务 ID")
    slot_id: str | None = Field(default=None, description="关联的时间块 ID")
    task_seq: int = Field(default=0, description="任务内序号，写入时分配")
    ts: datetime = Field(description="事件时间戳")
    type: EventType = Field(description="事件类型")
    payload: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")
