"""引擎操作结果

引擎函数不修改输入，返回新的任务与本次产生的事件。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import AutoEndAction, StartMode, StartOutcome, StopOutcome
from .event import Event
from .task import SignalTask


class Transition(BaseModel):
    """状态变更结果"""

    task: SignalTask
    events: list[Event] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.events)


class StartResult(Transition):
    """智能启动结果

    start_time 为实际开始时间，供宿主应用判断是否提前开始。
    """

    slot_id: str
    start_time: datetime
    mode: StartMode | None = Field(default=None, description="ALREADY_ACTIVE 时为空")
    outcome: StartOutcome = StartOutcome.STARTED


class StopResult(Transition):
    """停止结果"""

    slot_id: str
    outcome: StopOutcome = StopOutcome.STOPPED
    session_seconds: int = 0


class AutoEndDecision(BaseModel):
    """计划结束检查结果"""

    task_id: str
    slot_id: str
    action: AutoEndAction
    planned_end_time: datetime
