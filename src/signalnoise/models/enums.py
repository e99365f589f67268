"""枚举定义

包含 TaskStatus 状态机、TimeSlotStatus 派生状态、EventType，
以及智能启动 / 停止 / 专注时间延长的结果信号枚举。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Signal 任务状态机"""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    # 已顺延到其他日期，终态
    ROLLED = "rolled"


VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.NOT_STARTED: {
        TaskStatus.IN_PROGRESS,
        TaskStatus.COMPLETED,
        TaskStatus.ROLLED,
    },
    TaskStatus.IN_PROGRESS: {
        TaskStatus.COMPLETED,
        TaskStatus.ROLLED,
    },
    # 取消完成后回到进行中 / 未开始
    TaskStatus.COMPLETED: {
        TaskStatus.IN_PROGRESS,
        TaskStatus.NOT_STARTED,
    },
    TaskStatus.ROLLED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {TaskStatus.ROLLED}


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed


class TimeSlotStatus(StrEnum):
    """时间块显示状态（读取时派生，不持久化）

    优先级：discarded > active > completed > missed > scheduled
    """

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    MISSED = "missed"
    DISCARDED = "discarded"


class EventType(StrEnum):
    """引擎事件类型"""

    TASK_CREATED = "TASK_CREATED"
    TASK_DELETED = "TASK_DELETED"
    TASK_STATUS_CHANGED = "TASK_STATUS_CHANGED"
    SLOT_ADDED = "SLOT_ADDED"
    SLOT_UPDATED = "SLOT_UPDATED"
    SLOT_REMOVED = "SLOT_REMOVED"
    SLOT_DISCARDED = "SLOT_DISCARDED"
    TIMER_STARTED = "TIMER_STARTED"
    TIMER_STOPPED = "TIMER_STOPPED"


class StartMode(StrEnum):
    """智能启动选择的路径"""

    RESUMED = "resumed"
    PREFERRED = "preferred"
    SCHEDULED = "scheduled"
    AD_HOC = "ad_hoc"


class StartOutcome(StrEnum):
    """启动结果信号"""

    STARTED = "started"
    ALREADY_ACTIVE = "already_active"


class StopOutcome(StrEnum):
    """停止结果信号"""

    STOPPED = "stopped"
    ALREADY_STOPPED = "already_stopped"


class AutoEndAction(StrEnum):
    """计划结束时间到达后的处理方式"""

    # 自动停止计时
    AUTO_END = "auto_end"
    # 仅提示用户，由用户决定是否继续
    REACHED_END = "reached_end"


class ExtensionOutcome(StrEnum):
    """提前开始时专注窗口延长的结果"""

    EXTENDED = "extended"
    ALREADY_EXTENDED = "already_extended"
    NOT_EARLY = "not_early"


class SuggestionStatus(StrEnum):
    """顺延建议状态"""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
