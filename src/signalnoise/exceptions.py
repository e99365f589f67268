"""signalnoise 异常体系

引擎与服务层抛出的所有业务异常均继承 SignalNoiseError。
"已在计时"/"已停止" 属于结果信号而非异常，见 StartOutcome / StopOutcome。
"""

from datetime import datetime


class SignalNoiseError(Exception):
    """signalnoise 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过修正输入或重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class TaskNotFoundError(SignalNoiseError):
    """任务不存在"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"任务不存在: {task_id}")
        self.task_id = task_id


class SlotNotFoundError(SignalNoiseError):
    """时间块不属于该任务"""

    def __init__(self, task_id: str, slot_id: str) -> None:
        super().__init__(f"任务 {task_id} 中不存在时间块: {slot_id}")
        self.task_id = task_id
        self.slot_id = slot_id


class SuggestionNotFoundError(SignalNoiseError):
    """顺延建议不存在"""

    def __init__(self, suggestion_id: str) -> None:
        super().__init__(f"顺延建议不存在: {suggestion_id}")
        self.suggestion_id = suggestion_id


class InvalidTimeWindowError(SignalNoiseError):
    """计划时间窗口非法（开始时间不早于结束时间）"""

    def __init__(self, start: datetime, end: datetime) -> None:
        super().__init__(
            f"计划开始时间必须早于结束时间: {start.isoformat()} >= {end.isoformat()}"
        )
        self.start = start
        self.end = end


class InvalidTransitionError(SignalNoiseError):
    """任务状态流转非法"""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"非法状态流转: {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class SlotStateError(SignalNoiseError):
    """时间块当前状态不允许该操作（例如对已记录时长的时间块重新排期）"""

    def __init__(self, slot_id: str, reason: str) -> None:
        super().__init__(f"时间块 {slot_id} 不允许此操作: {reason}")
        self.slot_id = slot_id
        self.reason = reason


class TaskLimitReachedError(SignalNoiseError):
    """当日 Signal 任务数量已达上限"""

    def __init__(self, limit: int) -> None:
        super().__init__(f"当日 Signal 任务已达上限 {limit} 个")
        self.limit = limit


class InvalidScheduleError(SignalNoiseError):
    """专注时间表配置非法"""

    def __init__(self, day_of_week: int, reason: str) -> None:
        super().__init__(f"星期 {day_of_week} 的专注时间非法: {reason}")
        self.day_of_week = day_of_week
        self.reason = reason


class PersistenceError(SignalNoiseError):
    """持久化失败

    内存状态已更新，调用方可通过 flush() 重试写入。
    """

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的存储操作
            original_error: 原始异常
        """
        super().__init__(
            f"持久化失败: {operation} -- {original_error}",
            recoverable=True,
        )
        self.operation = operation
        self.original_error = original_error
