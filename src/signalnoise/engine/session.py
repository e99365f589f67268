"""会话引擎 -- 时间块状态变更的纯函数

所有函数接收显式的 now，返回新的 SignalTask 与本次产生的事件，
不读取系统时钟，也不修改传入的对象。
同一任务同一时刻最多只有一个计时中的时间块。
"""

from datetime import date, datetime, timedelta
from typing import Any

from ulid import ULID

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..exceptions import InvalidTimeWindowError, InvalidTransitionError, SlotStateError
from ..models.enums import (
    TERMINAL_STATES,
    AutoEndAction,
    EventType,
    StartMode,
    StartOutcome,
    StopOutcome,
    TaskStatus,
    TimeSlotStatus,
    validate_transition,
)
from ..models.event import Event
from ..models.payloads import (
    SlotRemovedPayload,
    SlotWindowPayload,
    TaskCreatedPayload,
    TaskStatusChangedPayload,
    TimerStartedPayload,
    TimerStoppedPayload,
)
from ..models.results import AutoEndDecision, StartResult, StopResult, Transition
from ..models.task import SignalTask, SubTask
from ..models.time_slot import TimeSlot


def _new_id() -> str:
    return str(ULID())


def _event(
    task: SignalTask,
    event_type: EventType,
    now: datetime,
    slot_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> Event:
    return Event(
        event_id=_new_id(),
        task_id=task.id,
        slot_id=slot_id,
        ts=now,
        type=event_type,
        payload=payload or {},
    )


def _check_window(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidTimeWindowError(start, end)


def _with_status(
    task: SignalTask,
    to_status: TaskStatus,
    now: datetime,
    events: list[Event],
) -> SignalTask:
    """按状态机流转任务状态，同状态为 no-op"""
    if task.status == to_status:
        return task
    if not validate_transition(task.status, to_status):
        raise InvalidTransitionError(task.status, to_status)
    events.append(
        _event(
            task,
            EventType.TASK_STATUS_CHANGED,
            now,
            payload=TaskStatusChangedPayload(
                from_status=task.status,
                to_status=to_status,
            ).model_dump(mode="json"),
        )
    )
    return task.model_copy(update={"status": to_status})


def _window_payload(slot: TimeSlot, **extra: Any) -> dict[str, Any]:
    return SlotWindowPayload(
        planned_start_time=slot.planned_start_time,
        planned_end_time=slot.planned_end_time,
        auto_end=slot.auto_end,
        **extra,
    ).model_dump(mode="json")


# ============================================================
# 任务
# ============================================================


def new_task(
    title: str,
    estimated_minutes: int,
    scheduled_date: date,
    now: datetime,
    *,
    tag_ids: list[str] | None = None,
    sub_task_titles: list[str] | None = None,
    rolled_from_task_id: str | None = None,
    remaining_minutes_from_rollover: int | None = None,
) -> Transition:
    """创建 Signal 任务"""
    task = SignalTask(
        id=_new_id(),
        title=title,
        estimated_minutes=estimated_minutes,
        scheduled_date=scheduled_date,
        created_at=now,
        tag_ids=list(tag_ids or []),
        sub_tasks=[SubTask(id=_new_id(), title=t) for t in sub_task_titles or []],
        rolled_from_task_id=rolled_from_task_id,
        remaining_minutes_from_rollover=remaining_minutes_from_rollover,
    )
    event = _event(
        task,
        EventType.TASK_CREATED,
        now,
        payload=TaskCreatedPayload(
            title=title,
            estimated_minutes=estimated_minutes,
            rolled_from_task_id=rolled_from_task_id,
        ).model_dump(mode="json"),
    )
    return Transition(task=task, events=[event])


def complete_task(
    task: SignalTask,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Transition:
    """完成任务；计时中的时间块先结算"""
    events: list[Event] = []
    active = task.active_slot
    if active is not None:
        stop = stop_time_slot(task, active.id, now, config)
        task = stop.task
        events.extend(stop.events)
    task = _with_status(task, TaskStatus.COMPLETED, now, events)
    task = task.model_copy(update={"is_complete": True})
    return Transition(task=task, events=events)


def uncomplete_task(task: SignalTask, now: datetime) -> Transition:
    """取消完成，按是否记录过时长回到进行中或未开始"""
    events: list[Event] = []
    started = any(slot.has_started for slot in task.time_slots)
    target = TaskStatus.IN_PROGRESS if started else TaskStatus.NOT_STARTED
    task = _with_status(task, target, now, events)
    task = task.model_copy(update={"is_complete": False})
    return Transition(task=task, events=events)


def delete_task(
    task: SignalTask,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Transition:
    """删除任务前的收尾：结算计时，为每个未丢弃的时间块产生移除事件

    返回的 task 为删除前的最终状态，由调用方从存储中删除。
    """
    events: list[Event] = []
    active = task.active_slot
    if active is not None:
        stop = stop_time_slot(task, active.id, now, config)
        task = stop.task
        events.extend(stop.events)

    for slot in task.time_slots:
        if slot.is_discarded:
            continue
        events.append(
            _event(
                task,
                EventType.SLOT_REMOVED,
                now,
                slot.id,
                SlotRemovedPayload(
                    accumulated_seconds=slot.accumulated_seconds,
                    google_calendar_event_id=slot.google_calendar_event_id,
                ).model_dump(mode="json"),
            )
        )
    events.append(_event(task, EventType.TASK_DELETED, now))
    return Transition(task=task, events=events)


def mark_rolled(
    task: SignalTask,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Transition:
    """标记任务已顺延（终态）；计时中的时间块先结算"""
    events: list[Event] = []
    active = task.active_slot
    if active is not None:
        stop = stop_time_slot(task, active.id, now, config)
        task = stop.task
        events.extend(stop.events)
    task = _with_status(task, TaskStatus.ROLLED, now, events)
    return Transition(task=task, events=events)


# ============================================================
# 启动 / 停止
# ============================================================


def _is_startable(slot: TimeSlot, now: datetime, config: EngineConfig) -> bool:
    """未使用过、计划尚未结束，且计划开始时间在就近窗口内"""
    return (
        not slot.has_started
        and not slot.is_discarded
        and now < slot.planned_end_time
        and abs(slot.planned_start_time - now) <= config.slot_proximity
    )


def _nearest_unused_slot(
    task: SignalTask, now: datetime, config: EngineConfig
) -> TimeSlot | None:
    candidates = [slot for slot in task.time_slots if _is_startable(slot, now, config)]
    if not candidates:
        return None
    return min(candidates, key=lambda slot: abs(slot.planned_start_time - now))


def _activate(slot: TimeSlot, now: datetime) -> TimeSlot:
    return slot.model_copy(
        update={
            "actual_start_time": now,
            "actual_end_time": None,
            "session_start_time": slot.session_start_time or now,
        }
    )


def _resume(
    task: SignalTask, slot: TimeSlot, now: datetime, config: EngineConfig
) -> TimeSlot:
    """在合并窗口内恢复会话，已结算时长保持不变

    计划结束时间已过时，延长到 now + 剩余预估；预估已用完时延长 resume_extension_minutes。
    """
    update: dict[str, Any] = {"actual_start_time": now, "actual_end_time": None}
    if slot.planned_end_time <= now:
        extension = task.remaining_minutes(now) or config.resume_extension_minutes
        update["planned_end_time"] = now + timedelta(minutes=extension)
        update["was_manual_continue"] = True
    return slot.model_copy(update=update)


def smart_start_task(
    task: SignalTask,
    now: datetime,
    preferred_slot_id: str | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    *,
    auto_end: bool = True,
) -> StartResult:
    """智能启动任务计时

    选择顺序：
    1. 最近停止的时间块仍在合并窗口内 -> 恢复该会话
    2. 指定了时间块，且未使用、计划开始在就近窗口内 -> 启动该时间块
    3. 未指定时，就近窗口内最近的未使用计划时间块 -> 启动该时间块
    4. 以上都不满足 -> 创建从 now 开始的临时时间块

    已有计时中的时间块时不做任何变更，返回 ALREADY_ACTIVE。
    不会停止其他任务的计时。

    Raises:
        SlotNotFoundError: preferred_slot_id 不属于该任务
        InvalidTransitionError: 任务已顺延
    """
    active = task.active_slot
    if active is not None and active.actual_start_time is not None:
        return StartResult(
            task=task,
            slot_id=active.id,
            start_time=active.actual_start_time,
            outcome=StartOutcome.ALREADY_ACTIVE,
        )
    if task.status in TERMINAL_STATES:
        raise InvalidTransitionError(task.status, TaskStatus.IN_PROGRESS)

    preferred = task.get_slot(preferred_slot_id) if preferred_slot_id else None
    events: list[Event] = []
    last_stopped = task.last_stopped_slot

    if last_stopped is not None and last_stopped.can_merge_session(
        now, config.session_merge_threshold
    ):
        mode = StartMode.RESUMED
        slot = _resume(task, last_stopped, now, config)
        task = task.with_slot(slot)
        if slot.planned_end_time != last_stopped.planned_end_time:
            events.append(
                _event(
                    task,
                    EventType.SLOT_UPDATED,
                    now,
                    slot.id,
                    _window_payload(
                        slot,
                        previous_start_time=last_stopped.planned_start_time,
                        previous_end_time=last_stopped.planned_end_time,
                    ),
                )
            )
    elif preferred is not None and _is_startable(preferred, now, config):
        mode = StartMode.PREFERRED
        slot = _activate(preferred, now)
        task = task.with_slot(slot)
    elif preferred is None and (
        nearest := _nearest_unused_slot(task, now, config)
    ) is not None:
        mode = StartMode.SCHEDULED
        slot = _activate(nearest, now)
        task = task.with_slot(slot)
    else:
        mode = StartMode.AD_HOC
        minutes = task.remaining_minutes(now) or config.default_ad_hoc_minutes
        slot = TimeSlot(
            id=_new_id(),
            task_id=task.id,
            planned_start_time=now,
            planned_end_time=now + timedelta(minutes=minutes),
            actual_start_time=now,
            session_start_time=now,
            auto_end=auto_end,
            linked_sub_task_ids=list(preferred.linked_sub_task_ids) if preferred else [],
        )
        task = task.model_copy(update={"time_slots": [*task.time_slots, slot]})
        events.append(
            _event(
                task,
                EventType.SLOT_ADDED,
                now,
                slot.id,
                _window_payload(slot, ad_hoc=True),
            )
        )

    if task.is_complete:
        task = task.model_copy(update={"is_complete": False})
    task = _with_status(task, TaskStatus.IN_PROGRESS, now, events)
    events.append(
        _event(
            task,
            EventType.TIMER_STARTED,
            now,
            slot.id,
            TimerStartedPayload(
                mode=mode,
                start_time=now,
                accumulated_seconds=slot.accumulated_seconds,
            ).model_dump(mode="json"),
        )
    )
    return StartResult(
        task=task,
        events=events,
        slot_id=slot.id,
        start_time=now,
        mode=mode,
    )


def stop_time_slot(
    task: SignalTask,
    slot_id: str,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    *,
    auto_ended: bool = False,
) -> StopResult:
    """停止计时，将本次会话结算进 accumulated_seconds

    actual_start_time 保留；已停止的时间块返回 ALREADY_STOPPED，不重复结算。
    结算结果是否达到承诺阈值写入事件 payload，时长本身从不丢弃。

    Raises:
        SlotNotFoundError: 时间块不属于该任务
    """
    slot = task.get_slot(slot_id)
    if not slot.is_active or slot.actual_start_time is None:
        return StopResult(task=task, slot_id=slot_id, outcome=StopOutcome.ALREADY_STOPPED)

    session_seconds = slot.running_seconds(now)
    stopped = slot.model_copy(
        update={
            "accumulated_seconds": slot.accumulated_seconds + session_seconds,
            "actual_end_time": max(now, slot.actual_start_time),
            "last_stop_time": now,
        }
    )
    task = task.with_slot(stopped)
    committed = stopped.accumulated_seconds >= task.commitment_threshold(
        config
    ).total_seconds()
    event = _event(
        task,
        EventType.TIMER_STOPPED,
        now,
        slot_id,
        TimerStoppedPayload(
            session_seconds=session_seconds,
            accumulated_seconds=stopped.accumulated_seconds,
            committed=committed,
            auto_ended=auto_ended,
        ).model_dump(mode="json"),
    )
    return StopResult(
        task=task,
        events=[event],
        slot_id=slot_id,
        session_seconds=session_seconds,
    )


def compute_live_elapsed(task: SignalTask, slot_id: str, now: datetime) -> int:
    """计时显示用的实时秒数

    = 其他未丢弃时间块的实际时长 + 本时间块已结算时长 + 进行中会话时长
    只读，不修改任何状态。
    """
    slot = task.get_slot(slot_id)
    others = sum(
        other.actual_seconds(now)
        for other in task.time_slots
        if other.id != slot_id and not other.is_discarded
    )
    return others + slot.actual_seconds(now)


# ============================================================
# 排期
# ============================================================


def add_time_slot(
    task: SignalTask,
    planned_start: datetime,
    planned_end: datetime,
    now: datetime,
    *,
    auto_end: bool = True,
    linked_sub_task_ids: list[str] | None = None,
    external_calendar_event_id: str | None = None,
) -> Transition:
    """添加计划时间块

    Raises:
        InvalidTimeWindowError: planned_start 不早于 planned_end
    """
    _check_window(planned_start, planned_end)
    slot = TimeSlot(
        id=_new_id(),
        task_id=task.id,
        planned_start_time=planned_start,
        planned_end_time=planned_end,
        auto_end=auto_end,
        linked_sub_task_ids=list(linked_sub_task_ids or []),
        external_calendar_event_id=external_calendar_event_id,
    )
    task = task.model_copy(update={"time_slots": [*task.time_slots, slot]})
    event = _event(task, EventType.SLOT_ADDED, now, slot.id, _window_payload(slot))
    return Transition(task=task, events=[event])


def update_time_slot(
    task: SignalTask,
    slot_id: str,
    now: datetime,
    *,
    planned_start: datetime | None = None,
    planned_end: datetime | None = None,
    auto_end: bool | None = None,
    linked_sub_task_ids: list[str] | None = None,
) -> Transition:
    """修改时间块计划

    未传入的字段保持不变；无实际变化时不产生事件。

    Raises:
        SlotNotFoundError: 时间块不属于该任务
        InvalidTimeWindowError: 修改后的窗口非法
        SlotStateError: 时间块已丢弃
    """
    slot = task.get_slot(slot_id)
    if slot.is_discarded:
        raise SlotStateError(slot_id, "已丢弃的时间块不可修改")

    new_start = planned_start or slot.planned_start_time
    new_end = planned_end or slot.planned_end_time
    _check_window(new_start, new_end)

    update: dict[str, Any] = {}
    if new_start != slot.planned_start_time:
        update["planned_start_time"] = new_start
    if new_end != slot.planned_end_time:
        update["planned_end_time"] = new_end
    if auto_end is not None and auto_end != slot.auto_end:
        update["auto_end"] = auto_end
    if linked_sub_task_ids is not None and linked_sub_task_ids != slot.linked_sub_task_ids:
        update["linked_sub_task_ids"] = list(linked_sub_task_ids)
    if not update:
        return Transition(task=task)

    updated = slot.model_copy(update=update)
    task = task.with_slot(updated)
    event = _event(
        task,
        EventType.SLOT_UPDATED,
        now,
        slot_id,
        _window_payload(
            updated,
            previous_start_time=slot.planned_start_time,
            previous_end_time=slot.planned_end_time,
        ),
    )
    return Transition(task=task, events=[event])


def discard_slot(
    task: SignalTask,
    slot_id: str,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Transition:
    """丢弃时间块

    计时中的会话先结算；已记录的时长保留在任务的实际时长中，
    只从排期、日历展示和实时计时中排除。
    """
    slot = task.get_slot(slot_id)
    if slot.is_discarded:
        return Transition(task=task)

    events: list[Event] = []
    if slot.is_active:
        stop = stop_time_slot(task, slot_id, now, config)
        task = stop.task
        events.extend(stop.events)
        slot = task.get_slot(slot_id)

    task = task.with_slot(slot.model_copy(update={"is_discarded": True}))
    events.append(
        _event(
            task,
            EventType.SLOT_DISCARDED,
            now,
            slot_id,
            SlotRemovedPayload(
                accumulated_seconds=slot.accumulated_seconds,
                google_calendar_event_id=slot.google_calendar_event_id,
            ).model_dump(mode="json"),
        )
    )
    return Transition(task=task, events=events)


def remove_time_slot(
    task: SignalTask,
    slot_id: str,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Transition:
    """移除时间块

    记录过时长的时间块转为丢弃，从未开始的才物理删除。
    """
    slot = task.get_slot(slot_id)
    if slot.has_started:
        return discard_slot(task, slot_id, now, config)

    task = task.model_copy(
        update={"time_slots": [s for s in task.time_slots if s.id != slot_id]}
    )
    event = _event(
        task,
        EventType.SLOT_REMOVED,
        now,
        slot_id,
        SlotRemovedPayload(
            google_calendar_event_id=slot.google_calendar_event_id,
        ).model_dump(mode="json"),
    )
    return Transition(task=task, events=[event])


def reschedule_missed_slot(
    task: SignalTask,
    slot_id: str,
    new_start: datetime,
    now: datetime,
    duration: timedelta | None = None,
) -> Transition:
    """将错过的时间块改期到新的开始时间，默认保持原计划时长

    Raises:
        SlotStateError: 时间块已记录时长
    """
    slot = task.get_slot(slot_id)
    if slot.has_started:
        raise SlotStateError(slot_id, "已记录时长的时间块不可改期，请新建时间块")

    new_end = new_start + (duration if duration is not None else slot.planned_duration)
    _check_window(new_start, new_end)
    updated = slot.model_copy(
        update={
            "planned_start_time": new_start,
            "planned_end_time": new_end,
            "is_discarded": False,
        }
    )
    task = task.with_slot(updated)
    event = _event(
        task,
        EventType.SLOT_UPDATED,
        now,
        slot_id,
        _window_payload(
            updated,
            previous_start_time=slot.planned_start_time,
            previous_end_time=slot.planned_end_time,
        ),
    )
    return Transition(task=task, events=[event])


def continue_time_slot(task: SignalTask, slot_id: str, now: datetime) -> Transition:
    """计划结束后继续计时：关闭自动结束

    Raises:
        SlotStateError: 时间块不在计时中
    """
    slot = task.get_slot(slot_id)
    if not slot.is_active:
        raise SlotStateError(slot_id, "只有计时中的时间块可以继续")
    if slot.was_manual_continue and not slot.auto_end:
        return Transition(task=task)

    updated = slot.model_copy(update={"was_manual_continue": True, "auto_end": False})
    task = task.with_slot(updated)
    event = _event(task, EventType.SLOT_UPDATED, now, slot_id, _window_payload(updated))
    return Transition(task=task, events=[event])


# ============================================================
# 只读查询
# ============================================================


def check_auto_end(
    task: SignalTask,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> AutoEndDecision | None:
    """检查计时中的时间块是否已超过计划结束（含宽限期）

    手动继续过的时间块不再检查。
    """
    slot = task.active_slot
    if slot is None or slot.was_manual_continue:
        return None
    if now < slot.planned_end_time + config.auto_end_grace:
        return None
    action = AutoEndAction.AUTO_END if slot.auto_end else AutoEndAction.REACHED_END
    return AutoEndDecision(
        task_id=task.id,
        slot_id=slot.id,
        action=action,
        planned_end_time=slot.planned_end_time,
    )


def missed_slots(task: SignalTask, now: datetime) -> list[TimeSlot]:
    return [slot for slot in task.time_slots if slot.is_missed(now)]


def group_slots_by_status(
    task: SignalTask, now: datetime
) -> dict[TimeSlotStatus, list[TimeSlot]]:
    groups: dict[TimeSlotStatus, list[TimeSlot]] = {status: [] for status in TimeSlotStatus}
    for slot in task.time_slots:
        groups[slot.status(now)].append(slot)
    return groups
