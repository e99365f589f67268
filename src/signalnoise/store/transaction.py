"""任务文档 + 事件原子事务封装

在同一 SQLite 事务内提交任务文档与其产生的事件，
写入时为事件分配 task_seq；失败时回滚并重新抛出。
"""

from collections.abc import Sequence
from datetime import datetime

import aiosqlite

from ..models.event import Event
from ..models.rollover import RolloverSuggestion
from ..models.task import SignalTask
from .event_store import SqliteEventStore
from .rollover_store import SqliteRolloverStore
from .task_store import SqliteTaskStore


async def _append_with_seq(
    event_store: SqliteEventStore,
    events: Sequence[Event],
) -> list[Event]:
    next_seq: dict[str, int] = {}
    stamped: list[Event] = []
    for event in events:
        if event.task_id not in next_seq:
            next_seq[event.task_id] = await event_store.get_next_task_seq(event.task_id)
        event = event.model_copy(update={"task_seq": next_seq[event.task_id]})
        next_seq[event.task_id] += 1
        await event_store.append_event(event)
        stamped.append(event)
    return stamped


async def save_tasks_with_events(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    event_store: SqliteEventStore,
    tasks: Sequence[SignalTask],
    events: Sequence[Event],
    updated_at: datetime,
    *,
    rollover_store: SqliteRolloverStore | None = None,
    suggestions: Sequence[RolloverSuggestion] = (),
) -> list[Event]:
    """在同一事务内写入任务文档、事件与顺延建议

    Returns:
        已分配 task_seq 的事件

    Raises:
        Exception: 如果事务提交失败，自动回滚
    """
    try:
        for task in tasks:
            await task_store.save_task(task, updated_at)
        stamped = await _append_with_seq(event_store, events)
        if suggestions:
            if rollover_store is None:
                raise ValueError("写入顺延建议需要 rollover_store")
            for suggestion in suggestions:
                await rollover_store.save_suggestion(suggestion)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return stamped


async def delete_task_with_events(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    event_store: SqliteEventStore,
    task_id: str,
    events: Sequence[Event],
) -> list[Event]:
    """删除任务文档并写入删除相关事件（事件保留）"""
    try:
        await task_store.delete_task(task_id)
        stamped = await _append_with_seq(event_store, events)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return stamped
