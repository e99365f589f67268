"""EventStore SQLite 实现

事件表 append-only：只允许插入，不允许更新或删除。
task_seq 同一 task 内严格单调递增。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.enums import EventType
from ..models.event import Event


class SqliteEventStore:
    """EventStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_event(self, event: Event) -> None:
        """追加事件（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO events (event_id, task_id, slot_id, task_seq, ts, type, payload)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                event.task_id,
                event.slot_id,
                event.task_seq,
                event.ts.isoformat(),
                event.type.value,
                json.dumps(event.payload, ensure_ascii=False),
            ),
        )

    async def get_events_for_task(self, task_id: str) -> list[Event]:
        """查询指定任务的所有事件，按 task_seq 正序"""
        cursor = await self._conn.execute(
            """
            SELECT event_id, task_id, slot_id, task_seq, ts, type, payload
            FROM events WHERE task_id = ? ORDER BY task_seq ASC
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def get_events_for_slot(self, slot_id: str) -> list[Event]:
        """查询指定时间块的所有事件"""
        cursor = await self._conn.execute(
            """
            SELECT event_id, task_id, slot_id, task_seq, ts, type, payload
            FROM events WHERE slot_id = ? ORDER BY task_seq ASC
            """,
            (slot_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq（MAX+1），需在事务内调用"""
        cursor = await self._conn.execute(
            "SELECT COALESCE(MAX(task_seq), 0) FROM events WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return (row[0] if row else 0) + 1

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> Event:
        return Event(
            event_id=row[0],
            task_id=row[1],
            slot_id=row[2],
            task_seq=row[3],
            ts=datetime.fromisoformat(row[4]),
            type=EventType(row[5]),
            payload=json.loads(row[6]) if row[6] else {},
        )
