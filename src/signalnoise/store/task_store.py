"""TaskStore SQLite 实现

Signal 任务以 JSON 文档存储，scheduled_date / status 冗余为列用于查询。
所有写操作不自动提交，由调用方管理事务。
"""

from datetime import date, datetime

import aiosqlite

from ..models.task import SignalTask


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_task(self, task: SignalTask, updated_at: datetime) -> None:
        """插入或覆盖任务文档"""
        await self._conn.execute(
            """
            INSERT INTO signal_tasks (task_id, scheduled_date, status,
                                      created_at, updated_at, document)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(task_id) DO UPDATE SET
                scheduled_date = excluded.scheduled_date,
                status = excluded.status,
                updated_at = excluded.updated_at,
                document = excluded.document
            """,
            (
                task.id,
                task.scheduled_date.isoformat(),
                task.status.value,
                task.created_at.isoformat(),
                updated_at.isoformat(),
                task.model_dump_json(),
            ),
        )

    async def get_task(self, task_id: str) -> SignalTask | None:
        cursor = await self._conn.execute(
            "SELECT document FROM signal_tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return SignalTask.model_validate_json(row[0])

    async def list_tasks_for_date(self, day: date) -> list[SignalTask]:
        """查询指定日期的任务，按创建时间正序"""
        return await self.list_tasks_in_range(day, day)

    async def list_tasks_in_range(self, start: date, end: date) -> list[SignalTask]:
        """查询 [start, end] 日期范围内的任务"""
        cursor = await self._conn.execute(
            """
            SELECT document FROM signal_tasks
            WHERE scheduled_date BETWEEN ? AND ?
            ORDER BY scheduled_date ASC, created_at ASC
            """,
            (start.isoformat(), end.isoformat()),
        )
        rows = await cursor.fetchall()
        return [SignalTask.model_validate_json(row[0]) for row in rows]

    async def delete_task(self, task_id: str) -> None:
        await self._conn.execute(
            "DELETE FROM signal_tasks WHERE task_id = ?",
            (task_id,),
        )
