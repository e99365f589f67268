"""signalnoise Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .event_store import SqliteEventStore
from .rollover_store import SqliteRolloverStore
from .settings_store import SqliteSettingsStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import delete_task_with_events, save_tasks_with_events


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.event_store = SqliteEventStore(conn)
        self.settings_store = SqliteSettingsStore(conn)
        self.rollover_store = SqliteRolloverStore(conn)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径，":memory:" 表示内存数据库
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteEventStore",
    "SqliteSettingsStore",
    "SqliteRolloverStore",
    "init_db",
    "save_tasks_with_events",
    "delete_task_with_events",
]
