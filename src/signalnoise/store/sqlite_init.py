"""SQLite 数据库初始化

PRAGMA 配置 + 表 DDL + 索引创建。
Signal 任务以 JSON 文档整体存储（时间块嵌套其中），事件表 append-only。
"""

import aiosqlite

_SIGNAL_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS signal_tasks (
    task_id         TEXT PRIMARY KEY,
    scheduled_date  TEXT NOT NULL,
    status          TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL,
    document        TEXT NOT NULL
);
"""

_SIGNAL_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_signal_tasks_date ON signal_tasks(scheduled_date);",
]

# 任务删除后事件仍保留，因此不设外键
_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS events (
    event_id    TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    slot_id     TEXT,
    task_seq    INTEGER NOT NULL,
    ts          TEXT NOT NULL,
    type        TEXT NOT NULL,
    payload     TEXT NOT NULL DEFAULT '{}'
);
"""

_EVENTS_INDEXES = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_events_task_seq ON events(task_id, task_seq);",
    "CREATE INDEX IF NOT EXISTS idx_events_slot_id ON events(slot_id);",
]

_SETTINGS_DDL = """
CREATE TABLE IF NOT EXISTS settings (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""

# 每日专注窗口起点覆盖（提前开始时写入，每天最多一条）
_FOCUS_OVERRIDES_DDL = """
CREATE TABLE IF NOT EXISTS focus_overrides (
    day             TEXT PRIMARY KEY,
    effective_start TEXT NOT NULL
);
"""

_ROLLOVER_DDL = """
CREATE TABLE IF NOT EXISTS rollover_suggestions (
    suggestion_id       TEXT PRIMARY KEY,
    original_task_id    TEXT NOT NULL,
    suggested_for_date  TEXT NOT NULL,
    status              TEXT NOT NULL,
    document            TEXT NOT NULL
);
"""

_ROLLOVER_INDEXES = [
    (
        "CREATE INDEX IF NOT EXISTS idx_rollover_for_date "
        "ON rollover_suggestions(suggested_for_date);"
    ),
    (
        "CREATE INDEX IF NOT EXISTS idx_rollover_original "
        "ON rollover_suggestions(original_task_id);"
    ),
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引"""
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    for ddl in (
        _SIGNAL_TASKS_DDL,
        _EVENTS_DDL,
        _SETTINGS_DDL,
        _FOCUS_OVERRIDES_DDL,
        _ROLLOVER_DDL,
    ):
        await conn.execute(ddl)

    for idx_sql in _SIGNAL_TASKS_INDEXES + _EVENTS_INDEXES + _ROLLOVER_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效"""
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
