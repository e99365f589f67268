"""SQLite Store 单元测试

测试内容：
1. 任务文档 + 事件的原子写入与回滚
2. task_seq 任务内单调递增
3. 重启后数据仍可读取
4. 设置 / 专注窗口覆盖 / 顺延建议存储
"""

from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest
from signalnoise.engine import session
from signalnoise.models import (
    DaySchedule,
    EventType,
    RolloverSuggestion,
    SuggestionStatus,
    TaskStatus,
    UserSettings,
)
from signalnoise.store import (
    SqliteEventStore,
    SqliteRolloverStore,
    SqliteSettingsStore,
    SqliteTaskStore,
    create_store_group,
)
from signalnoise.store.sqlite_init import verify_wal_mode
from signalnoise.store.transaction import delete_task_with_events, save_tasks_with_events

DAY = date(2026, 10, 14)
NOW = datetime(2026, 10, 14, 9, 0, tzinfo=UTC)


class TestSqliteInit:
    async def test_wal_mode(self, db_conn):
        assert await verify_wal_mode(db_conn)

    async def test_tables_created(self, db_conn):
        cursor = await db_conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        )
        tables = {row[0] for row in await cursor.fetchall()}
        assert {
            "signal_tasks",
            "events",
            "settings",
            "focus_overrides",
            "rollover_suggestions",
        } <= tables


class TestTaskTransaction:
    """任务文档与事件在同一事务内写入"""

    async def test_save_assigns_task_seq(self, db_conn):
        task_store, event_store = SqliteTaskStore(db_conn), SqliteEventStore(db_conn)
        created = session.new_task("写季度报告", 60, DAY, NOW)
        started = session.smart_start_task(created.task, NOW)

        await save_tasks_with_events(
            db_conn, task_store, event_store, [created.task], created.events, NOW
        )
        stamped = await save_tasks_with_events(
            db_conn, task_store, event_store, [started.task], started.events, NOW
        )

        assert [event.task_seq for event in stamped] == [2, 3, 4]
        events = await event_store.get_events_for_task(created.task.id)
        assert [event.task_seq for event in events] == [1, 2, 3, 4]
        assert [event.type for event in events] == [
            EventType.TASK_CREATED,
            EventType.SLOT_ADDED,
            EventType.TASK_STATUS_CHANGED,
            EventType.TIMER_STARTED,
        ]
        slot_events = await event_store.get_events_for_slot(started.slot_id)
        assert len(slot_events) == 2

        stored = await task_store.get_task(created.task.id)
        assert stored == started.task

    async def test_rollback_on_failure(self, db_conn):
        """重复 event_id 导致写入失败时，任务文档也不落盘"""
        task_store, event_store = SqliteTaskStore(db_conn), SqliteEventStore(db_conn)
        created = session.new_task("写季度报告", 60, DAY, NOW)
        await save_tasks_with_events(
            db_conn, task_store, event_store, [created.task], created.events, NOW
        )

        completed = session.complete_task(created.task, NOW)
        with pytest.raises(Exception):
            await save_tasks_with_events(
                db_conn,
                task_store,
                event_store,
                [completed.task],
                [*completed.events, created.events[0]],
                NOW,
            )

        stored = await task_store.get_task(created.task.id)
        assert stored.status == TaskStatus.NOT_STARTED
        events = await event_store.get_events_for_task(created.task.id)
        assert len(events) == 1

    async def test_delete_keeps_events(self, db_conn):
        task_store, event_store = SqliteTaskStore(db_conn), SqliteEventStore(db_conn)
        created = session.new_task("写季度报告", 60, DAY, NOW)
        await save_tasks_with_events(
            db_conn, task_store, event_store, [created.task], created.events, NOW
        )

        deleted = session.delete_task(created.task, NOW)
        await delete_task_with_events(
            db_conn, task_store, event_store, created.task.id, deleted.events
        )

        assert await task_store.get_task(created.task.id) is None
        events = await event_store.get_events_for_task(created.task.id)
        assert events[-1].type == EventType.TASK_DELETED

    async def test_list_by_date_range(self, db_conn):
        task_store = SqliteTaskStore(db_conn)
        for offset, title in enumerate(["周一", "周二", "周三"]):
            task = session.new_task(title, 30, DAY + timedelta(days=offset), NOW).task
            await task_store.save_task(task, NOW)
        await db_conn.commit()

        assert [t.title for t in await task_store.list_tasks_for_date(DAY)] == ["周一"]
        in_range = await task_store.list_tasks_in_range(DAY, DAY + timedelta(days=1))
        assert [t.title for t in in_range] == ["周一", "周二"]


class TestDurability:
    """重新打开数据库后数据仍在"""

    async def test_reopen(self, tmp_path: Path):
        db_path = str(tmp_path / "sqlite" / "signalnoise.db")
        group = await create_store_group(db_path)
        created = session.new_task("写季度报告", 60, DAY, NOW)
        started = session.smart_start_task(created.task, NOW)
        stopped = session.stop_time_slot(
            started.task, started.slot_id, NOW + timedelta(minutes=20)
        )
        await save_tasks_with_events(
            group.conn,
            group.task_store,
            group.event_store,
            [stopped.task],
            [*created.events, *started.events, *stopped.events],
            NOW,
        )
        await group.close()

        reopened = await create_store_group(db_path)
        try:
            task = await reopened.task_store.get_task(created.task.id)
            assert task is not None
            assert task.get_slot(started.slot_id).accumulated_seconds == 1200
            events = await reopened.event_store.get_events_for_task(task.id)
            assert len(events) == 5
        finally:
            await reopened.close()


class TestSettingsStore:
    async def test_settings_round_trip(self, db_conn):
        store = SqliteSettingsStore(db_conn)
        assert await store.get_settings() is None

        settings = UserSettings(timezone="Asia/Shanghai")
        settings.weekly_schedule[6] = DaySchedule(day_of_week=6, is_active_day=False)
        await store.save_settings(settings)

        loaded = await store.get_settings()
        assert loaded == settings
        assert not loaded.weekly_schedule[6].is_active_day

    async def test_focus_override_first_write_wins(self, db_conn):
        store = SqliteSettingsStore(db_conn)
        first = NOW.replace(hour=7)
        await store.set_focus_override(DAY, first)
        await store.set_focus_override(DAY, NOW.replace(hour=6))

        assert await store.get_focus_override(DAY) == first
        overrides = await store.list_focus_overrides(DAY - timedelta(days=2), DAY)
        assert overrides == {DAY: first}

        await store.clear_focus_override(DAY)
        assert await store.get_focus_override(DAY) is None


class TestRolloverStore:
    async def test_save_and_filter(self, db_conn):
        store = SqliteRolloverStore(db_conn)
        suggestion = RolloverSuggestion(
            id="sugg-1",
            original_task_id="task-1",
            original_task_title="写季度报告",
            suggested_minutes=30,
            suggested_for_date=DAY,
            created_at=NOW,
        )
        await store.save_suggestion(suggestion)
        await store.save_suggestion(
            suggestion.model_copy(update={"id": "sugg-2", "original_task_id": "task-2"})
        )
        await store.save_suggestion(
            suggestion.model_copy(update={"status": SuggestionStatus.DISMISSED})
        )
        await db_conn.commit()

        pending = await store.list_suggestions(DAY, SuggestionStatus.PENDING)
        assert [s.id for s in pending] == ["sugg-2"]
        assert len(await store.list_suggestions(DAY)) == 2
        assert (await store.get_suggestion("sugg-1")).status == SuggestionStatus.DISMISSED
        assert await store.list_original_task_ids() == {"task-1", "task-2"}
