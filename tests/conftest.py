"""全局 pytest 配置 -- 固定时钟、任务构造与临时 SQLite 数据库 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, date, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from signalnoise.clock import FixedClock
from signalnoise.models import SignalTask, TimeSlot
from signalnoise.store import StoreGroup, create_store_group

# 2026-10-14 为周三
DAY = date(2026, 10, 14)


def at(hour: int, minute: int = 0, second: int = 0, day: date = DAY) -> datetime:
    """DAY 当天的 UTC 时间"""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=UTC)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(at(9))


@pytest.fixture
def make_task() -> Callable[..., SignalTask]:
    """构造 SignalTask"""

    def _make(
        task_id: str = "task-1",
        estimated_minutes: int = 60,
        scheduled_date: date = DAY,
        **kwargs,
    ) -> SignalTask:
        return SignalTask(
            id=task_id,
            title=kwargs.pop("title", "写季度报告"),
            estimated_minutes=estimated_minutes,
            scheduled_date=scheduled_date,
            created_at=kwargs.pop("created_at", at(8)),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_slot() -> Callable[..., TimeSlot]:
    """构造 TimeSlot"""

    def _make(
        slot_id: str,
        start: datetime,
        end: datetime,
        task_id: str = "task-1",
        **kwargs,
    ) -> TimeSlot:
        return TimeSlot(
            id=slot_id,
            task_id=task_id,
            planned_start_time=start,
            planned_end_time=end,
            **kwargs,
        )

    return _make


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """已初始化的临时 SQLite 数据库连接"""
    from signalnoise.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "test.db"))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """临时数据库上的 StoreGroup"""
    group = await create_store_group(str(tmp_path / "sqlite" / "signalnoise.db"))
    yield group
    await group.close()


class RecordingCalendar:
    """记录调用的日历同步实现"""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = fail

    async def slot_added(self, task, slot) -> None:
        self._record("added", slot.id)

    async def slot_updated(self, task, slot) -> None:
        self._record("updated", slot.id)

    async def slot_removed(self, task, slot_id, google_calendar_event_id) -> None:
        self._record("removed", slot_id)

    def _record(self, action: str, slot_id: str) -> None:
        if self.fail:
            raise RuntimeError("calendar unavailable")
        self.calls.append((action, slot_id))


class RecordingNotifications:
    """记录调用的提醒调度实现"""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def cancel_slot_reminders(self, slot_id: str) -> None:
        self.calls.append(("cancel", slot_id))

    async def schedule_slot_reminders(self, task, slot) -> None:
        self.calls.append(("schedule", slot.id))


@pytest.fixture
def calendar() -> RecordingCalendar:
    return RecordingCalendar()


@pytest.fixture
def notifications() -> RecordingNotifications:
    return RecordingNotifications()


@pytest.fixture
def failing_calendar() -> RecordingCalendar:
    return RecordingCalendar(fail=True)
