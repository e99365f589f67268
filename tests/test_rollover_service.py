"""RolloverService 测试"""

from datetime import UTC, date, datetime, timedelta

import pytest
import pytest_asyncio
from signalnoise.clock import FixedClock
from signalnoise.exceptions import SuggestionNotFoundError
from signalnoise.models import EventType, SuggestionStatus, TaskStatus
from signalnoise.services import RolloverService, SignalTaskService

TODAY = date(2026, 10, 14)
YESTERDAY = TODAY - timedelta(days=1)


def _at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(_at(TODAY, 8))


@pytest_asyncio.fixture
async def unfinished(store_group, make_task, make_slot):
    task = make_task(
        "unfinished",
        scheduled_date=YESTERDAY,
        created_at=_at(YESTERDAY, 8),
        time_slots=[
            make_slot(
                "s1",
                _at(YESTERDAY, 9),
                _at(YESTERDAY, 10),
                task_id="unfinished",
                accumulated_seconds=20 * 60,
            )
        ],
    )
    await store_group.task_store.save_task(task, task.created_at)
    await store_group.conn.commit()
    return task


@pytest_asyncio.fixture
async def task_service(store_group, clock):
    svc = SignalTaskService(store_group, clock)
    await svc.load_tasks(TODAY)
    return svc


@pytest.fixture
def rollover_service(store_group, clock, task_service) -> RolloverService:
    return RolloverService(store_group, clock, task_service=task_service)


class TestRolloverService:
    async def test_generate_once(self, rollover_service, unfinished):
        suggestions = await rollover_service.generate_suggestions()
        assert [s.original_task_id for s in suggestions] == ["unfinished"]
        assert suggestions[0].suggested_minutes == 40

        assert await rollover_service.generate_suggestions() == []
        pending = await rollover_service.pending_suggestions()
        assert [s.id for s in pending] == [suggestions[0].id]

    async def test_accept(self, rollover_service, task_service, store_group, unfinished):
        suggestion = (await rollover_service.generate_suggestions())[0]
        created = await rollover_service.accept(suggestion.id, modified_minutes=30)

        assert created.scheduled_date == TODAY
        assert created.estimated_minutes == 30
        assert created.rolled_from_task_id == "unfinished"
        assert [t.id for t in task_service.tasks] == [created.id]

        original = await store_group.task_store.get_task("unfinished")
        assert original.status == TaskStatus.ROLLED
        stored = await store_group.rollover_store.get_suggestion(suggestion.id)
        assert stored.status == SuggestionStatus.ACCEPTED
        assert stored.created_task_id == created.id
        assert await rollover_service.pending_suggestions() == []

        events = await store_group.event_store.get_events_for_task(created.id)
        assert [e.type for e in events] == [EventType.TASK_CREATED]

    async def test_dismiss(self, rollover_service, unfinished):
        suggestion = (await rollover_service.generate_suggestions())[0]
        dismissed = await rollover_service.dismiss(suggestion.id)
        assert dismissed.status == SuggestionStatus.DISMISSED
        assert await rollover_service.pending_suggestions() == []

    async def test_unknown_suggestion(self, rollover_service):
        with pytest.raises(SuggestionNotFoundError):
            await rollover_service.accept("missing")

    async def test_completed_task_not_suggested(self, rollover_service, store_group, unfinished):
        done = unfinished.model_copy(
            update={"is_complete": True, "status": TaskStatus.COMPLETED}
        )
        await store_group.task_store.save_task(done, done.created_at)
        await store_group.conn.commit()
        assert await rollover_service.generate_suggestions() == []
