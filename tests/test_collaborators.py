"""EventDispatcher 路由测试"""

from datetime import UTC, datetime

import pytest
from signalnoise.models import Event, EventType
from signalnoise.services import EventDispatcher


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 14, hour, minute, tzinfo=UTC)


def _event(event_type: EventType, slot_id: str | None = "s1", **payload) -> Event:
    return Event(
        event_id=f"evt-{event_type}",
        task_id="task-1",
        slot_id=slot_id,
        ts=_at(9),
        type=event_type,
        payload=payload,
    )


@pytest.fixture
def task(make_task, make_slot):
    return make_task(time_slots=[make_slot("s1", _at(9), _at(10))])


@pytest.fixture
def dispatcher(calendar, notifications) -> EventDispatcher:
    return EventDispatcher(calendar, notifications)


class TestEventDispatcher:
    @pytest.mark.parametrize("event_type", [EventType.SLOT_REMOVED, EventType.SLOT_DISCARDED])
    async def test_removed_cancels_and_removes(
        self, dispatcher, calendar, notifications, task, event_type
    ):
        await dispatcher.dispatch(task, [_event(event_type, google_calendar_event_id="g1")])
        assert notifications.calls == [("cancel", "s1")]
        assert calendar.calls == [("removed", "s1")]

    async def test_planned_slot_added(self, dispatcher, calendar, notifications, task):
        await dispatcher.dispatch(task, [_event(EventType.SLOT_ADDED, ad_hoc=False)])
        assert notifications.calls == [("cancel", "s1"), ("schedule", "s1")]
        assert calendar.calls == [("added", "s1")]

    async def test_ad_hoc_slot_not_synced(self, dispatcher, calendar, task):
        await dispatcher.dispatch(task, [_event(EventType.SLOT_ADDED, ad_hoc=True)])
        assert calendar.calls == []

    async def test_timer_started_reschedules(self, dispatcher, calendar, notifications, task):
        await dispatcher.dispatch(task, [_event(EventType.TIMER_STARTED)])
        assert notifications.calls == [("cancel", "s1"), ("schedule", "s1")]
        assert calendar.calls == []

    @pytest.mark.parametrize("committed,expected", [(True, [("updated", "s1")]), (False, [])])
    async def test_timer_stopped_syncs_committed(
        self, dispatcher, calendar, notifications, task, committed, expected
    ):
        await dispatcher.dispatch(task, [_event(EventType.TIMER_STOPPED, committed=committed)])
        assert notifications.calls == [("cancel", "s1")]
        assert calendar.calls == expected

    async def test_task_level_event_ignored(self, dispatcher, calendar, notifications, task):
        await dispatcher.dispatch(task, [_event(EventType.TASK_CREATED, slot_id=None)])
        assert calendar.calls == []
        assert notifications.calls == []

    async def test_failure_does_not_stop_later_events(
        self, failing_calendar, notifications, task
    ):
        """日历失败只记录日志，后续事件照常分发"""
        dispatcher = EventDispatcher(failing_calendar, notifications)
        await dispatcher.dispatch(
            task,
            [
                _event(EventType.SLOT_UPDATED),
                _event(EventType.TIMER_STARTED),
            ],
        )
        assert notifications.calls == [
            ("cancel", "s1"),
            ("schedule", "s1"),
            ("cancel", "s1"),
            ("schedule", "s1"),
        ]

    async def test_without_collaborators(self, task):
        await EventDispatcher().dispatch(task, [_event(EventType.SLOT_ADDED)])
