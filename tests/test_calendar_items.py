"""日历项构建单元测试"""

from datetime import UTC, datetime

from signalnoise.engine import build_calendar_items, session
from signalnoise.models import ExternalEventItem, SignalSlotItem, TimeSlotStatus


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 14, hour, minute, tzinfo=UTC)


class TestBuildCalendarItems:
    """合并时间块与外部事件"""

    def test_sorted_by_start(self, make_task, make_slot):
        task = make_task(
            tag_ids=["deep"],
            time_slots=[
                make_slot("late", _at(15), _at(16)),
                make_slot("early", _at(8), _at(9)),
            ],
        )
        meeting = ExternalEventItem(
            event_id="evt-1", title="团队周会", start=_at(10), end=_at(11)
        )
        items = build_calendar_items([task], [meeting], _at(9, 30))

        assert [item.start for item in items] == [_at(8), _at(10), _at(15)]
        first = items[0]
        assert isinstance(first, SignalSlotItem)
        assert first.title == "写季度报告"
        assert first.tag_ids == ["deep"]
        assert first.status == TimeSlotStatus.MISSED

    def test_discarded_slot_hidden_but_time_kept(self, make_task):
        started = session.smart_start_task(make_task(), _at(9))
        stopped = session.stop_time_slot(started.task, started.slot_id, _at(9, 25)).task
        discarded = session.discard_slot(stopped, started.slot_id, _at(9, 30)).task

        assert build_calendar_items([discarded], [], _at(10)) == []
        assert discarded.actual_minutes(_at(10)) == 25

    def test_imported_event_not_duplicated(self, make_task, make_slot):
        task = make_task(
            time_slots=[
                make_slot("s1", _at(10), _at(11), external_calendar_event_id="evt-1")
            ]
        )
        imported = ExternalEventItem(
            event_id="evt-1", title="写季度报告", start=_at(10), end=_at(11)
        )
        other = ExternalEventItem(
            event_id="evt-2", title="午饭", start=_at(12), end=_at(13)
        )
        items = build_calendar_items([task], [imported, other], _at(9))
        assert [item.kind for item in items] == ["signal_slot", "external_event"]
        assert items[1].event_id == "evt-2"

    def test_active_slot_uses_actual_times(self, make_task, make_slot):
        task = make_task(
            time_slots=[
                make_slot("s1", _at(9), _at(10), actual_start_time=_at(9, 10))
            ]
        )
        items = build_calendar_items([task], [], _at(10, 30))
        assert items[0].start == _at(9, 10)
        assert items[0].end == _at(10, 30)
        assert items[0].status == TimeSlotStatus.ACTIVE
