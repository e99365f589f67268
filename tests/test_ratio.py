"""Signal 比率计算单元测试"""

from datetime import UTC, date, datetime, timedelta

import pytest
from signalnoise.engine import ratio
from signalnoise.models import DaySchedule, ExtensionOutcome

DAY = date(2026, 10, 14)


def _at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)


def _schedule(start: int = 9, end: int = 17, **kwargs) -> DaySchedule:
    return DaySchedule(
        day_of_week=DAY.isoweekday(),
        active_start_hour=start,
        active_end_hour=end,
        **kwargs,
    )


class TestComputeRatio:
    """比率截断与零分母"""

    @pytest.mark.parametrize(
        "signal,elapsed,expected",
        [
            (0, 60, 0.0),
            (30, 60, 0.5),
            (60, 60, 1.0),
            (200, 60, 1.0),
            (30, 0, 0.0),
            (30, -5, 0.0),
        ],
    )
    def test_values(self, signal, elapsed, expected):
        assert ratio.compute_ratio(signal, elapsed) == pytest.approx(expected)

    def test_monotonic_in_signal(self):
        values = [ratio.compute_ratio(signal, 90) for signal in range(0, 200, 5)]
        assert values == sorted(values)
        assert all(0.0 <= value <= 1.0 for value in values)


class TestElapsedFocusMinutes:
    """已流逝的专注分钟数"""

    @pytest.mark.parametrize(
        "now,expected",
        [
            (_at(8), 0),
            (_at(9), 0),
            (_at(9, 45), 45),
            (_at(17), 480),
            (_at(22), 480),
        ],
    )
    def test_same_day_window(self, now, expected):
        assert ratio.elapsed_focus_minutes(_schedule(), DAY, now) == expected

    def test_inactive_day(self):
        schedule = _schedule(is_active_day=False)
        assert ratio.elapsed_focus_minutes(schedule, DAY, _at(12)) == 0

    def test_cross_midnight_window(self):
        schedule = _schedule(start=20, end=2)
        after_midnight = _at(1, 0, day=DAY + timedelta(days=1))
        assert ratio.elapsed_focus_minutes(schedule, DAY, after_midnight) == 300
        next_morning = _at(9, 0, day=DAY + timedelta(days=1))
        assert ratio.elapsed_focus_minutes(schedule, DAY, next_morning) == 360

    def test_effective_start_moves_window(self):
        schedule = _schedule()
        assert ratio.elapsed_focus_minutes(schedule, DAY, _at(10), _at(8)) == 120

    def test_later_effective_start_ignored(self):
        schedule = _schedule()
        assert ratio.elapsed_focus_minutes(schedule, DAY, _at(10), _at(9, 30)) == 60


class TestDailySignalRatio:
    """当日实时比率"""

    def test_before_window_is_zero(self, make_task, make_slot):
        task = make_task(
            time_slots=[make_slot("s1", _at(7), _at(8), accumulated_seconds=3600)]
        )
        result = ratio.daily_signal_ratio([task], _schedule(), DAY, _at(8, 30))
        assert result.elapsed_minutes == 0
        assert result.ratio == 0.0
        assert result.signal_minutes == 60

    def test_over_logged_is_clamped(self, make_task, make_slot):
        task = make_task(
            time_slots=[make_slot("s1", _at(7), _at(9, 30), accumulated_seconds=9000)]
        )
        result = ratio.daily_signal_ratio([task], _schedule(), DAY, _at(10))
        assert result.signal_minutes == 150
        assert result.elapsed_minutes == 60
        assert result.ratio == 1.0

    def test_running_session_counts(self, make_task, make_slot):
        task = make_task(
            time_slots=[make_slot("s1", _at(9), _at(11), actual_start_time=_at(9))]
        )
        result = ratio.daily_signal_ratio([task], _schedule(), DAY, _at(11))
        assert result.signal_minutes == 120
        assert result.ratio == pytest.approx(1.0)

    def test_signal_minutes_sum_seconds_before_flooring(self, make_task, make_slot):
        tasks = [
            make_task(
                task_id,
                time_slots=[
                    make_slot(f"{task_id}-s", _at(9), _at(10), task_id=task_id,
                              accumulated_seconds=90)
                ],
            )
            for task_id in ("a", "b")
        ]
        assert ratio.signal_minutes(tasks, _at(12)) == 3


class TestProjectedRatio:
    """计划比率"""

    def test_projected(self, make_task):
        tasks = [make_task("a", estimated_minutes=120), make_task("b", estimated_minutes=120)]
        assert ratio.projected_ratio(tasks, _schedule()) == pytest.approx(0.5)

    def test_projected_inactive_day(self, make_task):
        schedule = _schedule(is_active_day=False)
        assert ratio.projected_ratio([make_task()], schedule) == 0.0


class TestExtendFocusWindow:
    """提前开始时窗口前移，每天只生效一次"""

    def test_first_early_start_extends(self):
        start, outcome = ratio.extend_focus_window(_schedule(), DAY, _at(7, 30), None)
        assert outcome == ExtensionOutcome.EXTENDED
        assert start == _at(7, 30)

    def test_second_call_keeps_first(self):
        start, outcome = ratio.extend_focus_window(_schedule(), DAY, _at(7, 30), None)
        again, second = ratio.extend_focus_window(_schedule(), DAY, _at(6), start)
        assert second == ExtensionOutcome.ALREADY_EXTENDED
        assert again == _at(7, 30)

    def test_not_early(self):
        start, outcome = ratio.extend_focus_window(_schedule(), DAY, _at(9, 5), None)
        assert outcome == ExtensionOutcome.NOT_EARLY
        assert start is None

    def test_inactive_day_not_extended(self):
        schedule = _schedule(is_active_day=False)
        _start, outcome = ratio.extend_focus_window(schedule, DAY, _at(7), None)
        assert outcome == ExtensionOutcome.NOT_EARLY
