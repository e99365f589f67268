"""SettingsService -- 用户设置、专注时间表与每日窗口起点覆盖"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

import structlog

from ..clock import Clock
from ..engine.ratio import daily_signal_ratio, extend_focus_window, projected_ratio
from ..exceptions import InvalidScheduleError
from ..models.enums import ExtensionOutcome
from ..models.schedule import DaySchedule, UserSettings
from ..models.stats import SignalRatio
from ..models.task import SignalTask
from ..store.protocols import SettingsStore

log = structlog.get_logger()


class SettingsService:
    """设置业务服务"""

    def __init__(self, settings_store: SettingsStore, clock: Clock) -> None:
        self._store = settings_store
        self._clock = clock
        self._settings = UserSettings()

    @property
    def settings(self) -> UserSettings:
        return self._settings

    async def load(self) -> UserSettings:
        """读取已保存的设置，不存在时使用默认值"""
        stored = await self._store.get_settings()
        if stored is not None:
            self._settings = stored
        return self._settings

    async def update_settings(self, **changes: Any) -> UserSettings:
        """修改设置字段（经过模型校验）"""
        updated = UserSettings.model_validate({**self._settings.model_dump(), **changes})
        await self._store.save_settings(updated)
        self._settings = updated
        return updated

    def schedule_for(self, day: date) -> DaySchedule:
        return self._settings.schedule_for(day)

    async def update_day_schedule(self, schedule: DaySchedule) -> UserSettings:
        """
        Raises:
            InvalidScheduleError: 窗口长度不在 30 分钟到 23 小时之间
        """
        if error := schedule.schedule_error():
            raise InvalidScheduleError(schedule.day_of_week, error)
        weekly = {**self._settings.weekly_schedule, schedule.day_of_week: schedule}
        updated = self._settings.model_copy(update={"weekly_schedule": weekly})
        await self._store.save_settings(updated)
        self._settings = updated
        log.info(
            "day_schedule_updated",
            day_of_week=schedule.day_of_week,
            active_hours=schedule.format_active_hours(),
        )
        return updated

    def current_focus_day(self, now: datetime | None = None) -> date:
        """now 所属的专注日

        前一天的窗口跨午夜且尚未结束时，凌晨仍属于前一天。
        """
        now = now or self._clock.now()
        yesterday = now.date() - timedelta(days=1)
        schedule = self.schedule_for(yesterday)
        if (
            schedule.is_active_day
            and schedule.crosses_midnight
            and now < schedule.end_for_date(yesterday, now.tzinfo)
        ):
            return yesterday
        return now.date()

    async def effective_start(self, day: date) -> datetime | None:
        return await self._store.get_focus_override(day)

    async def extend_focus_time_for_date(self, start_time: datetime) -> ExtensionOutcome:
        """计划开始前开始计时时，前移当日专注窗口起点（每天仅一次）"""
        day = self.current_focus_day(start_time)
        existing = await self._store.get_focus_override(day)
        effective, outcome = extend_focus_window(
            self.schedule_for(day), day, start_time, existing
        )
        if outcome == ExtensionOutcome.EXTENDED and effective is not None:
            await self._store.set_focus_override(day, effective)
            log.info("focus_window_extended", day=day, effective_start=effective)
        return outcome

    async def clear_effective_start(self, day: date) -> None:
        await self._store.clear_focus_override(day)

    async def daily_ratio(
        self,
        tasks: Iterable[SignalTask],
        day: date | None = None,
    ) -> SignalRatio:
        now = self._clock.now()
        day = day or self.current_focus_day(now)
        return daily_signal_ratio(
            tasks,
            self.schedule_for(day),
            day,
            now,
            await self.effective_start(day),
        )

    def projected_ratio(
        self,
        tasks: Iterable[SignalTask],
        day: date | None = None,
    ) -> float:
        day = day or self.current_focus_day()
        return projected_ratio(tasks, self.schedule_for(day))
