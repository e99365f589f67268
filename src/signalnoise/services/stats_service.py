"""StatsService -- 日 / 周统计查询"""

from datetime import date, timedelta

from ..clock import Clock
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..engine.stats import daily_stats, week_start, weekly_stats
from ..models.stats import DailyStats, WeeklyStats
from ..store import StoreGroup
from .settings_service import SettingsService


class StatsService:
    """统计业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        settings_service: SettingsService,
        clock: Clock,
        config: EngineConfig | None = None,
    ) -> None:
        self._stores = store_group
        self._settings = settings_service
        self._clock = clock
        self._config = config or DEFAULT_ENGINE_CONFIG

    async def daily_stats(self, day: date | None = None) -> DailyStats:
        now = self._clock.now()
        day = day or self._settings.current_focus_day(now)
        tasks = await self._stores.task_store.list_tasks_for_date(day)
        return daily_stats(
            day,
            tasks,
            self._settings.schedule_for(day),
            now,
            await self._settings.effective_start(day),
            self._config,
        )

    async def weekly_stats(self, any_day: date | None = None) -> WeeklyStats:
        """any_day 所在周（默认本周）的统计"""
        now = self._clock.now()
        monday = week_start(any_day or self._settings.current_focus_day(now))
        sunday = monday + timedelta(days=6)
        tasks = await self._stores.task_store.list_tasks_in_range(monday, sunday)
        overrides = await self._stores.settings_store.list_focus_overrides(monday, sunday)
        return weekly_stats(
            monday,
            tasks,
            self._settings.settings,
            now,
            overrides,
            self._config,
        )

    async def recent_weeks(self, count: int = 4) -> list[WeeklyStats]:
        """最近 count 周的统计，从早到晚"""
        current = week_start(self._settings.current_focus_day())
        weeks = [current - timedelta(weeks=offset) for offset in range(count - 1, -1, -1)]
        return [await self.weekly_stats(monday) for monday in weeks]
