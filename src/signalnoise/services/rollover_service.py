"""RolloverService -- 顺延建议的生成、接受与忽略"""

from datetime import date, timedelta

import structlog

from ..clock import Clock
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..engine import rollover
from ..exceptions import PersistenceError, SuggestionNotFoundError, TaskNotFoundError
from ..models.enums import SuggestionStatus
from ..models.rollover import RolloverSuggestion
from ..models.task import SignalTask
from ..store import StoreGroup
from ..store.transaction import save_tasks_with_events
from .task_service import SignalTaskService

log = structlog.get_logger()

# 只回看最近一周的未完成任务
_LOOKBACK_DAYS = 7


class RolloverService:
    """顺延业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        clock: Clock,
        config: EngineConfig | None = None,
        task_service: SignalTaskService | None = None,
    ) -> None:
        self._stores = store_group
        self._clock = clock
        self._config = config or DEFAULT_ENGINE_CONFIG
        self._task_service = task_service

    async def generate_suggestions(
        self, for_date: date | None = None
    ) -> list[RolloverSuggestion]:
        """为 for_date（默认今天）生成新的顺延建议"""
        now = self._clock.now()
        for_date = for_date or now.date()
        tasks = await self._stores.task_store.list_tasks_in_range(
            for_date - timedelta(days=_LOOKBACK_DAYS),
            for_date - timedelta(days=1),
        )
        existing = await self._stores.rollover_store.list_original_task_ids()
        suggestions = rollover.generate_suggestions(
            tasks, for_date, now, existing, self._config
        )
        if suggestions:
            await self._save([], [], suggestions)
            log.info("rollover_suggested", for_date=for_date, count=len(suggestions))
        return suggestions

    async def pending_suggestions(
        self, for_date: date | None = None
    ) -> list[RolloverSuggestion]:
        for_date = for_date or self._clock.now().date()
        return await self._stores.rollover_store.list_suggestions(
            for_date, SuggestionStatus.PENDING
        )

    async def accept(
        self,
        suggestion_id: str,
        modified_minutes: int | None = None,
    ) -> SignalTask:
        """接受建议，返回新创建的任务"""
        suggestion = await self._get(suggestion_id)
        original = await self._stores.task_store.get_task(suggestion.original_task_id)
        if original is None:
            raise TaskNotFoundError(suggestion.original_task_id)

        created, rolled, accepted = rollover.accept_suggestion(
            suggestion,
            original,
            self._clock.now(),
            modified_minutes,
            self._config,
        )
        await self._save(
            [created.task, rolled.task],
            [*created.events, *rolled.events],
            [accepted],
        )
        log.info(
            "rollover_accepted",
            suggestion_id=suggestion_id,
            original_task_id=original.id,
            created_task_id=created.task.id,
        )
        if self._task_service is not None:
            await self._task_service.refresh()
        return created.task

    async def dismiss(self, suggestion_id: str) -> RolloverSuggestion:
        suggestion = rollover.dismiss_suggestion(await self._get(suggestion_id))
        await self._save([], [], [suggestion])
        return suggestion

    async def _get(self, suggestion_id: str) -> RolloverSuggestion:
        suggestion = await self._stores.rollover_store.get_suggestion(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(suggestion_id)
        return suggestion

    async def _save(self, tasks, events, suggestions) -> None:
        try:
            await save_tasks_with_events(
                self._stores.conn,
                self._stores.task_store,
                self._stores.event_store,
                tasks,
                events,
                self._clock.now(),
                rollover_store=self._stores.rollover_store,
                suggestions=suggestions,
            )
        except Exception as exc:
            log.error("rollover_save_failed", error=str(exc))
            raise PersistenceError("save_rollover", exc) from exc
