"""SignalTaskService -- Signal 任务与时间块业务逻辑

持有当前选中日期的任务列表，调用引擎纯函数完成状态变更：
1. 先更新内存中的任务
2. 在同一事务内写入任务文档与事件
3. 写入成功后将事件分发给日历同步 / 提醒调度

写入失败时内存状态保留，抛出 PersistenceError，可通过 flush() 重试。
"""

from collections.abc import Sequence
from datetime import date, datetime, timedelta

import structlog

from ..clock import Clock
from ..config import DEFAULT_ENGINE_CONFIG, MAX_SIGNAL_TASKS, EngineConfig
from ..engine import session
from ..exceptions import PersistenceError, TaskLimitReachedError, TaskNotFoundError
from ..models.enums import AutoEndAction, StartMode, StopOutcome, TaskStatus
from ..models.event import Event
from ..models.results import AutoEndDecision, StartResult, StopResult, Transition
from ..models.task import SignalTask
from ..models.time_slot import TimeSlot
from ..store import StoreGroup
from ..store.transaction import delete_task_with_events, save_tasks_with_events
from .collaborators import EventDispatcher
from .settings_service import SettingsService

log = structlog.get_logger()


class SignalTaskService:
    """Signal 任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        clock: Clock,
        *,
        config: EngineConfig | None = None,
        dispatcher: EventDispatcher | None = None,
        settings_service: SettingsService | None = None,
        max_tasks: int = MAX_SIGNAL_TASKS,
    ) -> None:
        self._stores = store_group
        self._clock = clock
        self._config = config or DEFAULT_ENGINE_CONFIG
        self._dispatcher = dispatcher or EventDispatcher()
        self._settings = settings_service
        self._max_tasks = max_tasks
        self._tasks: dict[str, SignalTask] = {}
        self._selected_date: date | None = None
        # 写入失败、等待重试的任务及其事件
        self._pending: dict[str, tuple[SignalTask, list[Event]]] = {}
        # 已提示过"计划结束"的时间块
        self._prompted_slots: set[str] = set()

    # ============================================================
    # 查询
    # ============================================================

    @property
    def selected_date(self) -> date:
        return self._selected_date or self._clock.now().date()

    @property
    def tasks(self) -> list[SignalTask]:
        return sorted(self._tasks.values(), key=lambda task: task.created_at)

    @property
    def scheduled_tasks(self) -> list[SignalTask]:
        """在日历上有展示的任务（含已执行过的），丢弃全部时间块后不再展示"""
        return [task for task in self.tasks if task.has_calendar_presence]

    @property
    def unscheduled_tasks(self) -> list[SignalTask]:
        return [task for task in self.tasks if task.needs_scheduling]

    @property
    def active_task(self) -> SignalTask | None:
        for task in self._tasks.values():
            if task.has_active_slot:
                return task
        return None

    @property
    def pending_task_ids(self) -> set[str]:
        return set(self._pending)

    async def load_tasks(self, day: date | None = None) -> list[SignalTask]:
        """加载指定日期（默认今天）的任务；未写入成功的内存修改保留"""
        day = day or self._clock.now().date()
        loaded = await self._stores.task_store.list_tasks_for_date(day)
        unsaved = {
            task_id: task
            for task_id, (task, _events) in self._pending.items()
            if task.scheduled_date == day
        }
        self._selected_date = day
        self._tasks = {task.id: task for task in loaded}
        self._tasks.update(unsaved)
        log.info("tasks_loaded", day=day, count=len(self._tasks))
        return self.tasks

    async def refresh(self) -> list[SignalTask]:
        return await self.load_tasks(self.selected_date)

    async def get_task(self, task_id: str) -> SignalTask:
        """查询任务，优先内存

        Raises:
            TaskNotFoundError: 任务不存在
        """
        if task_id in self._tasks:
            return self._tasks[task_id]
        if task_id in self._pending:
            return self._pending[task_id][0]
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def live_elapsed_seconds(self, task_id: str, slot_id: str) -> int:
        """计时显示用的实时秒数（只读）"""
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return session.compute_live_elapsed(task, slot_id, self._clock.now())

    def missed_slots(self) -> list[tuple[SignalTask, TimeSlot]]:
        now = self._clock.now()
        return [
            (task, slot)
            for task in self.tasks
            for slot in session.missed_slots(task, now)
        ]

    # ============================================================
    # 任务
    # ============================================================

    async def create_task(
        self,
        title: str,
        estimated_minutes: int,
        *,
        scheduled_date: date | None = None,
        tag_ids: list[str] | None = None,
        sub_task_titles: list[str] | None = None,
    ) -> SignalTask:
        """创建 Signal 任务

        Raises:
            TaskLimitReachedError: 当日任务数已达上限
        """
        day = scheduled_date or self.selected_date
        if day == self.selected_date:
            existing = list(self._tasks.values())
        else:
            existing = await self._stores.task_store.list_tasks_for_date(day)
        active_count = sum(1 for task in existing if task.status != TaskStatus.ROLLED)
        if active_count >= self._max_tasks:
            raise TaskLimitReachedError(self._max_tasks)

        transition = session.new_task(
            title,
            estimated_minutes,
            day,
            self._clock.now(),
            tag_ids=tag_ids,
            sub_task_titles=sub_task_titles,
        )
        await self._commit(transition)
        log.info(
            "task_created",
            task_id=transition.task.id,
            estimated_minutes=estimated_minutes,
            scheduled_date=day,
        )
        return transition.task

    async def complete_task(self, task_id: str) -> SignalTask:
        task = await self.get_task(task_id)
        transition = session.complete_task(task, self._clock.now(), self._config)
        await self._commit(transition)
        return transition.task

    async def uncomplete_task(self, task_id: str) -> SignalTask:
        task = await self.get_task(task_id)
        transition = session.uncomplete_task(task, self._clock.now())
        await self._commit(transition)
        return transition.task

    async def delete_task(self, task_id: str) -> None:
        """删除任务；计时先停止，未丢弃的时间块通知日历移除"""
        task = await self.get_task(task_id)
        transition = session.delete_task(task, self._clock.now(), self._config)
        task = transition.task
        previous = self._pending.pop(task_id, None)
        events = [*(previous[1] if previous else []), *transition.events]

        try:
            await delete_task_with_events(
                self._stores.conn,
                self._stores.task_store,
                self._stores.event_store,
                task_id,
                events,
            )
        except Exception as exc:
            if previous is not None:
                self._pending[task_id] = previous
            log.error("task_delete_failed", task_id=task_id, error=str(exc))
            raise PersistenceError("delete_task", exc) from exc

        self._tasks.pop(task_id, None)
        await self._dispatcher.dispatch(task, events)
        log.info("task_deleted", task_id=task_id)

    # ============================================================
    # 计时
    # ============================================================

    async def smart_start_task(
        self,
        task_id: str,
        preferred_slot_id: str | None = None,
    ) -> StartResult:
        """开始计时；其他任务正在计时时先停止

        配置了 settings_service 时，早于当日专注时间开始会前移窗口起点；
        恢复已有会话不算提前开始。
        """
        task = await self.get_task(task_id)
        active = self.active_task
        if active is not None and active.id != task_id and active.active_slot:
            await self.stop_time_slot(active.id, active.active_slot.id)

        result = session.smart_start_task(
            task,
            self._clock.now(),
            preferred_slot_id,
            self._config,
            auto_end=self._default_auto_end(),
        )
        if result.changed:
            await self._commit(result)
            if self._settings is not None and result.mode != StartMode.RESUMED:
                await self._settings.extend_focus_time_for_date(result.start_time)
        log.info(
            "timer_started",
            task_id=task_id,
            slot_id=result.slot_id,
            mode=result.mode,
            outcome=result.outcome,
        )
        return result

    async def stop_time_slot(self, task_id: str, slot_id: str) -> StopResult:
        task = await self.get_task(task_id)
        result = session.stop_time_slot(task, slot_id, self._clock.now(), self._config)
        if result.outcome == StopOutcome.STOPPED:
            await self._commit(result)
        self._prompted_slots.discard(slot_id)
        log.info(
            "timer_stopped",
            task_id=task_id,
            slot_id=slot_id,
            outcome=result.outcome,
            session_seconds=result.session_seconds,
        )
        return result

    async def stop_active_timer(self) -> StopResult | None:
        active = self.active_task
        if active is None or active.active_slot is None:
            return None
        return await self.stop_time_slot(active.id, active.active_slot.id)

    async def continue_time_slot(self, task_id: str, slot_id: str) -> SignalTask:
        task = await self.get_task(task_id)
        transition = session.continue_time_slot(task, slot_id, self._clock.now())
        await self._commit(transition)
        self._prompted_slots.discard(slot_id)
        return transition.task

    async def check_auto_end(self) -> list[AutoEndDecision]:
        """定时调用：到达计划结束的时间块自动停止或提示一次

        自动停止时按计划结束时间结算，而非检查发生的时间。
        """
        now = self._clock.now()
        decisions: list[AutoEndDecision] = []
        for task in self.tasks:
            decision = session.check_auto_end(task, now, self._config)
            if decision is None:
                continue
            if decision.action == AutoEndAction.AUTO_END:
                stop_at = min(now, decision.planned_end_time)
                result = session.stop_time_slot(
                    task, decision.slot_id, stop_at, self._config, auto_ended=True
                )
                await self._commit(result)
                log.info("timer_auto_ended", task_id=task.id, slot_id=decision.slot_id)
                decisions.append(decision)
            elif decision.slot_id not in self._prompted_slots:
                self._prompted_slots.add(decision.slot_id)
                decisions.append(decision)
        return decisions

    # ============================================================
    # 排期
    # ============================================================

    async def add_time_slot(
        self,
        task_id: str,
        planned_start: datetime,
        planned_end: datetime,
        *,
        auto_end: bool | None = None,
        linked_sub_task_ids: list[str] | None = None,
        external_calendar_event_id: str | None = None,
    ) -> SignalTask:
        """添加计划时间块；auto_end 默认取用户设置"""
        if auto_end is None:
            auto_end = self._default_auto_end()
        task = await self.get_task(task_id)
        transition = session.add_time_slot(
            task,
            planned_start,
            planned_end,
            self._clock.now(),
            auto_end=auto_end,
            linked_sub_task_ids=linked_sub_task_ids,
            external_calendar_event_id=external_calendar_event_id,
        )
        await self._commit(transition)
        return transition.task

    async def update_time_slot(
        self,
        task_id: str,
        slot_id: str,
        *,
        planned_start: datetime | None = None,
        planned_end: datetime | None = None,
        auto_end: bool | None = None,
    ) -> SignalTask:
        """修改时间块计划；auto_end 为 None 时保持原值"""
        task = await self.get_task(task_id)
        transition = session.update_time_slot(
            task,
            slot_id,
            self._clock.now(),
            planned_start=planned_start,
            planned_end=planned_end,
            auto_end=auto_end,
        )
        if transition.changed:
            await self._commit(transition)
        return transition.task

    async def remove_time_slot(self, task_id: str, slot_id: str) -> SignalTask:
        task = await self.get_task(task_id)
        transition = session.remove_time_slot(task, slot_id, self._clock.now(), self._config)
        await self._commit(transition)
        return transition.task

    async def discard_slot(self, task_id: str, slot_id: str) -> SignalTask:
        task = await self.get_task(task_id)
        transition = session.discard_slot(task, slot_id, self._clock.now(), self._config)
        if transition.changed:
            await self._commit(transition)
        return transition.task

    async def reschedule_missed_slot(
        self,
        task_id: str,
        slot_id: str,
        new_start: datetime,
        duration: timedelta | None = None,
    ) -> SignalTask:
        task = await self.get_task(task_id)
        transition = session.reschedule_missed_slot(
            task, slot_id, new_start, self._clock.now(), duration
        )
        await self._commit(transition)
        return transition.task

    # ============================================================
    # 持久化
    # ============================================================

    async def flush(self) -> int:
        """重试写入失败的任务，返回成功写入的任务数"""
        flushed = 0
        for task, _events in list(self._pending.values()):
            await self._save(task, [])
            flushed += 1
        return flushed

    def _default_auto_end(self) -> bool:
        if self._settings is None:
            return True
        return self._settings.settings.auto_end_tasks

    async def _commit(self, transition: Transition) -> None:
        task = transition.task
        if task.scheduled_date == self.selected_date:
            self._tasks[task.id] = task
        await self._save(task, transition.events)

    async def _save(self, task: SignalTask, events: Sequence[Event]) -> None:
        previous = self._pending.pop(task.id, None)
        pending = [*(previous[1] if previous else []), *events]
        try:
            await save_tasks_with_events(
                self._stores.conn,
                self._stores.task_store,
                self._stores.event_store,
                [task],
                pending,
                self._clock.now(),
            )
        except Exception as exc:
            self._pending[task.id] = (task, pending)
            log.error("task_save_failed", task_id=task.id, error=str(exc))
            raise PersistenceError("save_task", exc) from exc
        await self._dispatcher.dispatch(task, pending)
