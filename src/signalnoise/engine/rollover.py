"""顺延建议

日切时间之后，未达到完成比例的任务生成顺延到新日期的建议；
接受建议时创建新任务，原任务标记为 ROLLED。
"""

from collections.abc import Iterable
from datetime import date, datetime

from ulid import ULID

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..exceptions import InvalidTransitionError
from ..models.enums import SuggestionStatus, TaskStatus
from ..models.results import Transition
from ..models.rollover import RolloverSuggestion
from ..models.task import SignalTask
from .session import mark_rolled, new_task


def is_day_over(
    day: date,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> bool:
    """now 是否已到达 day 的日切时间"""
    cutoff = datetime.combine(day, config.day_cutoff, tzinfo=now.tzinfo)
    return now >= cutoff


def should_roll_over(
    task: SignalTask,
    now: datetime,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> bool:
    if task.is_complete or task.status == TaskStatus.ROLLED:
        return False
    if task.estimated_minutes <= 0:
        return False
    completion = task.actual_minutes(now) / task.estimated_minutes
    return completion < config.rollover_completion_threshold


def generate_suggestions(
    tasks: Iterable[SignalTask],
    for_date: date,
    now: datetime,
    existing_task_ids: set[str] | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> list[RolloverSuggestion]:
    """为 for_date 之前、已过日切的未完成任务生成顺延建议

    existing_task_ids 中的任务已有建议，跳过。
    """
    existing_task_ids = existing_task_ids or set()
    suggestions = []
    for task in tasks:
        if task.id in existing_task_ids or task.scheduled_date >= for_date:
            continue
        if not is_day_over(task.scheduled_date, now, config):
            continue
        if not should_roll_over(task, now, config):
            continue
        suggestions.append(
            RolloverSuggestion(
                id=str(ULID()),
                original_task_id=task.id,
                original_task_title=task.title,
                suggested_minutes=max(task.remaining_minutes(now), 1),
                tag_ids=list(task.tag_ids),
                suggested_for_date=for_date,
                created_at=now,
            )
        )
    return suggestions


def accept_suggestion(
    suggestion: RolloverSuggestion,
    original: SignalTask,
    now: datetime,
    modified_minutes: int | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> tuple[Transition, Transition, RolloverSuggestion]:
    """接受顺延建议

    Returns:
        (新任务, 已标记 ROLLED 的原任务, 已接受的建议)
    """
    if suggestion.status != SuggestionStatus.PENDING:
        raise InvalidTransitionError(suggestion.status, SuggestionStatus.ACCEPTED)

    accepted = suggestion.model_copy(
        update={
            "status": SuggestionStatus.ACCEPTED,
            "modified_minutes": modified_minutes,
        }
    )
    minutes = accepted.final_minutes
    created = new_task(
        original.title,
        minutes,
        suggestion.suggested_for_date,
        now,
        tag_ids=original.tag_ids,
        sub_task_titles=[sub.title for sub in original.sub_tasks if not sub.is_checked],
        rolled_from_task_id=original.id,
        remaining_minutes_from_rollover=minutes,
    )
    rolled = mark_rolled(original, now, config)
    accepted = accepted.model_copy(update={"created_task_id": created.task.id})
    return created, rolled, accepted


def dismiss_suggestion(suggestion: RolloverSuggestion) -> RolloverSuggestion:
    if suggestion.status != SuggestionStatus.PENDING:
        raise InvalidTransitionError(suggestion.status, SuggestionStatus.DISMISSED)
    return suggestion.model_copy(update={"status": SuggestionStatus.DISMISSED})
