"""顺延建议模型"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import SuggestionStatus


class RolloverSuggestion(BaseModel):
    """将未完成任务顺延到新日期的建议"""

    id: str = Field(description="唯一标识，ULID 格式")
    original_task_id: str
    original_task_title: str
    suggested_minutes: int = Field(ge=1, description="建议的剩余分钟数")
    tag_ids: list[str] = Field(default_factory=list)
    suggested_for_date: date
    created_at: datetime
    status: SuggestionStatus = SuggestionStatus.PENDING
    modified_minutes: int | None = Field(default=None, description="用户调整后的分钟数")
    created_task_id: str | None = None

    @property
    def final_minutes(self) -> int:
        return self.modified_minutes or self.suggested_minutes
