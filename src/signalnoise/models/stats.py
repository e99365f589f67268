"""Signal 比率统计模型"""

from datetime import date

from pydantic import BaseModel, Field


class SignalRatio(BaseModel):
    """某一时刻的 Signal 比率快照"""

    signal_minutes: int = Field(description="Signal 任务实际执行分钟数")
    elapsed_minutes: int = Field(description="已流逝的专注分钟数")
    ratio: float = Field(ge=0.0, le=1.0, description="signal / elapsed，限制在 [0, 1]")


class DailyStats(BaseModel):
    """单日统计"""

    day: date
    signal_minutes: int = 0
    focus_minutes: int = 0
    completed_tasks: int = 0
    ratio: float = 0.0
    golden: bool = Field(default=False, description="是否达成 Golden Ratio")

    @property
    def noise_minutes(self) -> int:
        return max(self.focus_minutes - self.signal_minutes, 0)


class WeeklyStats(BaseModel):
    """周统计（周一开始的 7 天）"""

    week_start: date
    days: list[DailyStats] = Field(default_factory=list)
    total_signal_minutes: int = 0
    total_focus_minutes: int = 0
    completed_tasks_count: int = 0
    tag_breakdown: dict[str, int] = Field(
        default_factory=dict,
        description="标签 ID -> Signal 分钟数，多标签任务计入每个标签",
    )
    ratio: float = 0.0
    golden: bool = False

    @property
    def noise_minutes(self) -> int:
        return max(self.total_focus_minutes - self.total_signal_minutes, 0)

    @property
    def golden_days(self) -> int:
        return sum(1 for day in self.days if day.golden)
