"""专注时间表与用户设置

DaySchedule 描述某个星期几的专注时间窗口。
结束时间早于开始时间表示窗口跨越午夜，结束于次日。
"""

from datetime import date, datetime, time, timedelta, tzinfo

from pydantic import BaseModel, Field, field_validator

_MINUTES_PER_DAY = 24 * 60

DAY_NAMES: dict[int, str] = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


class DaySchedule(BaseModel):
    """单日专注时间"""

    day_of_week: int = Field(ge=1, le=7, description="星期几，周一为 1")
    active_start_hour: int = Field(default=8, ge=0, le=23, description="开始小时")
    active_start_minute: int = Field(default=0, ge=0, le=59, description="开始分钟")
    active_end_hour: int = Field(default=0, ge=0, le=23, description="结束小时")
    active_end_minute: int = Field(default=0, ge=0, le=59, description="结束分钟")
    is_active_day: bool = Field(default=True, description="当天是否为专注日")

    @field_validator("active_start_hour", "active_end_hour", mode="before")
    @classmethod
    def _normalize_legacy_midnight(cls, value: object) -> object:
        # 旧数据用 24 表示午夜
        if value == 24:
            return 0
        return value

    @property
    def start_minute_of_day(self) -> int:
        return self.active_start_hour * 60 + self.active_start_minute

    @property
    def end_minute_of_day(self) -> int:
        return self.active_end_hour * 60 + self.active_end_minute

    @property
    def crosses_midnight(self) -> bool:
        return self.end_minute_of_day < self.start_minute_of_day

    @property
    def active_minutes(self) -> int:
        """专注窗口总分钟数（支持跨午夜），非专注日为 0"""
        if not self.is_active_day:
            return 0
        if self.crosses_midnight:
            return _MINUTES_PER_DAY - self.start_minute_of_day + self.end_minute_of_day
        return self.end_minute_of_day - self.start_minute_of_day

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    def start_for_date(self, day: date, tz: tzinfo | None = None) -> datetime:
        return datetime.combine(
            day, time(self.active_start_hour, self.active_start_minute), tzinfo=tz
        )

    def end_for_date(self, day: date, tz: tzinfo | None = None) -> datetime:
        """结束时间；跨午夜时落在次日"""
        end_day = day + timedelta(days=1) if self.crosses_midnight else day
        return datetime.combine(
            end_day, time(self.active_end_hour, self.active_end_minute), tzinfo=tz
        )

    def is_time_within_active_hours(self, moment: datetime) -> bool:
        if not self.is_active_day:
            return False
        minute = moment.hour * 60 + moment.minute
        if self.crosses_midnight:
            return minute >= self.start_minute_of_day or minute < self.end_minute_of_day
        return self.start_minute_of_day <= minute < self.end_minute_of_day

    def schedule_error(self) -> str | None:
        """校验窗口长度，合法返回 None，否则返回原因"""
        if self.active_minutes > 23 * 60:
            return "专注时间不能超过 23 小时"
        if self.is_active_day and self.active_minutes < 30:
            return "专注时间不能少于 30 分钟"
        return None

    def format_active_hours(self) -> str:
        if not self.is_active_day:
            return "Off"
        text = (
            f"{self.active_start_hour:02d}:{self.active_start_minute:02d} - "
            f"{self.active_end_hour:02d}:{self.active_end_minute:02d}"
        )
        if self.crosses_midnight:
            text += " +1"
        return text


def default_weekly_schedule() -> dict[int, DaySchedule]:
    """默认每天 08:00 至午夜，共 16 小时"""
    return {day: DaySchedule(day_of_week=day) for day in DAY_NAMES}


class UserSettings(BaseModel):
    """用户设置"""

    weekly_schedule: dict[int, DaySchedule] = Field(
        default_factory=default_weekly_schedule,
        description="星期几 -> 专注时间",
    )
    auto_start_tasks: bool = Field(default=False, description="计划开始时自动开始计时")
    auto_end_tasks: bool = Field(default=True, description="新时间块默认自动结束")
    start_reminders_enabled: bool = Field(default=True, description="开始前提醒")
    end_reminders_enabled: bool = Field(default=True, description="结束前提醒")
    notify_before_start_minutes: int = Field(default=5, ge=0, description="开始前提醒分钟数")
    notify_before_end_minutes: int = Field(default=5, ge=0, description="结束前提醒分钟数")
    timezone: str | None = Field(default=None, description="IANA 时区名")

    def schedule_for(self, day: date) -> DaySchedule:
        weekday = day.isoweekday()
        return self.weekly_schedule.get(weekday) or DaySchedule(day_of_week=weekday)
