"""时钟注入

引擎函数只接收显式的 now；服务层通过 Clock 获取当前时间，
测试中使用 FixedClock 控制时间流逝。
"""

from datetime import datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """时钟接口"""

    def now(self) -> datetime:
        """返回带时区的当前时间"""
        ...


class SystemClock:
    """系统时钟

    Args:
        timezone: IANA 时区名；为空时使用本机时区
    """

    def __init__(self, timezone: str | None = None) -> None:
        self._tz = ZoneInfo(timezone) if timezone else None

    def now(self) -> datetime:
        if self._tz is not None:
            return datetime.now(self._tz)
        return datetime.now().astimezone()


class FixedClock:
    """可手动推进的固定时钟"""

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is None:
            raise ValueError("FixedClock 需要带时区的 datetime")
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = current

    def advance(self, **kwargs: float) -> datetime:
        """按 timedelta 参数推进时间，返回推进后的时间"""
        self._current = self._current + timedelta(**kwargs)
        return self._current
