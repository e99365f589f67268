"""SettingsStore SQLite 实现

用户设置以 JSON 存储在 settings 表；每日专注窗口起点覆盖存储在 focus_overrides 表。
"""

from datetime import UTC, date, datetime

import aiosqlite

from ..models.schedule import UserSettings

_USER_SETTINGS_KEY = "user_settings"


class SqliteSettingsStore:
    """SettingsStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get_settings(self) -> UserSettings | None:
        cursor = await self._conn.execute(
            "SELECT value FROM settings WHERE key = ?",
            (_USER_SETTINGS_KEY,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return UserSettings.model_validate_json(row[0])

    async def save_settings(self, settings: UserSettings) -> None:
        """保存设置并提交"""
        await self._conn.execute(
            """
            INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (
                _USER_SETTINGS_KEY,
                settings.model_dump_json(),
                datetime.now(UTC).isoformat(),
            ),
        )
        await self._conn.commit()

    async def get_focus_override(self, day: date) -> datetime | None:
        cursor = await self._conn.execute(
            "SELECT effective_start FROM focus_overrides WHERE day = ?",
            (day.isoformat(),),
        )
        row = await cursor.fetchone()
        return datetime.fromisoformat(row[0]) if row else None

    async def list_focus_overrides(self, start: date, end: date) -> dict[date, datetime]:
        cursor = await self._conn.execute(
            "SELECT day, effective_start FROM focus_overrides WHERE day BETWEEN ? AND ?",
            (start.isoformat(), end.isoformat()),
        )
        rows = await cursor.fetchall()
        return {date.fromisoformat(row[0]): datetime.fromisoformat(row[1]) for row in rows}

    async def set_focus_override(self, day: date, effective_start: datetime) -> None:
        """写入当日起点覆盖并提交；已存在时保持原值"""
        await self._conn.execute(
            "INSERT OR IGNORE INTO focus_overrides (day, effective_start) VALUES (?, ?)",
            (day.isoformat(), effective_start.isoformat()),
        )
        await self._conn.commit()

    async def clear_focus_override(self, day: date) -> None:
        await self._conn.execute(
            "DELETE FROM focus_overrides WHERE day = ?",
            (day.isoformat(),),
        )
        await self._conn.commit()
