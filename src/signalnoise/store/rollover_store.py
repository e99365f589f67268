"""RolloverStore SQLite 实现"""

from datetime import date

import aiosqlite

from ..models.enums import SuggestionStatus
from ..models.rollover import RolloverSuggestion


class SqliteRolloverStore:
    """顺延建议存储，写操作不自动提交"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_suggestion(self, suggestion: RolloverSuggestion) -> None:
        await self._conn.execute(
            """
            INSERT INTO rollover_suggestions (suggestion_id, original_task_id,
                                              suggested_for_date, status, document)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(suggestion_id) DO UPDATE SET
                status = excluded.status,
                document = excluded.document
            """,
            (
                suggestion.id,
                suggestion.original_task_id,
                suggestion.suggested_for_date.isoformat(),
                suggestion.status.value,
                suggestion.model_dump_json(),
            ),
        )

    async def get_suggestion(self, suggestion_id: str) -> RolloverSuggestion | None:
        cursor = await self._conn.execute(
            "SELECT document FROM rollover_suggestions WHERE suggestion_id = ?",
            (suggestion_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return RolloverSuggestion.model_validate_json(row[0])

    async def list_suggestions(
        self,
        for_date: date,
        status: SuggestionStatus | None = None,
    ) -> list[RolloverSuggestion]:
        if status:
            cursor = await self._conn.execute(
                """
                SELECT document FROM rollover_suggestions
                WHERE suggested_for_date = ? AND status = ?
                """,
                (for_date.isoformat(), status.value),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT document FROM rollover_suggestions WHERE suggested_for_date = ?",
                (for_date.isoformat(),),
            )
        rows = await cursor.fetchall()
        return [RolloverSuggestion.model_validate_json(row[0]) for row in rows]

    async def list_original_task_ids(self) -> set[str]:
        """已生成过建议的原任务 ID"""
        cursor = await self._conn.execute(
            "SELECT DISTINCT original_task_id FROM rollover_suggestions"
        )
        rows = await cursor.fetchall()
        return {row[0] for row in rows}
