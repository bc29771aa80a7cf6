"""SQLite-backed persistence for travel suggestions."""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from miles_core.models import TravelSuggestion


@dataclass
class StoredSuggestion:
    """A suggestion row together with its bookkeeping columns."""

    suggestion: TravelSuggestion
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        payload = self.suggestion.to_dict()
        payload["updated_at"] = self.updated_at.isoformat()
        return payload


class SuggestionRepository:
    """SQLite backed persistence for :class:`TravelSuggestion` objects.

    A user holds at most one suggestion per promotion; storing it again
    replaces the message and balance and marks it unread.
    """

    def __init__(self, database: str) -> None:
        self.database = database
        db_path = Path(database)
        if db_path.parent and not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self.database)
        connection.row_factory = sqlite3.Row
        return connection

    def _ensure_schema(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS user_travel_suggestions (
                    user_id TEXT NOT NULL,
                    promotion_id TEXT NOT NULL,
                    saldo_usuario REAL NOT NULL,
                    programa_usuario TEXT NOT NULL,
                    mensagem TEXT NOT NULL,
                    is_viewed INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, promotion_id)
                )
                """
            )

    def upsert(self, suggestion: TravelSuggestion) -> None:
        payload = (
            suggestion.user_id,
            suggestion.promotion_id,
            float(suggestion.saldo_usuario),
            suggestion.programa_usuario,
            suggestion.mensagem,
            int(suggestion.is_viewed),
            datetime.now(timezone.utc).isoformat(),
        )
        with self._connect() as connection:
            connection.execute(
                """
                INSERT INTO user_travel_suggestions
                    (user_id, promotion_id, saldo_usuario, programa_usuario, mensagem, is_viewed, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, promotion_id) DO UPDATE SET
                    saldo_usuario = excluded.saldo_usuario,
                    programa_usuario = excluded.programa_usuario,
                    mensagem = excluded.mensagem,
                    is_viewed = excluded.is_viewed,
                    updated_at = excluded.updated_at
                """,
                payload,
            )

    def mark_viewed(self, user_id: str, promotion_id: str) -> bool:
        with self._connect() as connection:
            cursor = connection.execute(
                "UPDATE user_travel_suggestions SET is_viewed = 1 WHERE user_id = ? AND promotion_id = ?",
                (user_id, promotion_id),
            )
        return cursor.rowcount > 0

    def delete_inactive(self, active_promotion_ids: Sequence[str]) -> int:
        """Remove suggestions pointing at promotions no longer active."""

        ids = list(active_promotion_ids)
        with self._connect() as connection:
            if ids:
                placeholders = ", ".join("?" for _ in ids)
                cursor = connection.execute(
                    f"DELETE FROM user_travel_suggestions WHERE promotion_id NOT IN ({placeholders})",
                    ids,
                )
            else:
                cursor = connection.execute("DELETE FROM user_travel_suggestions")
        return cursor.rowcount

    def list_for_user(self, user_id: str) -> List[StoredSuggestion]:
        with self._connect() as connection:
            cursor = connection.execute(
                "SELECT * FROM user_travel_suggestions WHERE user_id = ? ORDER BY updated_at, promotion_id",
                (user_id,),
            )
            rows = cursor.fetchall()
        return [
            StoredSuggestion(
                suggestion=TravelSuggestion(
                    user_id=row["user_id"],
                    promotion_id=row["promotion_id"],
                    saldo_usuario=row["saldo_usuario"],
                    programa_usuario=row["programa_usuario"],
                    mensagem=row["mensagem"],
                    is_viewed=bool(row["is_viewed"]),
                ),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]
