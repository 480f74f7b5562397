"""SQLite sink for emitted interaction and span records."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..models import InteractionRecord, SpanRecord

IN_MEMORY_DB = ":memory:"


class IStorage(Protocol):
    """Queryable sink for emitted records (in memory unless configured otherwise)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def save_interaction(self, record: InteractionRecord) -> None:
        """Save a summary record."""
        ...

    async def save_spans(self, spans: list[SpanRecord]) -> None:
        """Save a transaction's span tree."""
        ...

    async def get_interactions(
        self,
        request_id: str | None = None,
        tenant_id: str | None = None,
        status: int | None = None,
        limit: int = 100,
    ) -> list[InteractionRecord]:
        """Get summary records with optional filters (newest first)."""
        ...

    async def get_spans(self, request_id: str) -> list[SpanRecord]:
        """Get the spans of one transaction in emission order."""
        ...

    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path = IN_MEMORY_DB):
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def save_interaction(self, record: InteractionRecord) -> None:
        """Save a summary record."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute(
            """
            INSERT INTO interactions (
                request_id, tenant_id, channel, method, uri, request_body,
                status, response_body, took_ms, level, message, timestamp
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.request_id,
                record.tenant_id,
                record.channel,
                record.method,
                record.uri,
                record.request_body,
                record.status,
                record.response_body,
                record.took_ms,
                record.level,
                record.message,
                record.timestamp.isoformat(),
            ),
        )
        await self._conn.commit()

    async def save_spans(self, spans: list[SpanRecord]) -> None:
        """Save a transaction's span tree."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.executemany(
            """
            INSERT INTO spans (
                span_id, request_id, name, parent_id, attributes, status,
                status_message, start_offset_ms, duration_ms
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    span.span_id,
                    span.request_id,
                    span.name,
                    span.parent_id,
                    json.dumps(span.attributes),
                    span.status,
                    span.status_message,
                    span.start_offset_ms,
                    span.duration_ms,
                )
                for span in spans
            ],
        )
        await self._conn.commit()

    async def get_interactions(
        self,
        request_id: str | None = None,
        tenant_id: str | None = None,
        status: int | None = None,
        limit: int = 100,
    ) -> list[InteractionRecord]:
        """Get summary records with optional filters (newest first)."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        conditions = []
        params: list = []

        if request_id is not None:
            conditions.append("request_id = ?")
            params.append(request_id)
        if tenant_id is not None:
            conditions.append("tenant_id = ?")
            params.append(tenant_id)
        if status is not None:
            conditions.append("status = ?")
            params.append(status)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT request_id, tenant_id, channel, method, uri, request_body,
                   status, response_body, took_ms, level, message, timestamp
            FROM interactions
            {where_clause}
            ORDER BY seq DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await self._conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            InteractionRecord(
                request_id=row[0],
                tenant_id=row[1],
                channel=row[2],
                method=row[3],
                uri=row[4],
                request_body=row[5],
                status=row[6],
                response_body=row[7],
                took_ms=row[8],
                level=row[9],
                message=row[10],
                timestamp=datetime.fromisoformat(row[11]).astimezone(timezone.utc),
            )
            for row in rows
        ]

    async def get_spans(self, request_id: str) -> list[SpanRecord]:
        """Get the spans of one transaction in emission order."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT span_id, request_id, name, parent_id, attributes, status,
                   status_message, start_offset_ms, duration_ms
            FROM spans
            WHERE request_id = ?
            ORDER BY seq ASC
            """,
            (request_id,),
        )
        rows = await cursor.fetchall()

        return [
            SpanRecord(
                span_id=row[0],
                request_id=row[1],
                name=row[2],
                parent_id=row[3],
                attributes=json.loads(row[4]),
                status=row[5],
                status_message=row[6],
                start_offset_ms=row[7],
                duration_ms=row[8],
            )
            for row in rows
        ]

    async def clear(self) -> None:
        """Clear all data."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        for table in ["spans", "interactions"]:
            await self._conn.execute(f"DELETE FROM {table}")

        await self._conn.commit()
