"""Postgres (pgvector) rule store.

Expects an ``agent_rules`` table with a ``vector(N)`` ``embedding`` column and
a ``match_agent_rules(agent_id, query_embedding, match_count)`` SQL function
returning ``(id, content, tags, similarity)`` ordered by cosine distance. The
schema itself is owned by the host application's migrations.
"""

from __future__ import annotations

import logging
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from contextcache.core.config import PostgresConfig
from contextcache.core.exceptions import ExternalServiceError

from ..models.types import Vector
from .storage import RuleStore, SimilaritySearch
from .types import AgentRule, RelevantRule

logger = logging.getLogger(__name__)


def vector_literal(vec: Vector) -> str:
    """pgvector text representation (``[0.1,0.2,...]``)."""
    return "[" + ",".join(repr(float(x)) for x in vec) + "]"


def _parse_vector(raw: Any) -> list[float]:
    if raw is None:
        return []
    if isinstance(raw, str):
        body = raw.strip().strip("[]")
        return [float(x) for x in body.split(",") if x.strip()]
    return [float(x) for x in raw]


class PostgresRuleStore(RuleStore, SimilaritySearch):
    """Rule storage and similarity search on Postgres + pgvector."""

    def __init__(self, config: PostgresConfig) -> None:
        if not config.dsn:
            raise ValueError("PostgresRuleStore requires postgres.dsn")
        self._cfg = config
        self._table = sql.Identifier(config.rules_table)
        self._match_fn = sql.Identifier(config.match_function)

    async def _connect(self) -> psycopg.AsyncConnection:
        return await psycopg.AsyncConnection.connect(
            self._cfg.dsn,
            row_factory=dict_row,
            connect_timeout=self._cfg.connect_timeout_sec,
        )

    def _error(self, op: str, agent_id: str, e: Exception) -> ExternalServiceError:
        return ExternalServiceError(f"{op} failed: {e}", agent_id=agent_id, operation=op)

    async def insert(
        self,
        agent_id: str,
        content: str,
        tags: list[str],
        embedding: Vector,
        *,
        priority: int = 0,
    ) -> str:
        query = sql.SQL(
            """
            INSERT INTO {table} (agent_id, content, tags, embedding, priority, enabled)
            VALUES (%s, %s, %s::text[], %s::vector, %s, true)
            RETURNING id
            """
        ).format(table=self._table)
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        query, (agent_id, content, tags, vector_literal(embedding), priority)
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as e:
            raise self._error("rules.insert", agent_id, e) from e
        if not row:
            raise ExternalServiceError(
                "rules.insert returned no id", agent_id=agent_id, operation="rules.insert"
            )
        return str(row["id"])

    async def update(
        self,
        agent_id: str,
        rule_id: str,
        *,
        content: str,
        tags: list[str],
        embedding: Vector,
    ) -> bool:
        query = sql.SQL(
            """
            UPDATE {table}
            SET content = %s, tags = %s::text[], embedding = %s::vector, updated_at = NOW()
            WHERE id = %s AND agent_id = %s
            """
        ).format(table=self._table)
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        query, (content, tags, vector_literal(embedding), rule_id, agent_id)
                    )
                    updated = cur.rowcount > 0
                await conn.commit()
        except psycopg.Error as e:
            raise self._error("rules.update", agent_id, e) from e
        return updated

    async def get(self, agent_id: str, rule_id: str) -> AgentRule | None:
        query = sql.SQL(
            """
            SELECT id, agent_id, content, tags, embedding::text AS embedding,
                   enabled, priority, created_at, updated_at
            FROM {table}
            WHERE id = %s AND agent_id = %s
            """
        ).format(table=self._table)
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, (rule_id, agent_id))
                    row = await cur.fetchone()
        except psycopg.Error as e:
            raise self._error("rules.get", agent_id, e) from e
        return self._to_rule(row) if row else None

    async def delete(self, agent_id: str, rule_id: str) -> bool:
        query = sql.SQL("DELETE FROM {table} WHERE id = %s AND agent_id = %s").format(
            table=self._table
        )
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, (rule_id, agent_id))
                    deleted = cur.rowcount > 0
                await conn.commit()
        except psycopg.Error as e:
            raise self._error("rules.delete", agent_id, e) from e
        return deleted

    async def set_enabled(self, agent_id: str, rule_id: str, enabled: bool) -> bool:
        query = sql.SQL(
            "UPDATE {table} SET enabled = %s, updated_at = NOW() WHERE id = %s AND agent_id = %s"
        ).format(table=self._table)
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, (enabled, rule_id, agent_id))
                    changed = cur.rowcount > 0
                await conn.commit()
        except psycopg.Error as e:
            raise self._error("rules.set_enabled", agent_id, e) from e
        return changed

    async def list_rules(self, agent_id: str) -> list[AgentRule]:
        query = sql.SQL(
            """
            SELECT id, agent_id, content, tags, NULL AS embedding,
                   enabled, priority, created_at, updated_at
            FROM {table}
            WHERE agent_id = %s
            ORDER BY priority DESC, created_at ASC
            """
        ).format(table=self._table)
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, (agent_id,))
                    rows = await cur.fetchall()
        except psycopg.errors.UndefinedTable:
            logger.warning("Rules table %s does not exist yet", self._cfg.rules_table)
            return []
        except psycopg.Error as e:
            raise self._error("rules.list", agent_id, e) from e
        return [self._to_rule(row) for row in rows]

    async def search(
        self, scope: str, query_vector: Vector, match_count: int
    ) -> list[RelevantRule]:
        query = sql.SQL(
            "SELECT id, content, tags, similarity FROM {fn}(%s, %s::vector, %s)"
        ).format(fn=self._match_fn)
        try:
            async with await self._connect() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, (scope, vector_literal(query_vector), match_count))
                    rows = await cur.fetchall()
        except psycopg.Error as e:
            raise self._error("rules.search", scope, e) from e

        results: list[RelevantRule] = []
        for row in rows:
            tags = row.get("tags")
            similarity = row.get("similarity")
            results.append(
                RelevantRule(
                    id=str(row["id"]),
                    content=str(row["content"] or ""),
                    tags=tuple(str(t) for t in tags) if isinstance(tags, list) else (),
                    similarity=float(similarity) if similarity is not None else None,
                )
            )
        return results

    @staticmethod
    def _to_rule(row: dict[str, Any]) -> AgentRule:
        tags = row.get("tags")
        return AgentRule(
            id=str(row["id"]),
            agent_id=str(row["agent_id"]),
            content=str(row["content"] or ""),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            embedding=_parse_vector(row.get("embedding")),
            enabled=bool(row.get("enabled", True)),
            priority=int(row.get("priority") or 0),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


__all__ = ["PostgresRuleStore", "vector_literal"]
