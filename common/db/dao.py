from __future__ import annotations
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession


class OrderRepository:
    def __init__(self, session: AsyncSession, table: str = "orders"):
        self.session = session
        self.table = table

    async def get_order(self, keys: Sequence[str]) -> Optional[Dict[str, Any]]:
        """Fetch one raw order row whose identifier matches any of ``keys``.

        The identifier column is compared as text, so rows keyed by a numeric
        column match the string form of the number. When more than one row
        matches, the row matching ``keys[0]`` wins. Returns ``None`` when no
        row exists.
        """
        if not keys:
            return None
        stmt = text(
            f"""
            select * from {self.table}
            where cast(order_id as text) in :keys
            limit 2
            """
        ).bindparams(bindparam("keys", expanding=True))
        result = await self.session.execute(stmt, {"keys": [str(k) for k in keys]})
        rows = [dict(row) for row in result.mappings().all()]
        if not rows:
            return None
        for row in rows:
            if str(row.get("order_id")) == str(keys[0]):
                return row
        return rows[0]
