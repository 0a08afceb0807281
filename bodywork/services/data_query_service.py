"""
Effective-user data queries.

Builds a PostgREST query for one whitelisted table and scopes it to the
effective user's owner_user_id. The caller picks the client: an RLS client
for a practitioner acting as themselves, the service-role client while an
admin is impersonating.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, cast

from supabase import Client

from bodywork.utils.constants import OWNER_SCOPED_TABLES

logger = logging.getLogger(__name__)

# Operators accepted in {"column": {"<op>": value}} filters
COMPARISON_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "ilike")


def _apply_filter(query: Any, column: str, value: Any) -> Any:
    if value is None:
        return query.is_(column, "null")

    if not isinstance(value, dict):
        return query.eq(column, value)

    if len(value) != 1:
        raise ValueError(f"Filter for '{column}' must have exactly one operator")

    op, operand = next(iter(value.items()))
    if op == "not":
        if operand is not None:
            raise ValueError(f"Only {{'not': null}} is supported (column '{column}')")
        return query.not_.is_(column, "null")
    if op == "in":
        if not isinstance(operand, list):
            raise ValueError(f"'in' filter for '{column}' needs a list")
        return query.in_(column, operand)
    if op in COMPARISON_OPERATORS:
        return getattr(query, op)(column, operand)

    raise ValueError(f"Unsupported filter operator '{op}' for column '{column}'")


async def query_owned_rows(
    supabase_client: Client,
    table: str,
    owner_user_id: str,
    select: str = "*",
    filters: Optional[Mapping[str, Any]] = None,
    order_column: Optional[str] = None,
    ascending: bool = True,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Read rows from `table` on behalf of the effective user.

    Raises:
        ValueError: malformed filters (the route maps this to 400)
        Exception: propagated from Supabase (the route maps this to 500)
    """
    query = supabase_client.table(table).select(select)

    if table in OWNER_SCOPED_TABLES:
        query = query.eq("owner_user_id", owner_user_id)

    for column, value in (filters or {}).items():
        query = _apply_filter(query, column, value)

    if order_column:
        query = query.order(order_column, desc=not ascending)

    if limit:
        query = query.limit(limit)

    result = query.execute()
    rows = cast(List[Dict[str, Any]], result.data or [])
    logger.debug(f"Data query on {table} returned {len(rows)} rows")
    return rows
