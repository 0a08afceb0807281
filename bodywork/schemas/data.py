"""
Pydantic schemas for effective-user data queries.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class QueryOrder(BaseModel):
    column: str = Field(..., min_length=1)
    ascending: bool = True


class DataQueryRequest(BaseModel):
    """
    Request body for POST /data/query.

    filters maps column -> value. A plain value means equality, null means
    IS NULL, {"not": null} means IS NOT NULL, and {"<op>": value} with op in
    eq/neq/gt/gte/lt/lte/in/ilike applies that operator.
    """
    table: str = Field(..., min_length=1, examples=["visits_non_phi"])
    select: str = Field("*", description="PostgREST select expression")
    filters: Dict[str, Any] = Field(default_factory=dict)
    order: Optional[QueryOrder] = None
    limit: Optional[int] = Field(None, ge=1, le=1000)


class DataQueryResponse(BaseModel):
    data: List[Dict[str, Any]]
