"""
Effective-user data API.

- POST /data/query - Read rows from a whitelisted table for the effective user

A practitioner acting as themselves queries through an RLS client built
from their own token. While an admin is impersonating, RLS would scope to
nobody, so the service-role client is used with an explicit
owner_user_id filter, and only owner-scoped tables are readable.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from postgrest.exceptions import APIError

from bodywork.auth.context import EffectiveIdentity, get_effective_identity
from bodywork.db.client import get_service_role_client, get_supabase_client
from bodywork.schemas.data import DataQueryRequest, DataQueryResponse
from bodywork.services import query_owned_rows
from bodywork.utils.constants import OWNER_SCOPED_TABLES, QUERYABLE_TABLES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])

# undefined_column, PostgREST parse error, unknown relationship in select
POSTGREST_BAD_QUERY_CODES = ("42703", "PGRST100", "PGRST200")


@router.post(
    "/query",
    response_model=DataQueryResponse,
    status_code=status.HTTP_200_OK,
    summary="Query data for the effective user",
    description="""
    Read rows from one whitelisted table, scoped to the effective user.

    - 400 for a table outside the whitelist, a malformed filter, or an
      unknown column
    - 401 without an effective identity
    - 403 for a non owner-scoped table while impersonating
    """
)
async def query_data(
    request: DataQueryRequest,
    identity: Annotated[EffectiveIdentity, Depends(get_effective_identity)]
) -> DataQueryResponse:
    """Query data on behalf of the effective user."""
    if request.table not in QUERYABLE_TABLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_table", "details": f"Table '{request.table}' is not queryable"}
        )

    if not identity.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "unauthorized", "details": "Not authenticated"}
        )

    if identity.is_impersonating and request.table not in OWNER_SCOPED_TABLES:
        # The service-role client would return every practitioner's rows
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "forbidden",
                "details": f"Table '{request.table}' cannot be read while impersonating"
            }
        )

    try:
        if identity.is_impersonating:
            supabase_client = get_service_role_client()
        else:
            supabase_client = get_supabase_client(identity.access_token or "")

        rows = await query_owned_rows(
            supabase_client,
            table=request.table,
            owner_user_id=identity.user_id or "",
            select=request.select,
            filters=request.filters,
            order_column=request.order.column if request.order else None,
            ascending=request.order.ascending if request.order else True,
            limit=request.limit,
        )

    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_filter", "details": str(e)}
        )
    except APIError as e:
        # Unknown column or unparsable select expression
        if e.code in POSTGREST_BAD_QUERY_CODES:
            logger.info(f"Rejected data query on {request.table}: {e.message}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "invalid_query", "details": e.message}
            )
        logger.error(f"Database error querying {request.table} for user {identity.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "query_failed", "details": "Query failed"}
        )
    except Exception as e:
        logger.error(f"Data query on {request.table} failed for user {identity.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "query_failed", "details": "Query failed"}
        )

    return DataQueryResponse(data=rows)
