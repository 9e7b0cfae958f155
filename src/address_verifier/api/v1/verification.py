"""Address verification endpoints.

POST /api/graphql-proxy runs the verification pipeline;
GET /api/verification-logs pages through the caller's own attempts.
"""

import json
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from address_verifier.api.middleware import get_client_ip
from address_verifier.core.config import Settings
from address_verifier.core.dependencies import (
    get_app_settings,
    get_async_session,
    get_session_token,
    get_verification_pipeline,
    require_user_session,
)
from address_verifier.schemas.auth import UserSession
from address_verifier.schemas.common import PaginationMeta, PaginationParams
from address_verifier.schemas.verification_log import PaginatedVerificationLogResponse, VerificationLogResponse
from address_verifier.services.audit_service import query_verification_logs
from address_verifier.services.verification_service import AddressVerificationPipeline

verification_router = APIRouter(tags=["verification"])


async def _read_json_body(request: Request) -> Any:
    """Decode the request body, or None when it is empty or not JSON."""
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


@verification_router.post("/graphql-proxy")
async def validate_address(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    session_token: Annotated[str | None, Depends(get_session_token)],
    pipeline: Annotated[AddressVerificationPipeline, Depends(get_verification_pipeline)],
) -> JSONResponse:
    """Verify a postcode, suburb and state triple.

    Body: ``{"query": "...", "variables": {"postcode", "suburb", "state"}}``.
    Always answers with ``{"data": {"validateAddress": {...}}}``.
    """
    result = await pipeline.handle(
        client_ip=get_client_ip(request, settings.trusted_proxy_header_list),
        session_token=session_token,
        payload=await _read_json_body(request),
    )
    return JSONResponse(status_code=result.status_code, content=result.content())


@verification_router.get("/verification-logs", response_model=PaginatedVerificationLogResponse)
async def list_verification_logs(
    current_user: Annotated[UserSession, Depends(require_user_session)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    pagination: Annotated[PaginationParams, Depends()],
    start_time: Annotated[datetime | None, Query()] = None,
    end_time: Annotated[datetime | None, Query()] = None,
) -> PaginatedVerificationLogResponse:
    """List the caller's verification attempts, newest first."""
    logs, total = await query_verification_logs(
        session,
        user_id=current_user.id,
        start_time=start_time,
        end_time=end_time,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return PaginatedVerificationLogResponse(
        items=[VerificationLogResponse.model_validate(log) for log in logs],
        pagination=PaginationMeta(
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=(total + pagination.page_size - 1) // pagination.page_size if total > 0 else 0,
        ),
    )
