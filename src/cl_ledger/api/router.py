"""cl_ledger REST API: caller's own credits, all require JWT authentication."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bootstrap import Services, get_services
from src.cl_common.enums import LedgerEntryKind
from src.cl_common.response import ApiResponse, success_response
from src.cl_gateway.auth.dependencies import CurrentUser, get_current_user
from src.cl_ledger.application.schemas import PurchaseRequest

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("/balance")
async def get_balance(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.ledger.get_balance(current_user.account_id)
    return success_response(data.model_dump(), request)


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    kind: LedgerEntryKind | None = Query(None, description="Filter by entry kind"),
    since: datetime | None = Query(None, description="Inclusive lower bound (ISO8601)"),
    until: datetime | None = Query(None, description="Exclusive upper bound (ISO8601)"),
) -> ApiResponse:
    data = await services.ledger.list_ledger(
        current_user.account_id,
        cursor,
        limit,
        kind=kind.value if kind else None,
        since=since,
        until=until,
    )
    return success_response(data.model_dump(), request)


@router.get("/usage")
async def usage_summary(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
    since: datetime | None = Query(None),
    until: datetime | None = Query(None),
) -> ApiResponse:
    data = await services.ledger.usage_summary(current_user.account_id, since, until)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/purchase")
async def purchase(
    body: PurchaseRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.ledger.purchase(
        current_user.account_id, body.payment_reference, body.amount, body.plan
    )
    return success_response(data.model_dump(), request)
