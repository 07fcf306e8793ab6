"""Admin credit REST API: allocation and per-account views, admin role only."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bootstrap import Services, get_services
from src.cl_common.enums import LedgerEntryKind
from src.cl_common.response import ApiResponse, success_response
from src.cl_gateway.auth.dependencies import CurrentUser, require_admin
from src.cl_ledger.application.schemas import AllocateRequest

router = APIRouter(prefix="/admin/credits", tags=["admin"])


@router.post("/allocate")
async def allocate(
    body: AllocateRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.ledger.allocate(
        admin.account_id, body.target_account_id, body.amount, body.description
    )
    return success_response(data.model_dump(), request)


@router.get("/accounts/{account_id}/balance")
async def account_balance(
    account_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.ledger.get_balance(account_id)
    return success_response(data.model_dump(), request)


@router.get("/accounts/{account_id}/ledger")
async def account_ledger(
    account_id: int,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    kind: LedgerEntryKind | None = Query(None),
    since: datetime | None = Query(None),
    until: datetime | None = Query(None),
) -> ApiResponse:
    data = await services.ledger.list_ledger(
        account_id, cursor, limit, kind=kind.value if kind else None, since=since, until=until
    )
    return success_response(data.model_dump(), request)
