"""cl_notification REST API: the caller's own inbox."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bootstrap import Services, get_services
from src.cl_common.response import ApiResponse, success_response
from src.cl_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
    unread_only: bool = Query(False),
    limit: int | None = Query(None, ge=1, le=200),
) -> ApiResponse:
    data = await services.notifications.list_for_user(
        current_user.account_id, unread_only=unread_only, limit=limit
    )
    return success_response(data.model_dump(), request)


@router.get("/unread-count")
async def unread_count(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.notifications.unread_count(current_user.account_id)
    return success_response(data.model_dump(), request)


@router.patch("/read-all")
async def mark_all_read(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.notifications.mark_all_read(current_user.account_id)
    return success_response(data.model_dump(), request)


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    await services.notifications.mark_read(current_user.account_id, notification_id)
    return success_response({"ok": True}, request)


@router.delete("/{notification_id}")
async def dismiss(
    notification_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    await services.notifications.dismiss(current_user.account_id, notification_id)
    return success_response({"ok": True}, request)


@router.delete("")
async def dismiss_all(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    services: Annotated[Services, Depends(get_services)],
    request: Request,
) -> ApiResponse:
    data = await services.notifications.dismiss_all(current_user.account_id)
    return success_response(data.model_dump(), request)
