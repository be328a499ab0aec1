"""Work order API: create, dispatch, complete, verify."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from app.api.uploads import read_upload
from app.dependencies import get_work_order_service, require_auth
from app.models.enums import Priority, WorkCategory, WorkOrderStatus
from app.schemas import (
    Page, WorkOrderAssign, WorkOrderCancel, WorkOrderComplete, WorkOrderCreate, WorkOrderRead,
    WorkOrderSchedule, WorkOrderUpdate, WorkOrderVerify, paginate,
)
from app.services.auth import AuthContext
from app.services.work_order_service import WorkOrderService

router = APIRouter(prefix="/api/v1/work-orders", tags=["work_orders"])


@router.get("", response_model=Page[WorkOrderRead])
async def list_work_orders(
    property_id: str | None = None,
    vendor_id: str | None = None,
    damage_id: str | None = None,
    status: WorkOrderStatus | None = None,
    priority: Priority | None = None,
    category: WorkCategory | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    items, total = await service.list(
        page=page, limit=limit,
        property_id=property_id, vendor_id=vendor_id, damage_id=damage_id,
        status=status, priority=priority, category=category,
    )
    return paginate(items, total, page, limit)


@router.get("/{work_order_id}", response_model=WorkOrderRead)
async def get_work_order(
    work_order_id: str,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.get(work_order_id)


@router.post("", response_model=WorkOrderRead, status_code=201)
async def create_work_order(
    body: WorkOrderCreate,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.create(**body.model_dump())


@router.put("/{work_order_id}", response_model=WorkOrderRead)
async def update_work_order(
    work_order_id: str,
    body: WorkOrderUpdate,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.update(work_order_id, body.model_dump(exclude_unset=True))


@router.post("/{work_order_id}/assign", response_model=WorkOrderRead)
async def assign_work_order(
    work_order_id: str,
    body: WorkOrderAssign,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.assign_to_vendor(work_order_id, body.vendor_id)


@router.post("/{work_order_id}/schedule", response_model=WorkOrderRead)
async def schedule_work_order(
    work_order_id: str,
    body: WorkOrderSchedule,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.schedule(work_order_id, body.scheduled_at)


@router.post("/{work_order_id}/start", response_model=WorkOrderRead)
async def start_work_order(
    work_order_id: str,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.start(work_order_id)


@router.post("/{work_order_id}/complete", response_model=WorkOrderRead)
async def complete_work_order(
    work_order_id: str,
    body: WorkOrderComplete,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.complete(work_order_id, **body.model_dump())


@router.post("/{work_order_id}/verify", response_model=WorkOrderRead)
async def verify_work_order(
    work_order_id: str,
    body: WorkOrderVerify,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.verify(
        work_order_id,
        verified_by=auth.user_id,
        quality_rating=body.quality_rating,
        vendor_rating=body.vendor_rating,
    )


@router.post("/{work_order_id}/photos/before", response_model=WorkOrderRead)
async def add_before_photo(
    work_order_id: str,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.add_photo_before(work_order_id, await read_upload(file))


@router.post("/{work_order_id}/photos/after", response_model=WorkOrderRead)
async def add_after_photo(
    work_order_id: str,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.add_photo_after(work_order_id, await read_upload(file))


@router.post("/{work_order_id}/cancel", response_model=WorkOrderRead)
async def cancel_work_order(
    work_order_id: str,
    body: WorkOrderCancel | None = None,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return await service.cancel(work_order_id, body.reason if body else None)


@router.delete("/{work_order_id}", status_code=204)
async def delete_work_order(
    work_order_id: str,
    auth: AuthContext = Depends(require_auth),
    service: WorkOrderService = Depends(get_work_order_service),
):
    await service.delete(work_order_id)
    return Response(status_code=204)
