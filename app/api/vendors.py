"""Vendor API: directory, verification, reviews and performance."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from app.dependencies import get_vendor_service, require_auth
from app.models.enums import VendorStatus, WorkCategory
from app.schemas import (
    InsuranceVerify, LicenseVerify, Page, PerformanceMetricsRead, ReviewCreate, ReviewRead,
    VendorCreate, VendorDetail, VendorRead, VendorSuspend, VendorUpdate, paginate,
)
from app.schemas.work_order import WorkOrderRead
from app.services.auth import AuthContext
from app.services.vendor_service import VendorService

router = APIRouter(prefix="/api/v1/vendors", tags=["vendors"])


@router.get("", response_model=Page[VendorRead])
async def list_vendors(
    status: VendorStatus | None = None,
    specialty: WorkCategory | None = None,
    preferred_only: bool = False,
    min_rating: float | None = Query(None, ge=0, le=5),
    city: str | None = None,
    state: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    items, total = await service.list(
        page=page, limit=limit,
        status=status, specialty=specialty, preferred_only=preferred_only,
        min_rating=min_rating, city=city, state=state,
    )
    return paginate(items, total, page, limit)


@router.get("/search", response_model=list[VendorRead])
async def search_vendors(
    category: WorkCategory,
    city: str | None = None,
    state: str | None = None,
    emergency_only: bool = False,
    preferred_only: bool = False,
    min_rating: float | None = Query(None, ge=0, le=5),
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.search_by_specialty(
        category, city=city, state=state,
        emergency_only=emergency_only, preferred_only=preferred_only, min_rating=min_rating,
    )


@router.get("/{vendor_id}", response_model=VendorDetail)
async def get_vendor(
    vendor_id: str,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    vendor = await service.get(vendor_id)
    detail = VendorDetail.model_validate(vendor)
    detail.recent_work_orders = [
        WorkOrderRead.model_validate(wo) for wo in await service.recent_work_orders(vendor_id)
    ]
    detail.recent_reviews = [ReviewRead.model_validate(r) for r in await service.recent_reviews(vendor_id)]
    return detail


@router.post("", response_model=VendorRead, status_code=201)
async def create_vendor(
    body: VendorCreate,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    data = body.model_dump()
    return await service.create(specialties=data.pop("specialties"), **data)


@router.put("/{vendor_id}", response_model=VendorRead)
async def update_vendor(
    vendor_id: str,
    body: VendorUpdate,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.update(vendor_id, body.model_dump(exclude_unset=True))


@router.post("/{vendor_id}/activate", response_model=VendorRead)
async def activate_vendor(
    vendor_id: str,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.activate(vendor_id)


@router.post("/{vendor_id}/suspend", response_model=VendorRead)
async def suspend_vendor(
    vendor_id: str,
    body: VendorSuspend | None = None,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.suspend(vendor_id, body.reason if body else None)


@router.post("/{vendor_id}/verify-license", response_model=VendorRead)
async def verify_license(
    vendor_id: str,
    body: LicenseVerify,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.verify_license(vendor_id, body.verified)


@router.post("/{vendor_id}/verify-insurance", response_model=VendorRead)
async def verify_insurance(
    vendor_id: str,
    body: InsuranceVerify,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.verify_insurance(vendor_id, body.verified, body.expiry)


@router.get("/{vendor_id}/metrics", response_model=PerformanceMetricsRead)
async def vendor_metrics(
    vendor_id: str,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    metrics = await service.get_performance_metrics(vendor_id)
    return metrics.to_dict()


@router.post("/{vendor_id}/reviews", response_model=ReviewRead, status_code=201)
async def add_review(
    vendor_id: str,
    body: ReviewCreate,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    return await service.add_review(vendor_id, reviewer_id=auth.user_id, **body.model_dump())


@router.get("/{vendor_id}/reviews", response_model=Page[ReviewRead])
async def list_reviews(
    vendor_id: str,
    min_rating: int | None = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    items, total = await service.get_reviews(vendor_id, page=page, limit=limit, min_rating=min_rating)
    return paginate(items, total, page, limit)


@router.delete("/{vendor_id}", status_code=204)
async def delete_vendor(
    vendor_id: str,
    auth: AuthContext = Depends(require_auth),
    service: VendorService = Depends(get_vendor_service),
):
    await service.delete(vendor_id)
    return Response(status_code=204)
