"""Inspection API — schedule, start, complete, photos and reports."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from app.api.uploads import read_upload
from app.dependencies import get_inspection_service, require_auth
from app.models.enums import InspectionStatus, InspectionType
from app.schemas import (
    GeoPoint, InspectionComplete, InspectionCreate, InspectionRead, InspectionStart,
    InspectionUpdate, Page, ReportRead, paginate,
)
from app.services.auth import AuthContext
from app.services.inspection_service import InspectionService

router = APIRouter(prefix="/api/v1/inspections", tags=["inspections"])


@router.get("", response_model=Page[InspectionRead])
async def list_inspections(
    property_id: str | None = None,
    inspector_id: str | None = None,
    status: InspectionStatus | None = None,
    inspection_type: InspectionType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    items, total = await service.list(
        page=page, limit=limit,
        property_id=property_id, inspector_id=inspector_id,
        status=status, inspection_type=inspection_type,
        start_date=start_date, end_date=end_date,
    )
    return paginate(items, total, page, limit)


@router.get("/{inspection_id}", response_model=InspectionRead)
async def get_inspection(
    inspection_id: str,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.get(inspection_id)


@router.post("", response_model=InspectionRead, status_code=201)
async def create_inspection(
    body: InspectionCreate,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    data = body.model_dump()
    return await service.create(**data)


@router.put("/{inspection_id}", response_model=InspectionRead)
async def update_inspection(
    inspection_id: str,
    body: InspectionUpdate,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.update(inspection_id, body.model_dump(exclude_unset=True))


@router.post("/{inspection_id}/start", response_model=InspectionRead)
async def start_inspection(
    inspection_id: str,
    body: InspectionStart | None = None,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    location = body.location.model_dump() if body and body.location else None
    return await service.start(inspection_id, location)


@router.post("/{inspection_id}/complete", response_model=InspectionRead)
async def complete_inspection(
    inspection_id: str,
    body: InspectionComplete,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    return await service.complete(
        inspection_id,
        overall_condition=body.overall_condition,
        notes=body.notes,
        location=body.location.model_dump() if body.location else None,
    )


@router.post("/{inspection_id}/photos", response_model=InspectionRead)
async def add_inspection_photo(
    inspection_id: str,
    file: UploadFile = File(...),
    room: str = Form(...),
    angle: str | None = Form(None),
    device: str | None = Form(None),
    latitude: float | None = Form(None),
    longitude: float | None = Form(None),
    accuracy: float | None = Form(None),
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    data = await read_upload(file)
    gps = None
    if latitude is not None and longitude is not None:
        gps = GeoPoint(latitude=latitude, longitude=longitude, accuracy=accuracy).model_dump()
    return await service.add_photo(inspection_id, data, room=room, angle=angle, gps=gps, device=device)


@router.post("/{inspection_id}/report", response_model=ReportRead)
async def generate_report(
    inspection_id: str,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    return {"report_url": await service.generate_report(inspection_id)}


@router.delete("/{inspection_id}", status_code=204)
async def delete_inspection(
    inspection_id: str,
    auth: AuthContext = Depends(require_auth),
    service: InspectionService = Depends(get_inspection_service),
):
    await service.delete(inspection_id)
    return Response(status_code=204)
