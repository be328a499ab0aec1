"""Damage API: reporting, AI detection, disputes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from app.api.uploads import read_upload
from app.dependencies import get_damage_service, require_auth
from app.models.enums import DamageStatus, Severity
from app.schemas import (
    DamageCreate, DamageRead, DamageUpdate, DetectionRead, DisputeCreate, DisputeResolve,
    Page, paginate,
)
from app.services.auth import AuthContext
from app.services.damage_service import DamageService

router = APIRouter(prefix="/api/v1/damages", tags=["damages"])


@router.get("", response_model=Page[DamageRead])
async def list_damages(
    inspection_id: str | None = None,
    property_id: str | None = None,
    reservation_id: str | None = None,
    status: DamageStatus | None = None,
    severity: Severity | None = None,
    ai_detected: bool | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    items, total = await service.list(
        page=page, limit=limit,
        inspection_id=inspection_id, property_id=property_id, reservation_id=reservation_id,
        status=status, severity=severity, ai_detected=ai_detected,
    )
    return paginate(items, total, page, limit)


@router.post("/detect", response_model=DetectionRead)
async def detect_damage(
    file: UploadFile = File(...),
    inspection_id: str = Form(...),
    property_id: str = Form(...),
    room: str = Form(...),
    location: str = Form(""),
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    data = await read_upload(file)
    damage = await service.detect_from_image(data, inspection_id, property_id, room, location)
    return {"detected": damage is not None, "damage": damage}


@router.post("/compare", response_model=list[DamageRead])
async def compare_photos(
    before: UploadFile = File(...),
    after: UploadFile = File(...),
    inspection_id: str = Form(...),
    property_id: str = Form(...),
    room: str = Form(...),
    location: str = Form(""),
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    before_data = await read_upload(before)
    after_data = await read_upload(after)
    return await service.compare_before_after(before_data, after_data, inspection_id, property_id, room, location)


@router.get("/{damage_id}", response_model=DamageRead)
async def get_damage(
    damage_id: str,
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    return await service.get(damage_id)


@router.post("", response_model=DamageRead, status_code=201)
async def create_damage(
    body: DamageCreate,
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    return await service.create(**body.model_dump())


@router.put("/{damage_id}", response_model=DamageRead)
async def update_damage(
    damage_id: str,
    body: DamageUpdate,
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    return await service.update(damage_id, body.model_dump(exclude_unset=True))


@router.post("/{damage_id}/photos", response_model=DamageRead)
async def add_damage_photo(
    damage_id: str,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    return await service.add_photo(damage_id, await read_upload(file))


@router.post("/{damage_id}/dispute", response_model=DamageRead)
async def dispute_damage(
    damage_id: str,
    body: DisputeCreate,
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    return await service.dispute(damage_id, body.reason, body.evidence)


@router.post("/{damage_id}/dispute/resolve", response_model=DamageRead)
async def resolve_dispute(
    damage_id: str,
    body: DisputeResolve,
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    return await service.resolve_dispute(
        damage_id,
        body.resolution,
        final_responsible_party=body.final_responsible_party,
        final_cost=body.final_cost,
    )


@router.delete("/{damage_id}", status_code=204)
async def delete_damage(
    damage_id: str,
    auth: AuthContext = Depends(require_auth),
    service: DamageService = Depends(get_damage_service),
):
    await service.delete(damage_id)
    return Response(status_code=204)
