"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from app.api.damages import router as damages_router
from app.api.files import router as files_router
from app.api.health import router as health_router
from app.api.inspections import router as inspections_router
from app.api.vendors import router as vendors_router
from app.api.work_orders import router as work_orders_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(inspections_router)
api_router.include_router(damages_router)
api_router.include_router(work_orders_router)
api_router.include_router(vendors_router)
api_router.include_router(files_router)
