from fastapi import APIRouter

from api.v1.admin import router as admin_router
from api.v1.applications import router as applications_router
from api.v1.auth import router as auth_router

router = APIRouter()

# Include v1 routers
router.include_router(auth_router, prefix="/v1")
router.include_router(applications_router, prefix="/v1")

# Admin features
router.include_router(admin_router, prefix="/v1")
