from fastapi import APIRouter

from iskolar.modules.applications.admin_router import router as admin_applications_router
from iskolar.modules.applications.router import router as applications_router
from iskolar.modules.community_service.admin_router import router as admin_community_service_router
from iskolar.modules.community_service.router import router as community_service_router
from iskolar.modules.documents.admin_router import router as admin_documents_router
from iskolar.modules.documents.router import router as documents_router
from iskolar.modules.programs.router import router as programs_router

api_router = APIRouter()

# Student surface
api_router.include_router(programs_router, prefix="/student/programs", tags=["Programs"])

api_router.include_router(
    applications_router, prefix="/student/applications", tags=["Applications"]
)

api_router.include_router(documents_router, prefix="/student", tags=["Documents"])

api_router.include_router(
    community_service_router, prefix="/student", tags=["Community Service"]
)

# Administrator surface
api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(
    admin_documents_router,
    prefix="/admin/documents",
    tags=["Admin - Documents"],
)

api_router.include_router(
    admin_community_service_router,
    prefix="/admin/community-service",
    tags=["Admin - Community Service"],
)
