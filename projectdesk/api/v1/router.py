from fastapi import APIRouter

from projectdesk.api.v1.endpoints import auth, generation, projects, wizard

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(wizard.router, prefix="/wizard", tags=["Wizard"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(projects.admin_router, prefix="/admin/projects", tags=["Admin"])
api_router.include_router(projects.developer_router, prefix="/developer/projects", tags=["Developer"])
api_router.include_router(generation.router, prefix="/generation", tags=["Generation"])


@api_router.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "service": "projectdesk-api"}
