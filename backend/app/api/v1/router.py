from fastapi import APIRouter
from app.api.v1.endpoints import portfolio, projects, users

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "sharecase-backend"}


api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(portfolio.router, prefix="/portfolio", tags=["Portfolio"])
