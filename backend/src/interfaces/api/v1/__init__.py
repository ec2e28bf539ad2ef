from fastapi import APIRouter

from .library_elements import router as library_elements_router

router = APIRouter(prefix="/v1")
router.include_router(library_elements_router)


@router.get(
    "/health",
    summary="API Health Check",
    description="Simple health check endpoint for monitoring and container orchestration.",
    responses={
        200: {"description": "API is healthy and responding"},
    },
)
async def health_check():
    """Health check endpoint for Docker health checks."""
    return {"status": "healthy", "message": "Library Elements API is running"}
