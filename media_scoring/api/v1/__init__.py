"""API v1 router and endpoint organization."""

from fastapi import APIRouter

from media_scoring.api.v1.endpoints import batches, documents

router = APIRouter(prefix="/api/v1", tags=["v1"])

# Include domain-specific routers
router.include_router(batches.router, prefix="/batches", tags=["Batches"])
router.include_router(documents.router, prefix="/documents", tags=["Documents"])

__all__ = ["router"]
