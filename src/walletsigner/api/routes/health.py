"""Health check endpoints."""

from fastapi import APIRouter, Depends, Request

from walletsigner.api.deps import get_service
from walletsigner.service import SignerService

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "walletsigner"}


@router.get("/health/detailed")
async def detailed_health(request: Request, service: SignerService = Depends(get_service)):
    """Detailed health check with configuration info and address counts."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": "walletsigner",
        "version": "0.1.0",
        "config": settings.get_safe_dict(),
        "signer": await service.health(),
    }
