"""Request dependencies."""

from fastapi import Request

from walletsigner.service import SignerService


def get_service(request: Request) -> SignerService:
    """Signer service bound to the application at construction."""
    return request.app.state.service
